"""Parcel config file discovery and loading.

Finds the config in the native platform config dir, falling back to the
legacy ``~/.config/kozutsumi`` location. Loads YAML or JSON into a plain
``name -> [raw entry strings]`` mapping; classification happens later.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

import yaml
from platformdirs import user_config_dir

from .errors import ConfigError

logger = logging.getLogger(__name__)

APP_NAME = "kozutsumi"
CONFIG_STEM = "parcel"
CONFIG_SUFFIXES = (".yml", ".yaml")
CONFIG_ENV_VAR = "KOZUTSUMI_CONFIG"
DEFAULT_CONFIG_DIR = Path(user_config_dir(APP_NAME, appauthor=False))
LEGACY_CONFIG_DIR = Path.home() / ".config" / APP_NAME

JSON_SUFFIXES = frozenset({".json"})


def _first_existing(directory: Path) -> Path | None:
    for suffix in CONFIG_SUFFIXES:
        candidate = directory / f"{CONFIG_STEM}{suffix}"
        if candidate.exists():
            return candidate
    return None


def default_config_path() -> Path:
    """Return the config path used when ``--config`` is not given.

    Order: ``$KOZUTSUMI_CONFIG``, the native config dir, the legacy dir. When
    nothing exists yet the native ``parcel.yaml`` path is returned so error
    messages point at the preferred location.
    """
    override = os.environ.get(CONFIG_ENV_VAR, "").strip()
    if override:
        return Path(override).expanduser()

    native = _first_existing(DEFAULT_CONFIG_DIR)
    if native is not None:
        return native
    if LEGACY_CONFIG_DIR != DEFAULT_CONFIG_DIR:
        legacy = _first_existing(LEGACY_CONFIG_DIR)
        if legacy is not None:
            logger.debug("using legacy config location %s", legacy)
            return legacy
    return DEFAULT_CONFIG_DIR / f"{CONFIG_STEM}{CONFIG_SUFFIXES[-1]}"


def _parse_document(text: str, path: Path) -> object:
    if path.suffix.lower() in JSON_SUFFIXES:
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in {path}: {exc}") from exc
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc


def _coerce_entries(name: str, raw_entries: object, path: Path) -> list[str]:
    """Validate one parcel's entry list; ``null`` is accepted as empty."""
    if raw_entries is None:
        return []
    if not isinstance(raw_entries, list):
        raise ConfigError(f"Parcel `{name}` in {path} must be a list of entries.")

    entries: list[str] = []
    for index, raw in enumerate(raw_entries):
        if isinstance(raw, bool) or not isinstance(raw, (str, int, float)):
            raise ConfigError(f"Parcel `{name}` entry #{index + 1} in {path} must be a string.")
        text = str(raw)
        if not text.strip():
            raise ConfigError(f"Parcel `{name}` entry #{index + 1} in {path} is empty.")
        entries.append(text)
    return entries


def parse_parcels(data: object, path: Path) -> dict[str, list[str]]:
    """Validate a decoded config document and return its parcel mapping.

    Parcel order follows the document, which YAML and JSON loaders preserve.
    """
    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must be a mapping with a `parcels` key.")
    if "parcels" not in data:
        raise ConfigError(f"Config {path} is missing the `parcels` key.")

    raw_parcels = data["parcels"]
    if raw_parcels is None:
        return {}
    if not isinstance(raw_parcels, dict):
        raise ConfigError(f"`parcels` in {path} must map parcel names to entry lists.")

    parcels: dict[str, list[str]] = {}
    for name, raw_entries in raw_parcels.items():
        key = str(name)
        parcels[key] = _coerce_entries(key, raw_entries, path)
    return parcels


def load_parcels(path: Path) -> dict[str, list[str]]:
    """Read and parse the config file at ``path``."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc

    parcels = parse_parcels(_parse_document(text, path), path)
    logger.debug("loaded %d parcel(s) from %s", len(parcels), path)
    return parcels
