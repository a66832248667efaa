"""Pytest bootstrap: local imports and a clean kozutsumi environment.

Puts the repository root on ``sys.path`` so ``import kozutsumi`` works
without an install, and drops user-level ``KOZUTSUMI_*`` settings that would
change config discovery or shell-entry classification mid-test.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = str(Path(__file__).resolve().parent.parent)
ISOLATED_ENV_VARS = ("KOZUTSUMI_CONFIG", "KOZUTSUMI_ALLOW_SHELL", "NO_COLOR")

if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


@pytest.fixture(autouse=True)
def _isolated_kozutsumi_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ISOLATED_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
