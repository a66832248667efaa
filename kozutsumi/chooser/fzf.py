"""Interactive parcel selection through an external ``fzf`` process.

Candidates go to the finder's stdin, the pick comes back on stdout, and the
exit status decides between selection, cancel, no match, and failure. The
preview pane re-runs this program in ``list`` mode for the highlighted name.
"""

from __future__ import annotations

import logging
import re
import shlex
import subprocess
import sys
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path
from typing import IO

from .outcome import (
    Cancelled,
    ChooserOutcome,
    ChooserState,
    FinderFailed,
    NoneSelected,
    Selected,
)

logger = logging.getLogger(__name__)

DEFAULT_FINDER = "fzf"
FZF_EXIT_OK = 0
FZF_EXIT_NO_MATCH = 1
FZF_EXIT_INTERRUPTED = 130

FZF_BASE_ARGS = (
    "--preview-window=right:60%:wrap",
    "--layout=reverse",
    "--bind=tab:down,shift-tab:up",
    "--cycle",
    "--no-sort",
    "--ansi",
    "--tmux=center,70%,40%",
)
FZF_MULTI_ARGS = (
    "--multi",
    "--bind=ctrl-a:select-all",
    "--bind=space:toggle+down",
)

# fzf placeholders like `{}`, `{1}`, `{q}`, `{+}`.
_FZF_PLACEHOLDER_RE = re.compile(r"^\{[^{}]*\}$")


def self_command() -> list[str]:
    """Argv that re-runs this program with the current interpreter."""
    return [sys.executable, "-m", "kozutsumi"]


def shell_join_fzf_command(parts: Sequence[str]) -> str:
    """Join argv into a shell string for fzf actions such as ``--preview``.

    Placeholders stay unquoted because fzf substitutes already-quoted text.
    """
    rendered: list[str] = []
    for part in parts:
        if _FZF_PLACEHOLDER_RE.match(part):
            rendered.append(part)
        else:
            rendered.append(shlex.quote(part))
    return " ".join(rendered)


def build_preview_command(base: Sequence[str], config_path: Path, allow_shell: bool = False) -> str:
    parts = [*base, "--config", str(config_path)]
    if allow_shell:
        parts.append("--allow-shell")
    parts.extend(["list", "--color=always", "{}"])
    return shell_join_fzf_command(parts)


def parse_selection(stdout: str, multi: bool) -> tuple[str, ...]:
    """Split finder output into names, dropping blanks and repeats."""
    names: list[str] = []
    for name in stdout.splitlines():
        if name.strip() and name not in names:
            names.append(name)
    if not multi:
        return tuple(names[:1])
    return tuple(names)


def outcome_for(
    returncode: int, stdout: str, multi: bool, finder: str = DEFAULT_FINDER
) -> ChooserOutcome:
    """Map a finished finder's exit status and output to an outcome.

    Cancel wins regardless of output. Success with blank output counts as
    "nothing selected", the same as fzf's own no-match status.
    """
    if returncode == FZF_EXIT_INTERRUPTED:
        return Cancelled()
    if returncode == FZF_EXIT_NO_MATCH:
        return NoneSelected()
    if returncode == FZF_EXIT_OK:
        names = parse_selection(stdout, multi)
        return Selected(names) if names else NoneSelected()
    return FinderFailed(f"{finder} failed with status: {returncode}", returncode)


_OUTCOME_STATES = {
    Selected: ChooserState.SELECTED,
    Cancelled: ChooserState.CANCELLED,
    NoneSelected: ChooserState.NO_MATCH,
    FinderFailed: ChooserState.FAILED,
}


class FzfChooser:
    """Runs one fzf session per ``choose`` call.

    The self-invocation command is resolved here, at construction, so the
    preview always calls back into the interpreter and package that are
    running now.
    """

    def __init__(
        self,
        config_path: Path,
        allow_shell: bool = False,
        finder: str = DEFAULT_FINDER,
        base_command: Sequence[str] | None = None,
        popen: Callable[..., subprocess.Popen] = subprocess.Popen,
    ) -> None:
        self.config_path = config_path
        self.allow_shell = allow_shell
        self.finder = finder
        self.base_command = list(base_command) if base_command is not None else self_command()
        self._popen = popen
        self.state = ChooserState.IDLE

    def _transition(self, state: ChooserState) -> None:
        logger.debug("chooser %s -> %s", self.state.value, state.value)
        self.state = state

    def build_command(self, multi: bool = False) -> list[str]:
        args = [self.finder, *FZF_BASE_ARGS]
        if multi:
            args.extend(FZF_MULTI_ARGS)
        args.extend(
            [
                "--preview",
                build_preview_command(self.base_command, self.config_path, self.allow_shell),
            ]
        )
        return args

    def choose(self, candidates: Iterable[str], multi: bool = False) -> ChooserOutcome:
        """Let the user pick parcel names; see ``outcome_for`` for the mapping.

        An empty candidate list returns ``NoneSelected`` without spawning.
        """
        self.state = ChooserState.IDLE
        names = list(candidates)
        if not names:
            self._transition(ChooserState.NO_MATCH)
            return NoneSelected()

        self._transition(ChooserState.SPAWNING)
        command = self.build_command(multi)
        try:
            proc = self._popen(
                command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as exc:
            self._transition(ChooserState.FAILED)
            return FinderFailed(f"failed to start {self.finder}: {exc}")

        self._transition(ChooserState.STREAMING)
        _stream_candidates(proc.stdin, names)

        self._transition(ChooserState.AWAITING_RESULT)
        assert proc.stdout is not None
        try:
            stdout = proc.stdout.read()
        finally:
            proc.stdout.close()
        returncode = proc.wait()

        outcome = outcome_for(returncode, stdout, multi, self.finder)
        self._transition(_OUTCOME_STATES[type(outcome)])
        return outcome


def _stream_candidates(stdin: IO[str] | None, names: Sequence[str]) -> None:
    """Write one name per line and close the pipe before the caller waits.

    A finder that quits early (e.g. an instant Ctrl-C) closes its end; the
    resulting ``BrokenPipeError`` just ends the write phase.
    """
    assert stdin is not None
    try:
        for name in names:
            stdin.write(f"{name}\n")
        stdin.flush()
    except BrokenPipeError:
        logger.debug("finder closed its input before all candidates were written")
    finally:
        try:
            stdin.close()
        except BrokenPipeError:
            logger.debug("finder input was already closed")
