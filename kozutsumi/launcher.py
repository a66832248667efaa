"""Open entries through the platform's open/launch primitive.

One attempt per entry; failures are reported as ``LaunchResult`` values
instead of exceptions so a parcel batch always reaches its last entry.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import sys
import tempfile
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from .entry import App, Entry, File, Shell, Url

logger = logging.getLogger(__name__)

PLATFORM_MACOS = "darwin"
PLATFORM_WINDOWS = "win32"


@dataclass(frozen=True)
class LaunchResult:
    entry: Entry
    ok: bool
    detail: str = ""


@dataclass
class BatchReport:
    """Outcome of opening every entry of one parcel, in order."""

    results: list[LaunchResult] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.results)

    @property
    def failures(self) -> list[LaunchResult]:
        return [result for result in self.results if not result.ok]

    @property
    def all_failed(self) -> bool:
        return bool(self.results) and not any(result.ok for result in self.results)


class Launcher:
    """Maps entries to platform commands and runs them.

    ``run``, ``which`` and ``popen`` are injectable so tests can record
    attempts without spawning anything. Openers are waited on; an app run
    directly by name is spawned in its own session and left running.
    """

    def __init__(
        self,
        platform: str | None = None,
        run: Callable[..., subprocess.CompletedProcess] = subprocess.run,
        which: Callable[[str], str | None] = shutil.which,
        popen: Callable[..., subprocess.Popen] = subprocess.Popen,
    ) -> None:
        self.platform = platform or sys.platform
        self._run = run
        self._which = which
        self._popen = popen

    def command_for(self, entry: Entry) -> list[str] | str:
        """Return argv for ``entry``, or a command string for ``Shell`` entries."""
        if isinstance(entry, Shell):
            return entry.command
        if self.platform == PLATFORM_MACOS:
            return self._macos_command(entry)
        if self.platform == PLATFORM_WINDOWS:
            return ["cmd", "/c", "start", "", entry.display()]
        return self._freedesktop_command(entry)

    def _macos_command(self, entry: Entry) -> list[str]:
        if isinstance(entry, App):
            return ["open", "-a", entry.name]
        return ["open", entry.display()]

    def _freedesktop_command(self, entry: Entry) -> list[str]:
        if isinstance(entry, App):
            gtk_launch = self._which("gtk-launch")
            if gtk_launch is not None:
                return [gtk_launch, entry.name]
            return [entry.name]
        if isinstance(entry, (File, Url)):
            return ["xdg-open", entry.display()]
        raise TypeError(f"unsupported entry type: {type(entry).__name__}")

    def _runs_app_directly(self, entry: Entry, command: list[str] | str) -> bool:
        """True when ``command`` is the application itself rather than an opener."""
        return (
            isinstance(entry, App)
            and self.platform not in (PLATFORM_MACOS, PLATFORM_WINDOWS)
            and command == [entry.name]
        )

    def _spawn_detached(self, entry: Entry, command: list[str]) -> LaunchResult:
        # The app outlives this process; only a failed exec counts as failure.
        self._popen(
            command,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
        return LaunchResult(entry, True)

    def _run_opener(self, entry: Entry, command: list[str]) -> LaunchResult:
        """Run a platform opener and wait for the opener only.

        Openers hand their stdio down to the app they start, so stderr goes to
        a temp file: a pipe would keep ``run`` reading until the app exits.
        """
        with tempfile.TemporaryFile(mode="w+", encoding="utf-8", errors="replace") as stderr_file:
            proc = self._run(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=stderr_file,
                check=False,
            )
            if proc.returncode == 0:
                return LaunchResult(entry, True)
            stderr_file.seek(0)
            stderr = stderr_file.read().strip()

        detail = f"exited with status {proc.returncode}"
        if stderr:
            detail += f": {stderr}"
        return LaunchResult(entry, False, detail)

    def launch(self, entry: Entry) -> LaunchResult:
        """Attempt to open ``entry`` once; never raises for launch failures."""
        command = self.command_for(entry)
        logger.debug("launching %s entry %r with %r", entry.kind, entry.display(), command)
        try:
            if isinstance(command, str):
                # Shell entries keep the terminal for their own output.
                proc = self._run(command, shell=True, stdin=subprocess.DEVNULL, check=False)
                if proc.returncode != 0:
                    return LaunchResult(entry, False, f"exited with status {proc.returncode}")
                return LaunchResult(entry, True)
            if self._runs_app_directly(entry, command):
                return self._spawn_detached(entry, command)
            return self._run_opener(entry, command)
        except OSError as exc:
            return LaunchResult(entry, False, f"failed to start: {exc}")

    def open_entries(self, entries: Iterable[Entry]) -> BatchReport:
        """Attempt every entry in order, logging each failure individually."""
        report = BatchReport()
        for entry in entries:
            result = self.launch(entry)
            if not result.ok:
                logger.warning("could not open %s `%s`: %s", entry.kind, entry.display(), result.detail)
            report.results.append(result)
        return report
