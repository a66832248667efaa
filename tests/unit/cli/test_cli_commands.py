"""CLI dispatch tests for open, choose, list and completions.

Launches are recorded rather than spawned; the chooser is replaced by a stub
returning canned outcomes.
"""

from __future__ import annotations

import io
import os
import subprocess
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from kozutsumi import cli
from kozutsumi.chooser import Cancelled, FinderFailed, NoneSelected, Selected
from kozutsumi.entry import App
from kozutsumi.errors import ChooserError, LaunchError, ParcelNotFound
from kozutsumi.launcher import Launcher
from kozutsumi.store import ParcelStore

CONFIG_TEXT = (
    "parcels:\n"
    "  work:\n"
    "    - Slack\n"
    "    - Broken\n"
    "    - https://github.com\n"
    "  home:\n"
    "    - Music\n"
    "  dead:\n"
    "    - Broken\n"
    "  ops:\n"
    "    - 'sh: uptime'\n"
)


class RecordingRun:
    def __init__(self, fail_on: set[str] | None = None) -> None:
        self.targets: list[str] = []
        self.fail_on = fail_on or {"Broken"}

    def __call__(self, command, **kwargs):
        target = command if isinstance(command, str) else command[-1]
        self.targets.append(target)
        return subprocess.CompletedProcess(command, 1 if target in self.fail_on else 0, stderr="")


class StubChooser:
    def __init__(self, outcome) -> None:
        self.outcome = outcome
        self.calls: list[tuple[list[str], bool]] = []

    def choose(self, candidates, multi=False):
        self.calls.append((list(candidates), multi))
        return self.outcome


def _store() -> ParcelStore:
    return ParcelStore.from_mapping(
        {"work": ["Slack", "Broken", "https://github.com"], "home": ["Music"], "dead": ["Broken"]}
    )


class OpenParcelTests(unittest.TestCase):
    def test_partial_failure_attempts_all_entries_and_warns(self) -> None:
        run = RecordingRun()
        with self.assertLogs("kozutsumi", level="WARNING") as logs:
            report = cli.open_parcel(_store(), "work", Launcher(platform="darwin", run=run))
        self.assertEqual(run.targets, ["Slack", "Broken", "https://github.com"])
        self.assertEqual(report.attempted, 3)
        self.assertTrue(any("opened 2 of 3" in line for line in logs.output))

    def test_every_entry_failing_raises_launch_error(self) -> None:
        run = RecordingRun()
        with self.assertLogs("kozutsumi", level="WARNING"), self.assertRaises(LaunchError):
            cli.open_parcel(_store(), "dead", Launcher(platform="darwin", run=run))

    def test_unknown_parcel_raises_not_found(self) -> None:
        with self.assertRaises(ParcelNotFound):
            cli.open_parcel(_store(), "garden", Launcher(platform="darwin", run=RecordingRun()))

    def test_empty_parcel_is_informational(self) -> None:
        store = ParcelStore.from_mapping({"empty": []})
        stderr = io.StringIO()
        with mock.patch("sys.stderr", stderr):
            report = cli.open_parcel(store, "empty", Launcher(platform="darwin", run=RecordingRun()))
        self.assertEqual(report.attempted, 0)
        self.assertIn("no entries", stderr.getvalue())


class ChooseParcelsTests(unittest.TestCase):
    def test_selected_names_are_opened_in_finder_order(self) -> None:
        run = RecordingRun(fail_on=set())
        chooser = StubChooser(Selected(("home", "work")))
        opened = cli.choose_parcels(_store(), chooser, multi=True, launcher=Launcher(platform="darwin", run=run))

        self.assertEqual(opened, ["home", "work"])
        self.assertEqual(run.targets, ["Music", "Slack", "Broken", "https://github.com"])
        self.assertEqual(chooser.calls, [(["work", "home", "dead"], True)])

    def test_cancel_and_no_match_print_neutral_message(self) -> None:
        for outcome in (Cancelled(), NoneSelected()):
            with self.subTest(outcome=outcome):
                run = RecordingRun()
                stderr = io.StringIO()
                with mock.patch("sys.stderr", stderr):
                    opened = cli.choose_parcels(
                        _store(), StubChooser(outcome), launcher=Launcher(platform="darwin", run=run)
                    )
                self.assertEqual(opened, [])
                self.assertEqual(run.targets, [])
                self.assertEqual(stderr.getvalue(), "No parcel selected.\n")

    def test_finder_failure_is_a_hard_error(self) -> None:
        with self.assertRaises(ChooserError) as ctx:
            cli.choose_parcels(_store(), StubChooser(FinderFailed("fzf failed with status: 2", 2)))
        self.assertEqual(ctx.exception.returncode, 2)

    def test_empty_store_never_consults_the_chooser(self) -> None:
        chooser = StubChooser(Selected(("x",)))
        stderr = io.StringIO()
        with mock.patch("sys.stderr", stderr):
            opened = cli.choose_parcels(ParcelStore.from_mapping({}), chooser)
        self.assertEqual(opened, [])
        self.assertEqual(chooser.calls, [])
        self.assertIn("No parcels available", stderr.getvalue())

    def test_multi_selection_keeps_going_after_a_dead_parcel(self) -> None:
        run = RecordingRun()
        chooser = StubChooser(Selected(("dead", "home")))
        with self.assertLogs("kozutsumi", level="WARNING"), self.assertRaises(LaunchError) as ctx:
            cli.choose_parcels(_store(), chooser, multi=True, launcher=Launcher(platform="darwin", run=run))
        self.assertEqual(run.targets, ["Broken", "Music"])
        self.assertIn("dead", str(ctx.exception))

    def test_unknown_selected_name_does_not_stop_later_parcels(self) -> None:
        run = RecordingRun()
        chooser = StubChooser(Selected(("gone", "home")))
        with self.assertLogs("kozutsumi", level="ERROR") as logs, self.assertRaises(LaunchError) as ctx:
            cli.choose_parcels(_store(), chooser, multi=True, launcher=Launcher(platform="darwin", run=run))
        self.assertEqual(run.targets, ["Music"])
        self.assertIn("gone", str(ctx.exception))
        self.assertNotIn("home", str(ctx.exception))
        self.assertIn("Parcel `gone` not found", logs.output[0])


class MainTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.config_path = Path(self._tmp.name) / "parcel.yml"
        self.config_path.write_text(CONFIG_TEXT, encoding="utf-8")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _run(self, *argv: str) -> tuple[str, str]:
        stdout = io.StringIO()
        stderr = io.StringIO()
        with mock.patch("sys.stdout", stdout), mock.patch("sys.stderr", stderr):
            cli.main(["--config", str(self.config_path), *argv])
        return stdout.getvalue(), stderr.getvalue()

    def test_list_one_parcel_is_the_preview_contract(self) -> None:
        stdout, _ = self._run("list", "work")
        self.assertEqual(stdout, "- Slack\n- Broken\n- https://github.com\n")

    def test_list_all_and_names(self) -> None:
        stdout, _ = self._run("list")
        self.assertTrue(stdout.startswith("work:\n- Slack\n"))
        self.assertIn("ops:\n- sh: uptime\n", stdout)
        names, _ = self._run("list", "--names")
        self.assertEqual(names, "work\nhome\ndead\nops\n")

    def test_list_json(self) -> None:
        stdout, _ = self._run("list", "--json", "home")
        self.assertEqual(stdout, '["Music"]\n')

    def test_list_color_always_emits_ansi(self) -> None:
        stdout, _ = self._run("list", "--color=always")
        self.assertIn("\x1b[", stdout)

    def test_allow_shell_flag_and_env_strip_the_marker(self) -> None:
        stdout, _ = self._run("--allow-shell", "list", "ops")
        self.assertEqual(stdout, "- uptime\n")
        with mock.patch.dict(os.environ, {"KOZUTSUMI_ALLOW_SHELL": "1"}):
            stdout, _ = self._run("list", "ops")
        self.assertEqual(stdout, "- uptime\n")

    def test_unknown_parcel_exits_with_available_names(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            self._run("open", "garden")
        message = str(ctx.exception.code)
        for name in ("work", "home", "dead", "ops"):
            self.assertIn(name, message)

    def test_open_dispatches_to_launcher(self) -> None:
        launcher = mock.Mock(spec=Launcher)
        launcher.open_entries.return_value = mock.Mock(all_failed=False, failures=[], attempted=1)
        with mock.patch("kozutsumi.cli.Launcher", return_value=launcher):
            self._run("open", "home")
        launcher.open_entries.assert_called_once_with((App("Music"),))

    def test_choose_builds_chooser_for_config_and_reports_failures(self) -> None:
        chooser = StubChooser(FinderFailed("fzf failed with status: 2", 2))
        with mock.patch("kozutsumi.cli.FzfChooser", return_value=chooser) as factory:
            with self.assertRaises(SystemExit) as ctx:
                self._run("choose", "--multi")
        self.assertEqual(str(ctx.exception.code), "fzf failed with status: 2")
        factory.assert_called_once_with(self.config_path, allow_shell=False, finder="fzf")
        self.assertEqual(chooser.calls[0][1], True)

    def test_missing_config_exits_with_message(self) -> None:
        missing = Path(self._tmp.name) / "missing.yml"
        with self.assertRaises(SystemExit) as ctx:
            cli.main(["--config", str(missing), "list"])
        self.assertIn("Config file not found", str(ctx.exception.code))

    def test_completions_do_not_need_a_config(self) -> None:
        stdout = io.StringIO()
        with mock.patch("sys.stdout", stdout):
            cli.main(["--config", "/nonexistent/parcel.yml", "completions", "bash"])
        self.assertIn("complete -F _kozutsumi kozutsumi", stdout.getvalue())

    def test_subcommand_is_required(self) -> None:
        with mock.patch("sys.stderr", io.StringIO()), self.assertRaises(SystemExit) as ctx:
            cli.main([])
        self.assertEqual(ctx.exception.code, 2)


if __name__ == "__main__":
    unittest.main()
