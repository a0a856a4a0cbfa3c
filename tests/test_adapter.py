"""Test the backend command adapter."""

import os
import subprocess
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from vcfront.adapter import STATUS_NOT_FOUND, BackendCommandAdapter
from vcfront.backends import RCSBackend, SCCSBackend
from vcfront.backends.protocol import CommandSpec, LogicalOperation, render_option
from vcfront.errors import BackendCommandFailed, UnsupportedOperation
from vcfront.probes.tools import SubprocessError


def _completed(returncode: int = 0, stdout: str = "") -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess([], returncode, stdout=stdout)


class TestRenderOption:
    """Test option template rendering."""

    def test_literal_flag(self):
        """Templates without parameters render as-is."""
        assert render_option("-f", {}) == "-f"

    def test_value_substituted(self):
        """Parameters are substituted."""
        assert render_option("-r{rev}", {"rev": "1.3"}) == "-r1.3"

    def test_none_and_false_drop_option(self):
        """None or False parameters drop the option."""
        assert render_option("-r{rev}", {"rev": None}) is None
        assert render_option("-r{rev}", {}) is None
        assert render_option("-l{lock}", {"lock": False}) is None

    def test_true_renders_empty(self):
        """True renders the bare flag."""
        assert render_option("-l{lock}", {"lock": True}) == "-l"

    def test_empty_string_kept(self):
        """An empty string still renders the flag."""
        assert render_option("-n{name}:{rev}", {"name": "REL", "rev": ""}) == "-nREL:"


class TestCommandSpec:
    """Test CommandSpec guards and rendering."""

    def test_when_guard(self):
        """Steps with a when-parameter run only if it is truthy."""
        spec = CommandSpec("get", when="keep")
        assert spec.enabled({"keep": True}) is True
        assert spec.enabled({"keep": False}) is False
        assert CommandSpec("get").enabled({}) is True

    def test_render(self):
        """Render keeps option order and drops disabled options."""
        spec = CommandSpec("co", ("-l{lock}", "-r{rev}"))
        assert spec.render({"lock": True, "rev": None}) == ["co", "-l"]


class TestBuildCommands:
    """Test concrete command lines per back-end."""

    def test_rcs_checkout_locked(self, tmp_path: Path):
        """RCS checkout with lock and revision targets the workfile."""
        adapter = BackendCommandAdapter(RCSBackend(), runner=MagicMock())
        file = tmp_path / "f.c"

        commands = adapter.build_commands(LogicalOperation.CHECKOUT, file, lock=True, rev="1.2")

        assert [argv for _, argv in commands] == [["co", "-l", "-r1.2", str(file)]]

    def test_rcs_register_without_comment(self, tmp_path: Path):
        """Register without a comment or revision omits -r, -t and -m."""
        adapter = BackendCommandAdapter(RCSBackend(), runner=MagicMock())
        file = tmp_path / "f.c"

        commands = adapter.build_commands(LogicalOperation.REGISTER, file, keep=True)

        assert commands[0][1] == ["ci", "-i", "-u", str(file)]

    def test_extra_args_before_target(self, tmp_path: Path):
        """Extra switches go after the options and before the file."""
        adapter = BackendCommandAdapter(RCSBackend(), runner=MagicMock())
        file = tmp_path / "f.c"

        commands = adapter.build_commands(LogicalOperation.DIFF, file, ["-u"])

        assert commands[0][1] == ["rcsdiff", "-q", "-u", str(file)]

    def test_sccs_checkin_targets_master(self, tmp_path: Path):
        """SCCS delta runs on the master; the follow-up get only when keeping."""
        (tmp_path / "SCCS").mkdir()
        master = tmp_path / "SCCS" / "s.f.c"
        master.write_text("")
        adapter = BackendCommandAdapter(SCCSBackend(), runner=MagicMock())
        file = tmp_path / "f.c"

        kept = adapter.build_commands(LogicalOperation.CHECKIN, file, comment="msg", keep=True)
        dropped = adapter.build_commands(LogicalOperation.CHECKIN, file, comment="msg", keep=False)

        assert [argv for _, argv in kept] == [
            ["delta", "-ymsg", str(master)],
            ["get", str(master)],
        ]
        assert len(dropped) == 1

    def test_sccs_has_no_assign_name(self, tmp_path: Path):
        """SCCS has no symbolic names."""
        adapter = BackendCommandAdapter(SCCSBackend(), runner=MagicMock())

        assert adapter.supports(LogicalOperation.ASSIGN_NAME) is False
        with pytest.raises(UnsupportedOperation):
            adapter.build_commands(LogicalOperation.ASSIGN_NAME, tmp_path / "f.c", name="X")


class TestRun:
    """Test running operations."""

    def test_runs_in_workfile_directory(self, tmp_path: Path):
        """Commands run with cwd set to the workfile's directory."""
        runner = MagicMock(return_value=_completed(0, "revision 1.1\n"))
        adapter = BackendCommandAdapter(RCSBackend(), runner=runner)
        file = tmp_path / "f.c"

        result = adapter.run(LogicalOperation.CHECKOUT, file, lock=False)

        runner.assert_called_once_with(["co", str(file)], cwd=tmp_path)
        assert result.status == 0
        assert result.output == "revision 1.1\n"
        assert result.command == ["co", str(file)]

    def test_diff_status_one_accepted(self, tmp_path: Path):
        """Diff may exit 1 (differences) without failing."""
        runner = MagicMock(return_value=_completed(1, "< a\n> b\n"))
        adapter = BackendCommandAdapter(RCSBackend(), runner=runner)

        result = adapter.run(LogicalOperation.DIFF, tmp_path / "f.c")

        assert result.status == 1

    def test_failure_raises_with_output(self, tmp_path: Path):
        """A status above the threshold raises BackendCommandFailed."""
        runner = MagicMock(return_value=_completed(1, "co: revision 1.1 already locked by alice\n"))
        adapter = BackendCommandAdapter(RCSBackend(), runner=runner)

        with pytest.raises(BackendCommandFailed) as exc_info:
            adapter.run(LogicalOperation.CHECKOUT, tmp_path / "f.c", lock=True)

        assert exc_info.value.op == "checkout"
        assert exc_info.value.status == 1
        assert "already locked by alice" in exc_info.value.output

    def test_failure_stops_remaining_steps(self, tmp_path: Path):
        """Later steps don't run after a failure."""
        (tmp_path / "SCCS").mkdir()
        (tmp_path / "SCCS" / "s.f.c").write_text("")
        runner = MagicMock(return_value=_completed(1, "ERROR\n"))
        adapter = BackendCommandAdapter(SCCSBackend(), runner=runner)

        with pytest.raises(BackendCommandFailed):
            adapter.run(LogicalOperation.REVERT, tmp_path / "f.c")

        assert runner.call_count == 1

    def test_missing_tool_is_status_127(self, tmp_path: Path):
        """A tool that can't be started fails with status 127."""
        runner = MagicMock(side_effect=SubprocessError("Command not found: rlog"))
        adapter = BackendCommandAdapter(RCSBackend(), runner=runner)

        with pytest.raises(BackendCommandFailed) as exc_info:
            adapter.run(LogicalOperation.PRINT_LOG, tmp_path / "f.c")

        assert exc_info.value.status == STATUS_NOT_FOUND

    def test_transcript_records_commands_and_output(self, tmp_path: Path):
        """Every command line and its output land in the transcript."""
        runner = MagicMock(return_value=_completed(0, "done\n"))
        adapter = BackendCommandAdapter(RCSBackend(), runner=runner)
        file = tmp_path / "f.c"

        adapter.run(LogicalOperation.REVERT, file)

        assert adapter.transcript == [f"$ co -f -u {file}", "done"]
        adapter.clear_transcript()
        assert adapter.transcript == []

    def test_after_hook_runs_on_success(self, tmp_path: Path):
        """SCCS admin removes the original workfile after success."""
        file = tmp_path / "f.c"
        file.write_text("text\n")
        runner = MagicMock(return_value=_completed(0))
        adapter = BackendCommandAdapter(SCCSBackend(), runner=runner)

        adapter.run(LogicalOperation.REGISTER, file, comment="first", keep=False)

        assert not file.exists()
        argv = runner.call_args_list[0].args[0]
        assert argv[:2] == ["admin", "-fb"]
        assert f"-i{file}" in argv
        assert argv[-1] == str(tmp_path / "SCCS" / "s.f.c")

    def test_undecodable_output_is_replaced(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        """Tool output that isn't UTF-8 doesn't break the run."""
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir()
        script = bin_dir / "rcsdiff"
        script.write_text("#!/bin/sh\nprintf 'caf\\351\\n'\nexit 1\n")
        script.chmod(0o755)
        monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ['PATH']}")
        adapter = BackendCommandAdapter(RCSBackend())

        result = adapter.run(LogicalOperation.DIFF, tmp_path / "notes.txt")

        assert result.status == 1
        assert result.output == "caf\ufffd\n"
