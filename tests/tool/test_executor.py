"""
Unit tests for the tool executor.

The running Python interpreter stands in for the tool binary: it is invoked as
``python -c <script> --output=json`` so the script sees the appended flag in
``sys.argv``.
"""

import io
import json
import logging
import os
import sys
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from spacekit.core.exceptions import ExecError, VersionReportError
from spacekit.tool.executor import (
    OUTPUT_FLAG,
    BinaryHandle,
    CommandExecutor,
    ExecMode,
    ExecResult,
    get_binary_version,
    inspect_binary,
    run,
)


def _executor(python_exe, sink=None, mode=ExecMode.RAISE):
    return CommandExecutor(bin_path=python_exe, mode=mode, forward_to=sink or io.BytesIO())


class TestCommandExecutor:
    """Tests for CommandExecutor.run()."""

    def test_appends_output_flag(self, python_exe):
        """Test --output=json is passed after the caller's arguments."""
        script = "import json, sys; print(json.dumps(sys.argv[1:]))"

        result = _executor(python_exe).run(["-c", script])

        assert json.loads(result.stdout) == [OUTPUT_FLAG]

    def test_success_result(self, python_exe):
        """Test exit code 0 returns captured stdout."""
        script = "print('{\"version\": \"1.2.3\"}')"

        result = _executor(python_exe).run(["-c", script])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"version": "1.2.3"}
        assert result.stderr == ""

    def test_popen_arguments(self, tmp_path):
        """Test the exact argument vector and stdin handling."""
        proc = Mock()
        proc.stdout = io.BytesIO(b"{}")
        proc.stderr = io.BytesIO(b"")
        proc.wait.return_value = 0

        with patch("spacekit.tool.executor.subprocess.Popen", return_value=proc) as popen:
            CommandExecutor(bin_path="/opt/namespace/bin/spacectl").run(
                ["auth", "login"], cwd=tmp_path
            )

        args, kwargs = popen.call_args
        assert args[0] == ["/opt/namespace/bin/spacectl", "auth", "login", OUTPUT_FLAG]
        assert kwargs["cwd"] == str(tmp_path)
        assert kwargs["env"] is None
        assert kwargs["stdin"] is not None

    def test_default_binary_is_tool_name(self):
        """Test the binary defaults to the tool name on PATH."""
        assert CommandExecutor().bin_path == "spacectl"

    def test_failure_uses_json_message(self, python_exe):
        """Test a JSON error message on stdout becomes the error message."""
        script = "import sys; print('{\"message\": \"not logged in\"}'); sys.exit(2)"

        with pytest.raises(ExecError) as exc_info:
            _executor(python_exe).run(["-c", script])

        error = exc_info.value
        assert error.message == "not logged in"
        assert str(error) == "not logged in"
        assert error.exit_code == 2
        assert "not logged in" in error.stdout
        assert error.command.endswith(OUTPUT_FLAG)

    def test_failure_default_message(self, python_exe):
        """Test non-JSON output falls back to a generic message."""
        script = "import sys; print('plain text'); sys.exit(3)"

        with pytest.raises(ExecError) as exc_info:
            _executor(python_exe).run(["-c", script])

        command = f"{python_exe} -c {script} {OUTPUT_FLAG}"
        assert exc_info.value.message == f"'{command}' failed with exit code 3"
        assert exc_info.value.exit_code == 3

    def test_failure_json_without_message(self, python_exe):
        """Test JSON output without a message uses the generic message."""
        script = "import sys; print('{\"code\": 1}'); sys.exit(1)"

        with pytest.raises(ExecError, match="failed with exit code 1"):
            _executor(python_exe).run(["-c", script])

    def test_stderr_forwarded_and_captured(self, python_exe):
        """Test stderr bytes reach the forward target unmodified."""
        script = "import sys; sys.stderr.write('::debug::hello\\n::add-mask::x\\n')"
        sink = io.BytesIO()

        result = _executor(python_exe, sink).run(["-c", script])

        assert sink.getvalue() == b"::debug::hello\n::add-mask::x\n"
        assert result.stderr == "::debug::hello\n::add-mask::x\n"

    def test_stderr_forwarded_on_failure(self, python_exe):
        """Test stderr is forwarded and kept on the error when the child fails."""
        script = "import sys; sys.stderr.write('::error::bad\\n'); sys.exit(4)"
        sink = io.BytesIO()

        with pytest.raises(ExecError) as exc_info:
            _executor(python_exe, sink).run(["-c", script])

        assert sink.getvalue() == b"::error::bad\n"
        assert exc_info.value.stderr == "::error::bad\n"

    def test_stderr_text_fallback(self, python_exe, monkeypatch):
        """Test forwarding to a text-only stdout."""
        script = "import sys; sys.stderr.write('::debug::text\\n')"
        fake_stdout = io.StringIO()
        monkeypatch.setattr(sys, "stdout", fake_stdout)

        CommandExecutor(bin_path=python_exe).run(["-c", script])

        assert fake_stdout.getvalue() == "::debug::text\n"

    def test_large_output_on_both_streams(self, python_exe):
        """Test filling both pipes does not deadlock."""
        script = (
            "import sys; "
            "sys.stderr.write('e' * 200000); sys.stderr.flush(); "
            "sys.stdout.write('o' * 200000)"
        )
        sink = io.BytesIO()

        result = _executor(python_exe, sink).run(["-c", script])

        assert len(result.stdout) == 200000
        assert len(sink.getvalue()) == 200000

    def test_cwd(self, python_exe, tmp_path):
        """Test the working directory is applied."""
        script = "import os; print(os.getcwd())"

        result = _executor(python_exe).run(["-c", script], cwd=tmp_path)

        assert os.path.realpath(result.stdout.strip()) == os.path.realpath(tmp_path)

    def test_env_layered_over_process_env(self, python_exe, monkeypatch):
        """Test extra variables are added without dropping the inherited ones."""
        monkeypatch.setenv("SPACEKIT_INHERITED", "kept")
        script = (
            "import os; "
            "print(os.environ['SPACEKIT_EXTRA'] + ',' + os.environ['SPACEKIT_INHERITED'])"
        )

        result = _executor(python_exe).run(
            ["-c", script], env={"SPACEKIT_EXTRA": "added"}
        )

        assert result.stdout.strip() == "added,kept"

    def test_exit_mode(self, python_exe, caplog):
        """Test EXIT mode logs the message and exits with the child's code."""
        script = "import sys; print('{\"message\": \"quota exceeded\"}'); sys.exit(5)"

        with caplog.at_level(logging.ERROR, logger="spacekit.tool.executor"):
            with pytest.raises(SystemExit) as exc_info:
                _executor(python_exe, mode=ExecMode.EXIT).run(["-c", script])

        assert exc_info.value.code == 5
        assert "quota exceeded" in caplog.text

    def test_mode_override_per_call(self, python_exe):
        """Test a per-call mode overrides the executor default."""
        script = "import sys; sys.exit(1)"
        executor = _executor(python_exe, mode=ExecMode.EXIT)

        with pytest.raises(ExecError):
            executor.run(["-c", script], mode=ExecMode.RAISE)

    def test_missing_binary(self, tmp_path):
        """Test a binary that cannot be started raises ExecError."""
        missing = tmp_path / "missing-spacectl"

        with pytest.raises(ExecError, match="Failed to start") as exc_info:
            CommandExecutor(bin_path=missing).run(["version"])

        assert exc_info.value.exit_code == 127


class TestModuleRun:
    """Tests for the module-level run() helper."""

    def test_run(self, python_exe, monkeypatch):
        """Test run() executes a binary once."""
        monkeypatch.setattr(sys, "stdout", io.StringIO())
        result = run(["-c", "print('ok')"], bin_path=python_exe)

        assert result.stdout.strip() == "ok"

    def test_run_forward_to(self, python_exe):
        """Test run() forwards stderr to the given stream."""
        sink = io.BytesIO()

        result = run(
            ["-c", "import sys; sys.stderr.write('::notice::done')"],
            bin_path=python_exe,
            forward_to=sink,
        )

        assert sink.getvalue() == b"::notice::done"
        assert result.stderr == "::notice::done"


class TestGetBinaryVersion:
    """Tests for get_binary_version()."""

    def test_parses_version(self, version_result):
        """Test the reported version is normalized."""
        executor = Mock(spec=CommandExecutor)
        executor.run.return_value = version_result("v1.2.3")

        assert get_binary_version("/bin/spacectl", executor) == "1.2.3"
        executor.run.assert_called_once_with(
            ["version"], bin_path="/bin/spacectl", mode=ExecMode.RAISE
        )

    def test_real_binary(self, python_exe):
        """Test against a child process printing a version report."""
        script = 'print(\'{"version": "0.0.42"}\')'
        executor = Mock(spec=CommandExecutor)
        executor.run.side_effect = lambda args, bin_path, mode: _executor(python_exe).run(
            ["-c", script], mode=mode
        )

        assert get_binary_version(python_exe, executor) == "0.0.42"

    @pytest.mark.parametrize("stdout", ["not json", "[]", "{}", '{"version": ""}', '{"version": 3}'])
    def test_bad_report(self, stdout):
        """Test unparseable or empty reports raise VersionReportError."""
        executor = Mock(spec=CommandExecutor)
        executor.run.return_value = ExecResult(exit_code=0, stdout=stdout, stderr="")

        with pytest.raises(VersionReportError):
            get_binary_version("/bin/spacectl", executor)

    def test_exec_failure_propagates(self):
        """Test a failing binary surfaces ExecError."""
        executor = Mock(spec=CommandExecutor)
        executor.run.side_effect = ExecError("boom", 1, "", "", "spacectl version")

        with pytest.raises(ExecError):
            get_binary_version("/bin/spacectl", executor)


class TestInspectBinary:
    """Tests for inspect_binary()."""

    def test_returns_handle(self, version_result):
        """Test the binary path is paired with its normalized version."""
        executor = Mock(spec=CommandExecutor)
        executor.run.return_value = version_result("v0.0.42")

        handle = inspect_binary("/bin/spacectl", executor)

        assert handle == BinaryHandle(path=Path("/bin/spacectl"), version="0.0.42")

    def test_bad_report(self):
        """Test report errors propagate."""
        executor = Mock(spec=CommandExecutor)
        executor.run.return_value = ExecResult(exit_code=0, stdout="{}", stderr="")

        with pytest.raises(VersionReportError):
            inspect_binary("/bin/spacectl", executor)
