"""
Tests for command runners — shell and mock.
"""

import subprocess
from unittest.mock import MagicMock, patch

from termsetup.adapters.mock import MockCommandRunner
from termsetup.adapters.shell.command import ShellCommandRunner

SUBPROCESS_RUN = "termsetup.adapters.shell.command.subprocess.run"
GETEUID = "termsetup.adapters.shell.command.os.geteuid"


def _completed(returncode: int = 0, stdout: str = "", stderr: str = "") -> MagicMock:
    proc = MagicMock()
    proc.returncode = returncode
    proc.stdout = stdout
    proc.stderr = stderr
    return proc


class TestShellCommandRunner:
    def test_success_captures_output(self):
        with patch(SUBPROCESS_RUN, return_value=_completed(stdout="zsh 5.9\n")) as run:
            result = ShellCommandRunner().run(["zsh", "--version"], timeout=5)
        assert result.ok
        assert result.stdout == "zsh 5.9\n"
        kwargs = run.call_args.kwargs
        assert kwargs["capture_output"] is True
        assert kwargs["timeout"] == 5
        assert kwargs["stdin"] == subprocess.DEVNULL

    def test_non_zero_exit(self):
        with patch(SUBPROCESS_RUN, return_value=_completed(100, stderr="E: locked\n")):
            result = ShellCommandRunner().run(["apt-get", "install", "-y", "zsh"], timeout=5)
        assert result.failed
        assert result.returncode == 100
        assert result.describe() == "Command failed (exit 100): E: locked"

    def test_sudo_uses_cached_credentials(self):
        with patch(SUBPROCESS_RUN, return_value=_completed()) as run, patch(GETEUID, return_value=1000):
            ShellCommandRunner().run(["apt-get", "update"], timeout=5, sudo=True)
        assert run.call_args.args[0] == ["sudo", "-n", "apt-get", "update"]

    def test_sudo_interactive_may_prompt(self):
        with patch(SUBPROCESS_RUN, return_value=_completed()) as run, patch(GETEUID, return_value=1000):
            ShellCommandRunner().run(["chsh", "-s", "/bin/zsh"], timeout=5, sudo=True, interactive=True)
        assert run.call_args.args[0] == ["sudo", "chsh", "-s", "/bin/zsh"]
        assert "capture_output" not in run.call_args.kwargs

    def test_root_skips_sudo(self):
        with patch(SUBPROCESS_RUN, return_value=_completed()) as run, patch(GETEUID, return_value=0):
            ShellCommandRunner().run(["apt-get", "update"], timeout=5, sudo=True)
        assert run.call_args.args[0] == ["apt-get", "update"]

    def test_timeout(self):
        with patch(SUBPROCESS_RUN, side_effect=subprocess.TimeoutExpired(["rbenv"], 3)):
            result = ShellCommandRunner().run(["rbenv", "install", "3.3.0"], timeout=3)
        assert result.failed
        assert "timed out after 3s" in result.error

    def test_not_found(self):
        with patch(SUBPROCESS_RUN, side_effect=FileNotFoundError):
            result = ShellCommandRunner().run(["fc-cache", "-f"], timeout=3)
        assert result.error == "Command not found: fc-cache"

    def test_output_tail_kept(self):
        with patch(SUBPROCESS_RUN, return_value=_completed(stdout="x" * 10000 + "END")):
            result = ShellCommandRunner().run(["ruby-build"], timeout=3)
        assert result.stdout.endswith("END")
        assert len(result.stdout) == 4000


class TestMockCommandRunner:
    def test_default_success(self):
        mock = MockCommandRunner()
        assert mock.run(["anything"], timeout=1).ok
        assert mock.commands == [["anything"]]

    def test_longest_prefix_wins(self):
        mock = MockCommandRunner()
        mock.fail(["git"])
        mock.on(["git", "clone"], stdout="cloned")
        assert mock.run(["git", "clone", "url"], timeout=1).stdout == "cloned"
        assert mock.run(["git", "pull"], timeout=1).failed

    def test_effect_runs_with_argv(self):
        seen: list[list[str]] = []
        mock = MockCommandRunner()
        mock.on(["chsh"], effect=seen.append)
        mock.run(["chsh", "-s", "/bin/zsh"], timeout=1)
        assert seen == [["chsh", "-s", "/bin/zsh"]]

    def test_records_call_details(self):
        mock = MockCommandRunner()
        mock.run(["apt-get", "update"], timeout=9, sudo=True, env={"A": "1"})
        call = mock.calls[0]
        assert call.sudo is True
        assert call.timeout == 9
        assert call.env == {"A": "1"}
        assert mock.ran("apt-get")
        assert not mock.ran("apt-get", "install")

    def test_reset(self):
        mock = MockCommandRunner()
        mock.fail(["x"])
        mock.run(["x"], timeout=1)
        mock.reset()
        assert mock.call_count == 0
        assert mock.run(["x"], timeout=1).ok
