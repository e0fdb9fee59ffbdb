"""
Tests for the confirmation gate.
"""

from unittest.mock import patch

import pytest

from termsetup.ui.cli.gate import ConfirmationGate, parse_answer, prompt_suffix


class TestParseAnswer:
    @pytest.mark.parametrize("raw", ["y", "Y", "yes", "YES", " Yes "])
    def test_yes(self, raw):
        assert parse_answer(raw, None) is True

    @pytest.mark.parametrize("raw", ["n", "N", "no", "No"])
    def test_no(self, raw):
        assert parse_answer(raw, True) is False

    def test_empty_takes_default(self):
        assert parse_answer("", True) is True
        assert parse_answer("", False) is False
        assert parse_answer("  ", None) is None

    def test_garbage_asks_again(self):
        assert parse_answer("maybe", True) is None


class TestPromptSuffix:
    def test_suffixes(self):
        assert prompt_suffix(True) == "[Y/n]"
        assert prompt_suffix(False) == "[y/N]"
        assert prompt_suffix(None) == "[y/n]"


class TestConfirmationGate:
    def test_yes_mode_never_prompts(self):
        gate = ConfirmationGate("yes")
        with patch("termsetup.ui.cli.gate.click.prompt") as prompt:
            assert gate.confirm("Install?", False) is True
        prompt.assert_not_called()

    def test_defaults_mode(self):
        gate = ConfirmationGate("defaults")
        assert gate.confirm("Install?", True) is True
        assert gate.confirm("Install?", False) is False
        assert gate.confirm("Install?") is False
        assert gate.interactive is False

    def test_ask_loops_until_valid(self):
        gate = ConfirmationGate()
        answers = iter(["maybe", "", "YES"])
        with patch("termsetup.ui.cli.gate.click.prompt", side_effect=lambda *a, **k: next(answers)) as prompt, \
                patch("termsetup.ui.cli.gate.click.echo") as echo:
            assert gate.confirm("Install?") is True
        assert prompt.call_count == 3
        assert echo.call_count == 2
        echo.assert_called_with("Please answer yes or no.")

    def test_ask_empty_uses_default(self):
        gate = ConfirmationGate()
        with patch("termsetup.ui.cli.gate.click.prompt", return_value="") as prompt:
            assert gate.confirm("Install Zsh?", True) is True
        assert prompt.call_args.args[0] == "Install Zsh? [Y/n]"
