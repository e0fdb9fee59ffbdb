"""
Tests for the individual installation steps (perform / precondition / verify).
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from termsetup.core.errors import CorruptArchive, DownloadFailed, ExternalToolFailure
from termsetup.core.models.platform import OSFamily
from termsetup.core.services.bootstrap.orchestration.steps import (
    ColorlsStep,
    DefaultShellStep,
    FontStep,
    FrameworkStep,
    PluginsStep,
    PromptThemeStep,
    RubyStep,
    TerminalThemeStep,
    ZshStep,
    build_default_steps,
)
from tests.conftest import FakeFetcher, font_zip, make_tool

LOGIN_SHELL = "termsetup.core.services.bootstrap.detection.environment.login_shell"


def _framework(ctx) -> None:
    """Simulate an installed framework with a stock .zshrc."""
    (ctx.framework_dir / "custom").mkdir(parents=True)
    ctx.zshrc.write_text(
        'export ZSH="$HOME/.oh-my-zsh"\n'
        'ZSH_THEME="robbyrussell"\n'
        "plugins=(git)\n"
        "source $ZSH/oh-my-zsh.sh\n"
    )


class TestCatalogue:
    def test_order(self):
        names = [s.name for s in build_default_steps()]
        assert names == [
            "zsh", "default-shell", "terminal-theme", "framework", "font",
            "prompt-theme", "plugins", "ruby", "colorls",
        ]

    def test_only_zsh_is_mandatory(self):
        assert [s.name for s in build_default_steps() if s.mandatory] == ["zsh"]

    def test_dependencies(self):
        requires = {s.name: s.requires for s in build_default_steps() if s.requires}
        assert requires == {"prompt-theme": "framework", "plugins": "framework", "colorls": "ruby"}

    def test_plugin_prompt_lists_names(self):
        step = PluginsStep(["a", "b"])
        assert step.prompt == "Would you like to install a and b plugins?"


class TestZshStep:
    def test_present(self, ctx, bin_dir):
        make_tool(bin_dir, "zsh")
        assert ZshStep().precondition(ctx)

    def test_installs_with_package_manager(self, ctx, runner, bin_dir):
        runner.on(["apt-get", "install"], effect=lambda cmd: make_tool(bin_dir, "zsh"))
        runner.on(["dpkg-query"], stdout="install ok installed")
        step = ZshStep()
        step.perform(ctx)
        assert step.verify(ctx)
        assert runner.ran("dpkg-query", "-W")

    def test_verify_consults_package_database(self, ctx, runner, bin_dir):
        make_tool(bin_dir, "zsh")
        runner.on(["dpkg-query"], stdout="deinstall ok config-files")
        assert not ZshStep().verify(ctx)

    def test_verify_brew(self, make_ctx, runner, bin_dir):
        make_tool(bin_dir, "zsh")
        ctx = make_ctx(os_family=OSFamily.MACOS, manager="brew")
        assert ZshStep().verify(ctx)
        assert runner.commands == [["brew", "ls", "--versions", "zsh"]]

    def test_privileges_follow_manager(self, make_ctx):
        assert ZshStep().privileges_required(make_ctx(manager="apt"))
        assert not ZshStep().privileges_required(make_ctx(os_family=OSFamily.MACOS, manager="brew"))


class TestDefaultShellStep:
    def test_adds_to_shells_file_and_chsh(self, ctx, runner, bin_dir, tmp_path: Path):
        zsh = make_tool(bin_dir, "zsh")
        shells = tmp_path / "shells"
        shells.write_text("/bin/sh\n/bin/bash\n")
        step = DefaultShellStep(shells_file=str(shells))

        assert step.privileges_required(ctx)
        step.perform(ctx)

        append = runner.calls[0]
        assert append.cmd[:2] == ["sh", "-c"]
        assert str(zsh) in append.cmd[2]
        assert append.sudo is True
        assert ["chsh", "-s", str(zsh)] in runner.commands

    def test_already_listed(self, ctx, runner, bin_dir, tmp_path: Path):
        zsh = make_tool(bin_dir, "zsh")
        shells = tmp_path / "shells"
        shells.write_text(f"/bin/bash\n{zsh}\n")
        step = DefaultShellStep(shells_file=str(shells))

        assert not step.privileges_required(ctx)
        step.perform(ctx)
        assert runner.commands == [["chsh", "-s", str(zsh)]]

    def test_chsh_failure(self, ctx, runner, bin_dir, tmp_path: Path):
        zsh = make_tool(bin_dir, "zsh")
        shells = tmp_path / "shells"
        shells.write_text(f"{zsh}\n")
        runner.fail(["chsh"])
        with pytest.raises(ExternalToolFailure, match="chsh -s"):
            DefaultShellStep(shells_file=str(shells)).perform(ctx)

    def test_precondition_reads_login_shell(self, ctx):
        with patch(LOGIN_SHELL, return_value="/usr/bin/zsh"):
            assert DefaultShellStep().precondition(ctx)
        with patch(LOGIN_SHELL, return_value="/bin/bash"):
            assert not DefaultShellStep().precondition(ctx)

    def test_not_applicable_without_zsh(self, ctx):
        assert not DefaultShellStep().applies(ctx)


class TestTerminalThemeStep:
    def test_linux_not_applicable(self, ctx):
        step = TerminalThemeStep()
        assert not step.applies(ctx)
        assert "manually" in step.not_applicable(ctx)

    def test_macos_downloads_and_opens(self, make_ctx, runner):
        ctx = make_ctx(os_family=OSFamily.MACOS, manager="brew")
        ctx.fetch = FakeFetcher({ctx.settings.terminal_theme_url: b"<plist/>"})
        step = TerminalThemeStep()

        step.perform(ctx)
        theme = ctx.home / "Downloads" / "Gruvbox-Dark.terminal"
        assert theme.read_bytes() == b"<plist/>"
        assert runner.commands == [["open", str(theme)]]
        assert step.verify(ctx)


class TestFrameworkStep:
    def test_runs_installer_unattended(self, ctx, runner):
        ctx.fetch = FakeFetcher({ctx.settings.framework_installer_url: b"#!/bin/sh\n"})

        def _install(cmd):
            (ctx.framework_dir / "custom").mkdir(parents=True)
            ctx.zshrc.write_text("source $ZSH/oh-my-zsh.sh\n")

        runner.on(["sh"], effect=_install)
        step = FrameworkStep()
        step.perform(ctx)

        call = runner.calls[0]
        assert call.cmd[-1] == "--unattended"
        assert call.env["RUNZSH"] == "no"
        assert call.env["CHSH"] == "no"
        assert call.env["ZSH"] == str(ctx.framework_dir)
        assert not Path(call.cmd[1]).exists()
        assert step.verify(ctx)

    def test_backs_up_zshrc(self, ctx, runner):
        ctx.zshrc.write_text("# mine\n")
        ctx.fetch = FakeFetcher({ctx.settings.framework_installer_url: b"#!/bin/sh\n"})
        FrameworkStep().perform(ctx)
        assert ctx.backups.record_for(ctx.zshrc) is not None

    def test_download_failure(self, ctx, runner):
        with pytest.raises(DownloadFailed):
            FrameworkStep().perform(ctx)
        assert runner.call_count == 0

    def test_installer_failure(self, ctx, runner):
        ctx.fetch = FakeFetcher({ctx.settings.framework_installer_url: b"#!/bin/sh\n"})
        runner.fail(["sh"])
        with pytest.raises(ExternalToolFailure):
            FrameworkStep().perform(ctx)


class TestFontStep:
    def test_installs_ttf_files(self, ctx, runner, bin_dir):
        make_tool(bin_dir, "fc-cache")
        ctx.fetch = FakeFetcher({ctx.settings.font.url: font_zip()})
        step = FontStep()

        message = step.perform(ctx)
        fonts = ctx.home / ".local" / "share" / "fonts"
        assert sorted(p.name for p in fonts.iterdir()) == [
            "HackNerdFont-Bold.ttf", "HackNerdFont-Regular.ttf",
        ]
        assert "2 files" in message
        assert runner.ran(str(bin_dir / "fc-cache"))
        assert step.verify(ctx)

    def test_macos_font_dir(self, make_ctx):
        ctx = make_ctx(os_family=OSFamily.MACOS, manager="brew")
        ctx.fetch = FakeFetcher({ctx.settings.font.url: font_zip()})
        FontStep().perform(ctx)
        assert (ctx.home / "Library" / "Fonts" / "HackNerdFont-Regular.ttf").is_file()

    def test_corrupt_archive_rejected_before_extraction(self, ctx):
        ctx.fetch = FakeFetcher({ctx.settings.font.url: b"<html>rate limited</html>" * 10})
        with pytest.raises(CorruptArchive):
            FontStep().perform(ctx)
        assert not (ctx.home / ".local" / "share" / "fonts").exists()

    def test_short_archive_rejected(self, make_ctx):
        from termsetup.core.models.settings import Settings

        ctx = make_ctx(settings_override=Settings())
        ctx.fetch = FakeFetcher({ctx.settings.font.url: font_zip()})
        with pytest.raises(CorruptArchive):
            FontStep().perform(ctx)
        assert not (ctx.home / ".local" / "share" / "fonts").exists()

    def test_missing_fc_cache_is_warning(self, ctx, runner):
        ctx.fetch = FakeFetcher({ctx.settings.font.url: font_zip()})
        FontStep().perform(ctx)
        assert runner.call_count == 0


class TestPromptThemeStep:
    def test_clones_and_sets_theme(self, ctx, runner, bin_dir):
        make_tool(bin_dir, "git")
        _framework(ctx)
        target = ctx.custom_dir / "themes" / "powerlevel10k"
        runner.on(["git", "clone"], effect=lambda cmd: Path(cmd[-1]).mkdir(parents=True))
        step = PromptThemeStep()

        step.perform(ctx)
        assert ["git", "clone", "--depth=1", ctx.settings.prompt_theme.url, str(target)] in runner.commands
        assert 'ZSH_THEME="powerlevel10k/powerlevel10k"' in ctx.zshrc.read_text()
        assert step.verify(ctx)

    def test_respects_zsh_custom(self, make_ctx, runner, bin_dir, tmp_path: Path):
        make_tool(bin_dir, "git")
        custom = tmp_path / "custom"
        ctx = make_ctx(env={"ZSH_CUSTOM": str(custom)})
        _framework(ctx)
        PromptThemeStep().perform(ctx)
        assert runner.commands[0][-1] == str(custom / "themes" / "powerlevel10k")

    def test_existing_clone_only_sets_theme(self, ctx, runner):
        _framework(ctx)
        (ctx.custom_dir / "themes" / "powerlevel10k").mkdir(parents=True)
        PromptThemeStep().perform(ctx)
        assert runner.call_count == 0


class TestPluginsStep:
    def test_clones_missing_and_enables(self, ctx, runner, bin_dir):
        make_tool(bin_dir, "git")
        _framework(ctx)
        (ctx.custom_dir / "plugins" / "zsh-syntax-highlighting").mkdir(parents=True)
        runner.on(["git", "clone"], effect=lambda cmd: Path(cmd[-1]).mkdir(parents=True))
        step = PluginsStep()

        step.perform(ctx)
        cloned = [c[-1] for c in runner.commands]
        assert cloned == [str(ctx.custom_dir / "plugins" / "zsh-autosuggestions")]
        assert "plugins=(git zsh-syntax-highlighting zsh-autosuggestions)" in ctx.zshrc.read_text()
        assert step.verify(ctx)

    def test_clone_failure(self, ctx, runner, bin_dir):
        make_tool(bin_dir, "git")
        _framework(ctx)
        runner.fail(["git", "clone"], stderr="fatal: unable to access")
        with pytest.raises(ExternalToolFailure):
            PluginsStep().perform(ctx)
        assert "zsh-syntax-highlighting" not in ctx.zshrc.read_text()

    def test_git_missing(self, ctx):
        _framework(ctx)
        with pytest.raises(ExternalToolFailure, match="git"):
            PluginsStep().perform(ctx)


class TestRubyStep:
    def _script_rbenv(self, ctx, runner, bin_dir, listing: str) -> None:
        rbenv_root = ctx.home / ".rbenv"

        def _clone(cmd):
            Path(cmd[-1]).mkdir(parents=True, exist_ok=True)
            if Path(cmd[-1]) == rbenv_root:
                make_tool(rbenv_root / "bin", "rbenv")

        runner.on(["git", "clone"], effect=_clone)
        runner.on([str(rbenv_root / "bin" / "rbenv"), "install", "-l"], stdout=listing)
        runner.on(
            [str(rbenv_root / "bin" / "rbenv"), "install", "-s"],
            effect=lambda cmd: make_tool(rbenv_root / "shims", "ruby"),
        )

    def test_linux_source_install(self, ctx, runner, bin_dir):
        make_tool(bin_dir, "git")
        self._script_rbenv(ctx, runner, bin_dir, "3.1.0\n3.2.0-rc1\n3.2.0\n3.1.9\n")
        step = RubyStep()

        assert step.perform(ctx) == "Installed Ruby 3.2.0"
        rbenv = str(ctx.home / ".rbenv" / "bin" / "rbenv")
        assert [rbenv, "install", "-s", "3.2.0"] in runner.commands
        assert [rbenv, "global", "3.2.0"] in runner.commands
        build = next(c for c in runner.calls if c.cmd[:3] == [rbenv, "install", "-s"])
        assert build.timeout == ctx.settings.timeouts.build

        text = ctx.zshrc.read_text()
        assert 'export PATH="$HOME/.rbenv/bin:$PATH"' in text
        assert 'eval "$(rbenv init - zsh)"' in text
        assert ctx.env["PATH"].split(":")[0] == str(ctx.home / ".rbenv" / "shims")
        assert step.verify(ctx)

    def test_config_lines_once(self, ctx, runner, bin_dir):
        make_tool(bin_dir, "git")
        self._script_rbenv(ctx, runner, bin_dir, "3.3.0\n")
        RubyStep().perform(ctx)
        RubyStep().perform(ctx)
        assert ctx.zshrc.read_text().count("rbenv init") == 1

    def test_no_stable_version(self, ctx, runner, bin_dir):
        make_tool(bin_dir, "git")
        self._script_rbenv(ctx, runner, bin_dir, "jruby-9.4.0.0\n")
        with pytest.raises(ExternalToolFailure, match="latest Ruby version"):
            RubyStep().perform(ctx)

    def test_macos_uses_brew(self, make_ctx, runner, bin_dir):
        ctx = make_ctx(os_family=OSFamily.MACOS, manager="brew")
        runner.on(["brew", "install", "rbenv"], effect=lambda cmd: make_tool(bin_dir, "rbenv"))
        runner.on([str(bin_dir / "rbenv"), "install", "-l"], stdout="3.3.1\n")
        RubyStep().perform(ctx)
        assert ["brew", "install", "rbenv"] in runner.commands
        assert not runner.ran("git", "clone")


class TestColorlsStep:
    def test_installs_gem_and_aliases(self, ctx, runner, bin_dir):
        gem = make_tool(bin_dir, "gem")
        runner.on([str(gem), "install"], effect=lambda cmd: make_tool(bin_dir, "colorls"))
        step = ColorlsStep()

        step.perform(ctx)
        text = ctx.zshrc.read_text()
        for alias in ctx.settings.colorls_aliases:
            assert text.count(alias) == 1
        assert "# Colorls aliases" in text
        assert step.verify(ctx)

    def test_aliases_guarded_by_first(self, ctx, bin_dir):
        make_tool(bin_dir, "colorls")
        ctx.zshrc.write_text("alias ls='colorls'\n")
        ColorlsStep().perform(ctx)
        assert ctx.zshrc.read_text() == "alias ls='colorls'\n"

    def test_gem_failure(self, ctx, runner, bin_dir):
        gem = make_tool(bin_dir, "gem")
        runner.fail([str(gem), "install"])
        with pytest.raises(ExternalToolFailure, match="colorls"):
            ColorlsStep().perform(ctx)
        assert not ctx.zshrc.exists()

    def test_gem_list_probe(self, ctx, runner, bin_dir):
        make_tool(bin_dir, "gem")
        runner.on(["gem", "list", "-i", "colorls"], stdout="true\n")
        ctx.zshrc.write_text("alias ls='colorls'\n")
        assert ColorlsStep().precondition(ctx)
