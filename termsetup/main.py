"""
terminal-setup — CLI entrypoint.

Usage:
    terminal-setup --help
    terminal-setup run
    terminal-setup run --yes
    terminal-setup summary
"""

from __future__ import annotations

import json
import os
import signal
import sys
from collections.abc import Callable
from pathlib import Path

import click

from termsetup import __version__
from termsetup.core.observability.logging_config import setup_logging

LOG_LEVEL_ENV_VAR = "TERMSETUP_LOG_LEVEL"


def _raise_interrupt(signum, frame) -> None:
    raise KeyboardInterrupt


@click.group()
@click.version_option(version=__version__, prog_name="terminal-setup")
@click.option("--verbose", "-v", is_flag=True, help="Show diagnostic messages.")
@click.option("--quiet", "-q", is_flag=True, help="Only show errors.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, dir_okay=False),
    default=None,
    help="Path to the settings file (default: $TERMSETUP_CONFIG or ~/.config/terminal-setup/config.yml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """Set up zsh, Oh My Zsh, Powerlevel10k, fonts and Ruby tooling."""
    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup ───────────────────────────────────────────
    if debug:
        flag_level: str | None = "DEBUG"
    elif verbose:
        flag_level = "INFO"
    elif quiet:
        flag_level = "ERROR"
    else:
        flag_level = None
    level = flag_level or os.environ.get(LOG_LEVEL_ENV_VAR, "WARNING")
    ctx.obj["log_level"] = level
    # Only a level chosen by flag travels with a handoff; the env var is inherited
    ctx.obj["flag_level"] = flag_level

    setup_logging(
        level=level,
        quiet_third_party=not debug,
        run_echo_level="ERROR" if quiet else "INFO",
    )


def _configure_run_logging(ctx: click.Context) -> Callable[[Path], None]:
    """Re-run ``setup_logging`` once the run's log file is known."""

    def configure(log_file: Path) -> None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        setup_logging(
            level=ctx.obj["log_level"],
            log_file=str(log_file),
            quiet_third_party=not ctx.obj["debug"],
            run_echo_level="ERROR" if ctx.obj["quiet"] else "INFO",
        )

    return configure


@cli.command()
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Answer yes to every prompt.")
@click.option(
    "--non-interactive",
    is_flag=True,
    help="Never prompt; take each prompt's default answer.",
)
@click.option(
    "--on-missing-dependency",
    type=click.Choice(["skip", "abort"]),
    default=None,
    help="What to do when a step's prerequisite is missing (default: skip).",
)
@click.option(
    "--resume",
    "resume_path",
    type=click.Path(exists=False, dir_okay=False),
    default=None,
    hidden=True,
    help="Continue a run from a resume token (used by the zsh handoff).",
)
@click.pass_context
def run(
    ctx: click.Context,
    assume_yes: bool,
    non_interactive: bool,
    on_missing_dependency: str | None,
    resume_path: str | None,
) -> None:
    """Install and configure the terminal environment."""
    from termsetup.core.observability.run_log import RunLog
    from termsetup.core.use_cases.setup import SetupOptions, run_setup

    if assume_yes and non_interactive:
        raise click.UsageError("--yes and --non-interactive are mutually exclusive")

    options = SetupOptions(
        confirm_mode="yes" if assume_yes else "defaults" if non_interactive else "ask",
        on_missing_dependency=on_missing_dependency,  # type: ignore[arg-type]
        config_path=ctx.obj.get("config_path"),
        resume_path=Path(resume_path) if resume_path else None,
        log_level=ctx.obj.get("flag_level"),
        quiet=ctx.obj.get("quiet", False),
    )

    previous = signal.signal(signal.SIGTERM, _raise_interrupt)
    try:
        result = run_setup(options, configure_logging=_configure_run_logging(ctx))
    except (KeyboardInterrupt, click.Abort):
        click.echo()
        RunLog().warning("Setup interrupted by user")
        sys.exit(1)
    finally:
        signal.signal(signal.SIGTERM, previous)

    sys.exit(result.exit_code)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def summary(ctx: click.Context, as_json: bool) -> None:
    """Show which components are installed, without changing anything."""
    from termsetup.core.use_cases.setup import SetupOptions, show_summary

    result = show_summary(
        SetupOptions(config_path=ctx.obj.get("config_path")), echo=not as_json,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))

    sys.exit(result.exit_code)


if __name__ == "__main__":
    cli()
