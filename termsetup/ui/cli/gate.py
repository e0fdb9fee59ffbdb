"""
Confirmation gate — yes/no prompts with a default answer.

Interactive mode loops until it gets y/yes/n/no (any case) or an empty
line, which selects the default. With no default, an empty line asks
again. The forced modes never read input:

    yes       every prompt is answered yes           (--yes)
    defaults  every prompt takes its default answer  (--non-interactive);
              a prompt without a default is answered no
"""

from __future__ import annotations

import logging
from typing import Literal

import click

logger = logging.getLogger(__name__)

ConfirmMode = Literal["ask", "yes", "defaults"]

_YES = ("y", "yes")
_NO = ("n", "no")


def prompt_suffix(default: bool | None) -> str:
    """The ``[Y/n]``-style hint for a default."""
    if default is True:
        return "[Y/n]"
    if default is False:
        return "[y/N]"
    return "[y/n]"


def parse_answer(raw: str, default: bool | None) -> bool | None:
    """Interpret one line of input. None means "ask again"."""
    answer = raw.strip().lower()
    if not answer:
        return default
    if answer in _YES:
        return True
    if answer in _NO:
        return False
    return None


class ConfirmationGate:
    """Asks the user before every step that changes the system."""

    def __init__(self, mode: ConfirmMode = "ask"):
        self.mode: ConfirmMode = mode

    @property
    def interactive(self) -> bool:
        return self.mode == "ask"

    def confirm(self, prompt: str, default: bool | None = None) -> bool:
        if self.mode == "yes":
            logger.info("%s → yes (forced)", prompt)
            return True
        if self.mode == "defaults":
            answer = bool(default)
            logger.info("%s → %s (default)", prompt, "yes" if answer else "no")
            return answer

        while True:
            raw = click.prompt(
                f"{prompt} {prompt_suffix(default)}",
                default="",
                show_default=False,
            )
            answer = parse_answer(raw, default)
            if answer is not None:
                logger.debug("%s → %s", prompt, "yes" if answer else "no")
                return answer
            click.echo("Please answer yes or no.")
