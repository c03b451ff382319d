"""
Continuation gate — the yes/no pause between phase 2 and phase 3.

Blocks until the operator answers.  Accepts y/yes/n/no in any case
with surrounding whitespace; anything else re-prompts.  No timeout.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

import click

logger = logging.getLogger(__name__)

_YES = frozenset({"y", "yes"})
_NO = frozenset({"n", "no"})

DEFAULT_QUESTION = "Environment setup is complete. Continue to project bootstrap?"


def parse_answer(text: str | None) -> bool | None:
    """``True``/``False`` for a recognised answer, ``None`` otherwise."""
    answer = (text or "").strip().lower()
    if answer in _YES:
        return True
    if answer in _NO:
        return False
    return None


def _click_reader(question: str) -> str:
    return click.prompt(f"{question} [y/n]", default="", show_default=False)


def _click_notice(message: str) -> None:
    click.secho(message, fg="yellow")


def _stderr_reader(question: str) -> str:
    # click.prompt echoes the answer to stdout
    click.echo(f"{question} [y/n]: ", nl=False, err=True)
    line = click.get_text_stream("stdin").readline()
    if not line:
        raise click.Abort()
    return line


def _stderr_notice(message: str) -> None:
    click.secho(message, fg="yellow", err=True)


class ContinuationGate:
    """Asks the operator whether to continue."""

    def __init__(
        self,
        reader: Callable[[str], str] = _click_reader,
        notice: Callable[[str], None] = _click_notice,
    ):
        self._reader = reader
        self._notice = notice
        self.prompt_count = 0

    @classmethod
    def on_stderr(cls) -> ContinuationGate:
        """Gate that prompts on stderr, leaving stdout to JSON output."""
        return cls(reader=_stderr_reader, notice=_stderr_notice)

    def ask(self, question: str = DEFAULT_QUESTION) -> bool:
        while True:
            self.prompt_count += 1
            decision = parse_answer(self._reader(question))
            if decision is not None:
                logger.info("Continuation gate answered: %s", "yes" if decision else "no")
                return decision
            self._notice("Please answer 'y' or 'n'.")
