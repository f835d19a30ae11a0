"""Interactive confirmation for the project scan size gate."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import click

_AFFIRMATIVE = frozenset({"y", "yes"})


@runtime_checkable
class ConfirmationPrompt(Protocol):
    def ask(self, message: str) -> bool: ...


def is_affirmative(answer: str | None) -> bool:
    """Only ``y`` or ``yes`` (any case) count as consent."""
    if answer is None:
        return False
    return answer.strip().lower() in _AFFIRMATIVE


class ConsolePrompt:
    """Ask on the terminal and block for one line of input.

    Empty input, EOF and Ctrl-C all count as a decline.
    """

    def ask(self, message: str) -> bool:
        try:
            answer = click.prompt(
                f"{message} [y/N]",
                default="",
                show_default=False,
                prompt_suffix=" ",
            )
        except click.Abort:
            click.echo()
            return False
        return is_affirmative(answer)
