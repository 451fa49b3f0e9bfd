"""Confirmation policies consulted before an archive is modified."""

from __future__ import annotations

from collections import deque
from typing import Iterable, Literal, Protocol

import click

AssumeAnswer = Literal["prompt", "yes", "no"]


class ConfirmationGate(Protocol):
    """Decide whether a pending mutation may proceed."""

    def confirm(self, prompt: str) -> bool:
        """Return True only when the mutation is approved."""
        ...


class InteractivePrompt:
    """Ask the operator on the terminal; anything but an explicit yes declines."""

    def confirm(self, prompt: str) -> bool:
        try:
            return click.confirm(prompt, default=False)
        except click.Abort:
            return False


class AlwaysConfirm:
    """Approve every mutation."""

    def confirm(self, prompt: str) -> bool:
        return True


class NeverConfirm:
    """Decline every mutation."""

    def confirm(self, prompt: str) -> bool:
        return False


class ScriptedConfirm:
    """Replay pre-recorded answers in order, declining once they run out.

    Attributes:
        prompts: Prompts received so far, in order.
    """

    def __init__(self, decisions: Iterable[bool]) -> None:
        self._decisions = deque(decisions)
        self.prompts: list[str] = []

    def confirm(self, prompt: str) -> bool:
        self.prompts.append(prompt)
        if not self._decisions:
            return False
        return bool(self._decisions.popleft())


def gate_for(assume: AssumeAnswer) -> ConfirmationGate:
    """Return the gate matching a configured answer policy."""
    if assume == "yes":
        return AlwaysConfirm()
    if assume == "no":
        return NeverConfirm()
    if assume == "prompt":
        return InteractivePrompt()
    raise ValueError(f"Unknown confirmation policy: {assume!r}")


__all__ = [
    "AlwaysConfirm",
    "AssumeAnswer",
    "ConfirmationGate",
    "InteractivePrompt",
    "NeverConfirm",
    "ScriptedConfirm",
    "gate_for",
]
