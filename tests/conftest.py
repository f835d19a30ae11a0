"""Shared pytest fixtures for dotnet-bugreport tests."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from dotnet_bugreport.exceptions import CollaboratorError


class FakeRunner:
    """CommandRunner double keyed by (command, *args).

    Values are a CommandResult, or an exception to raise. Unknown commands
    raise CollaboratorError, like a missing executable.
    """

    def __init__(self, responses: dict[tuple[str, ...], object] | None = None):
        self.responses = dict(responses or {})
        self.calls: list[dict] = []

    def run(self, command, args, workdir=None, input=None):
        self.calls.append({"command": command, "args": list(args), "workdir": workdir, "input": input})
        response = self.responses.get((command, *args))
        if response is None:
            raise CollaboratorError(command, "command not found")
        if isinstance(response, Exception):
            raise response
        return response


class ScriptedPrompt:
    """ConfirmationPrompt double that returns a fixed answer and records questions."""

    def __init__(self, answer: bool):
        self.answer = answer
        self.questions: list[str] = []

    def ask(self, message: str) -> bool:
        self.questions.append(message)
        return self.answer


class StaticSystemInfo:
    def collect(self):
        return [("OS", "TestOS 1.0"), ("OS Architecture", "x86_64")]


@pytest.fixture
def make_runner():
    """Factory for FakeRunner: ``make_runner({("git", "rev-parse", "HEAD"): result})``."""
    return FakeRunner


@pytest.fixture
def make_prompt():
    """Factory for ScriptedPrompt: ``make_prompt(False)`` declines every question."""
    return ScriptedPrompt


@pytest.fixture
def system_info():
    return StaticSystemInfo()


@pytest.fixture
def fixed_now():
    return datetime(2024, 5, 17, 9, 30, 15, tzinfo=timezone.utc)


@pytest.fixture
def fixed_clock(fixed_now):
    return lambda: fixed_now
