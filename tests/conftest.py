"""Shared fakes for simple-repl tests."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Callable

import pytest

from simple_repl.errors import SpawnError
from simple_repl.pty.buffer import TerminalBuffer
from simple_repl.pty.session import SessionStatus


@dataclass
class FakeSession:
    """Stands in for ReplSession without spawning a process."""

    name: str
    shell: str = "/bin/sh"
    cwd: str = field(default_factory=os.getcwd)
    env: dict[str, str] = field(default_factory=dict)
    buffer: TerminalBuffer = field(default_factory=TerminalBuffer)
    sent: list[str] = field(default_factory=list)
    status: SessionStatus = SessionStatus.PENDING

    @property
    def command(self) -> list[str]:
        return [self.shell]

    @property
    def alive(self) -> bool:
        return self.status == SessionStatus.RUNNING

    async def start(self) -> None:
        self.status = SessionStatus.RUNNING

    def send(self, payload: str) -> None:
        if payload:
            self.sent.append(payload)

    def close(self) -> None:
        self.status = SessionStatus.CLOSED


class FailingSession(FakeSession):
    async def start(self) -> None:
        raise SpawnError(self.name, self.command, "No such file or directory")


class FakeFactory:
    """Session factory recording every session it creates."""

    def __init__(self, cls: type[FakeSession] = FakeSession) -> None:
        self.cls = cls
        self.created: list[FakeSession] = []

    def __call__(self, **kwargs) -> FakeSession:
        session = self.cls(**kwargs)
        self.created.append(session)
        return session


class ManualScheduler:
    """Holds deferred callbacks until the test runs them."""

    def __init__(self) -> None:
        self.calls: list[tuple[float, Callable[[], None]]] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> None:
        self.calls.append((delay, callback))

    def run_all(self) -> None:
        calls, self.calls = self.calls, []
        for _, callback in calls:
            callback()


@pytest.fixture
def factory() -> FakeFactory:
    return FakeFactory()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()
