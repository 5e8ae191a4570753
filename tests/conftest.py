"""Shared fakes: a steppable clock and a stand-in for the glyph tool."""

import subprocess

import pytest


class FakeClock:
    def __init__(self, wall: float = 1_000_000.25, mono: float = 500.0) -> None:
        self.wall = wall
        self.mono = mono
        self.sleeps = []

    def monotonic(self) -> float:
        return self.mono

    def time(self) -> float:
        return self.wall

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.advance(seconds)

    def advance(self, seconds: float) -> None:
        self.mono += seconds
        self.wall += seconds


def make_runner(lines: int = 2, fail_fonts=()):
    """Fake ``subprocess.run`` for toilet: echoes the text ``lines`` times."""
    calls = []

    def runner(cmd, **kwargs):
        calls.append(cmd)
        font, text = cmd[2], cmd[3]
        if font in fail_fonts:
            return subprocess.CompletedProcess(cmd, 1, stdout="")
        body = "".join(f"{text}\n" for _ in range(lines))
        return subprocess.CompletedProcess(cmd, 0, stdout=body)

    runner.calls = calls
    return runner


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def runner():
    return make_runner()
