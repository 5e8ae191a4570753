"""Tests for the completion screen, beeps and finish command."""

import io
import subprocess

import pytest
from conftest import make_runner

from countdown.errors import Interrupted
from countdown.finish import BEEP_COUNT, CompletionSequencer, completion_fonts, play_cue
from countdown.interrupts import CancellationFlag, InterruptHandler
from countdown.render import GlyphArtist, Renderer


def _sequencer(clock, runner=None, fail_fonts=(), **kwargs):
    out = io.StringIO()
    artist = GlyphArtist("smblock", runner=make_runner(lines=1, fail_fonts=fail_fonts))
    renderer = Renderer(artist, out, "scroll", False)
    interrupts = InterruptHandler(CancellationFlag(), renderer)
    kwargs.setdefault("cue", lambda: None)
    sequencer = CompletionSequencer(
        renderer,
        interrupts,
        kwargs.pop("message", "TIME'S UP!"),
        kwargs.pop("font", "smblock"),
        clock=clock,
        runner=runner,
        **kwargs,
    )
    return sequencer, out


def _done_runner(returncode=0):
    calls = []

    def runner(cmd, **kwargs):
        calls.append((cmd, kwargs))
        return subprocess.CompletedProcess(cmd, returncode)

    runner.calls = calls
    return runner


# --- Message ---

def test_completion_fonts_fall_back_to_big():
    assert completion_fonts("smblock") == ["smblock", "big"]
    assert completion_fonts("big") == ["big"]


def test_paints_message_and_exits_zero(clock):
    sequencer, out = _sequencer(clock, sound=False)
    assert sequencer.run() == 0
    assert out.getvalue() == "\nTIME'S UP!\n"


def test_message_uses_fallback_font_when_requested_fails(clock):
    sequencer, out = _sequencer(clock, sound=False, font="broken", fail_fonts={"broken"}, message="Break")
    sequencer.run()
    calls = sequencer.renderer.artist.runner.calls
    assert [cmd[2] for cmd in calls] == ["broken", "big"]
    assert "Break" in out.getvalue()


# --- Sound ---

def test_three_cues_half_a_second_apart(clock):
    marks = []
    sequencer, _ = _sequencer(clock, sound=True, cue=lambda: marks.append(clock.monotonic()))
    sequencer.run()
    assert len(marks) == BEEP_COUNT
    assert marks == [500.0, 500.5, 501.0]


def test_silent_run_plays_nothing(clock):
    marks = []
    sequencer, _ = _sequencer(clock, sound=False, cue=lambda: marks.append(1))
    sequencer.run()
    assert marks == []


def test_cue_falls_back_to_terminal_bell(monkeypatch):
    monkeypatch.setattr("countdown.finish.shutil.which", lambda name: None)
    bell = io.StringIO()
    play_cue(bell=bell)
    assert bell.getvalue() == "\a"


def test_cue_prefers_audio_player(monkeypatch, tmp_path):
    sound = tmp_path / "complete.oga"
    sound.write_bytes(b"")
    launched = []

    class FakePopen:
        def __init__(self, cmd, **kwargs):
            launched.append((cmd, kwargs))

    monkeypatch.setattr("countdown.finish.shutil.which", lambda name: "/usr/bin/paplay")
    monkeypatch.setattr("countdown.finish.subprocess.Popen", FakePopen)
    bell = io.StringIO()
    play_cue(str(sound), bell=bell)
    assert launched[0][0] == ["/usr/bin/paplay", str(sound)]
    assert launched[0][1]["stdout"] == subprocess.DEVNULL
    assert bell.getvalue() == ""


# --- Finish command ---

def test_done_cmd_runs_synchronously_and_returns_status(clock):
    runner = _done_runner(returncode=3)
    sequencer, out = _sequencer(clock, runner=runner, sound=False, done_cmd="echo done > /tmp/x")
    assert sequencer.run() == 3
    cmd, kwargs = runner.calls[0]
    assert cmd == ["bash", "-lc", "echo done > /tmp/x"]
    assert kwargs["stdout"] is out


def test_no_done_cmd_runs_nothing(clock):
    runner = _done_runner()
    sequencer, _ = _sequencer(clock, runner=runner, sound=False)
    sequencer.run()
    assert runner.calls == []


# --- Cancellation ---

def test_pending_interrupt_skips_completion_screen(clock):
    sequencer, out = _sequencer(clock, sound=False)
    sequencer.interrupts.flag.set()
    with pytest.raises(Interrupted):
        sequencer.run()
    assert "TIME'S UP!" not in out.getvalue()


def test_interrupt_during_beeps_stops_remaining_steps(clock):
    runner = _done_runner()
    marks = []
    sequencer, _ = _sequencer(clock, runner=runner, sound=True, done_cmd="true")

    def cue():
        marks.append(clock.monotonic())
        sequencer.interrupts.flag.set()

    sequencer.cue = cue
    with pytest.raises(Interrupted):
        sequencer.run()
    assert len(marks) == 1
    assert runner.calls == []
