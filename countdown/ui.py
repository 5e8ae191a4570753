import logging
import sys
from typing import Optional, TextIO

from .config import Settings
from .errors import Interrupted
from .finish import CompletionSequencer
from .interrupts import CancellationFlag, InterruptHandler
from .render import Colorizer, GlyphArtist, Renderer, clamp_throttle
from .scheduler import SystemClock, TickScheduler
from .timecalc import Resolution, format_remaining

logger = logging.getLogger(__name__)

HIDE_CURSOR = "\x1b[?25l"
SHOW_CURSOR = "\x1b[?25h"


def _set_title(stream: TextIO, text: str) -> None:
    stream.write(f"\x1b]0;{text}\x07")
    stream.flush()


def run(
    settings: Settings,
    resolution: Resolution,
    clock=None,
    artist: Optional[GlyphArtist] = None,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
    colorizer: Optional[Colorizer] = None,
    **sequencer_options,
) -> int:
    clock = clock or SystemClock()
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr
    artist = artist or GlyphArtist(settings.font)

    throttle, _ = clamp_throttle(settings.throttle, artist.lines_per_frame(), settings.frame_budget)

    if settings.color and colorizer is None:
        colorizer = Colorizer(settings.spread, settings.freq)

    flag = CancellationFlag()

    def on_tick(remaining: int) -> None:
        if settings.title:
            _set_title(stderr, f"⏳ {format_remaining(remaining)}")

    try:
        out = colorizer.start(stdout) if colorizer is not None else stdout
        stderr.write(HIDE_CURSOR)
        stderr.flush()
        renderer = Renderer(artist, out, settings.mode, settings.center, throttle, clock, flag)
        interrupts = InterruptHandler(flag, renderer)
        with interrupts:
            scheduler = TickScheduler(resolution, flag, clock)
            if not scheduler.run(renderer.paint_remaining, on_tick):
                interrupts.checkpoint()
            sequencer = CompletionSequencer(
                renderer,
                interrupts,
                settings.message,
                settings.font,
                sound=settings.sound,
                done_cmd=settings.done_cmd,
                clock=clock,
                **sequencer_options,
            )
            return sequencer.run()
    except Interrupted as exc:
        if colorizer is not None:
            colorizer.close()
        logger.warning("[Interrupted]")
        return exc.exit_code
    finally:
        if colorizer is not None:
            colorizer.close()
        if settings.title:
            _set_title(stderr, "")
        stderr.write(SHOW_CURSOR)
        stderr.flush()
