import logging
import shutil
import subprocess
import sys
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, TextIO, Tuple

from .config import FRAME_BUDGET
from .errors import RenderDependencyMissing
from .scheduler import Pacer, SystemClock
from .timecalc import format_remaining

logger = logging.getLogger(__name__)

GLYPH_TOOL = "toilet"
COLOR_TOOL = "lolcat"
PROBE_TEXT = "00:00:00"
LINES_FALLBACK = 4

CLEAR_SCREEN = "\x1b[H\x1b[2J\x1b[3J"
ERASE_LINE = "\r\x1b[K"
ERASE_BELOW = "\x1b[J"


def cursor_up(lines: int) -> str:
    return f"\x1b[{lines}A\r"


def missing_tools(color: bool, which: Optional[Callable[[str], Optional[str]]] = None) -> List[str]:
    which = which or shutil.which
    needed = [GLYPH_TOOL]
    if color:
        needed.append(COLOR_TOOL)
    return [tool for tool in needed if which(tool) is None]


def require_tools(color: bool, which: Optional[Callable[[str], Optional[str]]] = None) -> None:
    missing = missing_tools(color, which)
    if missing:
        raise RenderDependencyMissing(missing)


class GlyphArtist:
    def __init__(self, font: str, binary: str = GLYPH_TOOL, runner=subprocess.run) -> None:
        self.font = font
        self.binary = binary
        self.runner = runner

    def render(self, text: str, font: Optional[str] = None) -> Optional[List[str]]:
        try:
            result = self.runner(
                [self.binary, "-f", font or self.font, text],
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
            )
        except OSError:
            return None
        if result.returncode != 0:
            return None
        return result.stdout.splitlines()

    def render_first(self, text: str, fonts: Sequence[str]) -> List[str]:
        """Render with the first font in ``fonts`` that works."""
        for font in fonts:
            lines = self.render(text, font)
            if lines is not None:
                return lines
        return [text]

    def lines_per_frame(self) -> int:
        lines = self.render(PROBE_TEXT)
        if not lines:
            return LINES_FALLBACK
        return len(lines)


class Colorizer:
    def __init__(self, spread: Optional[str] = None, freq: Optional[str] = None, binary: str = COLOR_TOOL) -> None:
        self.spread = spread
        self.freq = freq
        self.binary = binary
        self.process: Optional[subprocess.Popen] = None

    def command(self) -> List[str]:
        cmd = [self.binary]
        if self.spread:
            cmd.append(f"--spread={self.spread}")
        if self.freq:
            cmd.append(f"--freq={self.freq}")
        return cmd

    def start(self, sink: TextIO) -> TextIO:
        sink.flush()
        # own session so a terminal Ctrl-C does not kill the pipe mid-erase
        self.process = subprocess.Popen(
            self.command(),
            stdin=subprocess.PIPE,
            stdout=sink,
            text=True,
            start_new_session=True,
        )
        return self.process.stdin

    def close(self) -> None:
        if self.process is None:
            return
        process, self.process = self.process, None
        try:
            process.stdin.close()
        except (BrokenPipeError, OSError):
            pass
        process.wait()


def clamp_throttle(throttle: float, lines_per_frame: int, budget: float = FRAME_BUDGET) -> Tuple[float, bool]:
    if throttle <= 0:
        return 0.0, False
    cap = budget / max(1, lines_per_frame)
    if throttle > cap:
        logger.warning(
            "Warning: --throttle=%g too high for ~%d lines/frame; capping to %.3f (≈%gs/frame)",
            throttle,
            lines_per_frame,
            cap,
            budget,
        )
        return cap, True
    return throttle, False


def _terminal_columns() -> int:
    return shutil.get_terminal_size(fallback=(0, 0)).columns


@dataclass
class FrameGeometry:
    width: int = 0
    height: int = 0

    def invalidate(self) -> None:
        self.width = 0


class Renderer:
    def __init__(
        self,
        artist: GlyphArtist,
        out: Optional[TextIO] = None,
        mode: str = "scroll",
        center: bool = True,
        throttle: float = 0.0,
        clock=None,
        flag=None,
        columns: Callable[[], int] = _terminal_columns,
    ) -> None:
        self.artist = artist
        self.out = out or sys.stdout
        self.mode = mode
        self.center = center
        self.throttle = throttle
        self.clock = clock or SystemClock()
        self.flag = flag
        self.columns = columns
        self.geometry = FrameGeometry()

    def frame_lines(self, remaining: int) -> List[str]:
        lines = self.artist.render(format_remaining(remaining))
        return lines or [""]

    def paint_remaining(self, remaining: int) -> None:
        self.paint(self.frame_lines(remaining))

    def paint(self, lines: Sequence[str]) -> None:
        self._prepare()
        frame = list(lines) or [""]
        if self.mode == "overwrite":
            frame = self._pad([""] + frame)

        if self.throttle > 0:
            pacer = Pacer(self.clock, self.throttle, self.flag)
            last = len(frame) - 1
            for i, line in enumerate(frame):
                self._write_line(line)
                if i != last:
                    pacer.wait_next()
        else:
            for line in frame:
                self._write_line(line)

        if self.mode == "overwrite":
            self.out.write(ERASE_BELOW)
        self.out.flush()

    def erase_previous(self) -> None:
        height = self.geometry.height
        if self.mode == "overwrite" and height > 0:
            self.out.write(cursor_up(height))
            self.out.write("\x1b[K\n" * height)
            self.geometry.height = 0
        else:
            self.out.write("\n")
        self.out.flush()

    def _prepare(self) -> None:
        if self.mode == "clear":
            self.out.write(CLEAR_SCREEN + "\n")
        elif self.mode == "overwrite" and self.geometry.height > 0:
            self.out.write(cursor_up(self.geometry.height))
        else:
            self.out.write("\n")

    def _pad(self, frame: List[str]) -> List[str]:
        width = max(len(line) for line in frame)
        target = max(width, self.geometry.width)
        self.geometry.width = target
        self.geometry.height = len(frame)
        return [line.ljust(target) for line in frame]

    def _write_line(self, line: str) -> None:
        prefix = ERASE_LINE if self.mode == "overwrite" else ""
        if line and self.center:
            cols = self.columns()
            if cols > 0:
                line = " " * max(0, (cols - len(line)) // 2) + line
        self.out.write(f"{prefix}{line}\n")
        if self.throttle > 0:
            self.out.flush()
