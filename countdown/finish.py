import os
import shutil
import subprocess
import sys
from typing import Callable, List, Optional, TextIO

from .config import FALLBACK_FONT
from .errors import EXIT_OK
from .scheduler import Pacer, SystemClock

BEEP_SOUND = "/usr/share/sounds/freedesktop/stereo/complete.oga"
BEEP_COUNT = 3
BEEP_INTERVAL = 0.5


def play_cue(sound: str = BEEP_SOUND, bell: Optional[TextIO] = None) -> None:
    player = shutil.which("paplay")
    if player and os.path.isfile(sound):
        # fire-and-forget: never waited on, outside the shutdown path
        subprocess.Popen(
            [player, sound],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
        return
    bell = bell or sys.stderr
    bell.write("\a")
    bell.flush()


def completion_fonts(font: str) -> List[str]:
    fonts = [font]
    if FALLBACK_FONT not in fonts:
        fonts.append(FALLBACK_FONT)
    return fonts


class CompletionSequencer:
    def __init__(
        self,
        renderer,
        interrupts,
        message: str,
        font: str,
        sound: bool = True,
        done_cmd: str = "",
        clock=None,
        cue: Callable[[], None] = play_cue,
        runner=subprocess.run,
    ) -> None:
        self.renderer = renderer
        self.interrupts = interrupts
        self.message = message
        self.fonts = completion_fonts(font)
        self.sound = sound
        self.done_cmd = done_cmd
        self.clock = clock or SystemClock()
        self.cue = cue
        self.runner = runner

    def run(self) -> int:
        self.interrupts.checkpoint()
        lines = self.renderer.artist.render_first(self.message, self.fonts)
        self.renderer.paint(lines)
        self.interrupts.checkpoint()

        if self.sound:
            self.beep()
        if self.done_cmd:
            self.interrupts.checkpoint()
            return self.run_done_cmd()
        return EXIT_OK

    def beep(self) -> None:
        pacer = Pacer(self.clock, BEEP_INTERVAL, self.interrupts.flag)
        for _ in range(BEEP_COUNT):
            self.interrupts.checkpoint()
            self.cue()
            pacer.wait_next()

    def run_done_cmd(self) -> int:
        out = self.renderer.out
        out.flush()
        result = self.runner(["bash", "-lc", self.done_cmd], stdout=out)
        return result.returncode
