import argparse
import logging
import sys

from . import __version__
from .config import apply_headless, format_settings, is_headless, parse_throttle, settings_from_dict
from .errors import EXIT_FAILURE, EXIT_INTERRUPTED, EXIT_OK, CountdownError, RenderDependencyMissing
from .render import require_tools
from .timecalc import resolve_end

logger = logging.getLogger(__name__)

USAGE = "Usage: countdown [DURATION] [OPTIONS]  (try --help)"

INSTALL_HINTS = [
    "sudo apt install {}",
    "sudo pacman -S {}",
    "sudo dnf install {}",
    "sudo zypper install {}",
]

EPILOG = """\
DURATION formats:
  SS                  seconds (e.g., 45)
  MM:SS               minutes:seconds (e.g., 3:15)
  HH:MM:SS            hours:minutes:seconds (e.g., 1:02:30)
  Xm | Xh | Xs        unit-suffixed minutes/hours/seconds (e.g., 45m, 2h, 90s)
  1h30m20s            combined units (any order, case-insensitive)
  PT1H30M20S          ISO 8601 time duration

TIME formats for --until:
  HH:MM[:SS]          today at that time (tomorrow if already past)
  YYYY-MM-DDTHH:MM[:SS]
                      explicit date and time

Examples:
  countdown 45
  countdown 3:15 --font smblock --clear
  countdown 1h30m --message="Break" --done-cmd='notify-send "Break" "Timer done"'
  countdown --until=23:30
"""


def _throttle_arg(text: str) -> float:
    try:
        return parse_throttle(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid throttle value: {text!r} (use seconds or 'off')")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="countdown",
        description="Big-digit terminal countdown timer",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("duration", nargs="?", help="how long to count down (see DURATION formats)")
    parser.add_argument("-u", "--until", help="end at a clock time instead of after a duration")

    style = parser.add_argument_group("frame style")
    style.add_argument("--scroll", dest="mode", action="store_const", const="scroll", help="scroll output (default)")
    style.add_argument("-c", "--clear", dest="mode", action="store_const", const="clear", help="clear screen each second")
    style.add_argument("-o", "--overwrite", dest="mode", action="store_const", const="overwrite", help="redraw in place")
    style.add_argument("-l", "--left", dest="center", action="store_const", const=False, help="left-align output")
    style.add_argument("--center", dest="center", action="store_const", const=True, help="center output (default)")
    style.add_argument("-f", "--font", help="toilet font (default: smblock)")
    style.add_argument(
        "-t", "--throttle", type=_throttle_arg, help="delay between lines in seconds, or 'off' (default: 0.05)"
    )
    style.add_argument("-C", "--no-color", dest="color", action="store_const", const=False, help="disable gradients")
    style.add_argument("--color", dest="color", action="store_const", const=True, help="enable gradients (default)")
    style.add_argument("-p", "--spread", help="pass --spread through to lolcat")
    style.add_argument("-F", "--freq", help="pass --freq through to lolcat")
    style.add_argument("-T", "--no-title", dest="title", action="store_const", const=False, help="no title updates")
    style.add_argument("--title", dest="title", action="store_const", const=True, help="update the title (default)")

    finish = parser.add_argument_group("finish")
    finish.add_argument("-m", "--message", help="final message (default: TIME'S UP!)")
    finish.add_argument("-d", "--done-cmd", dest="done_cmd", help="command to run when the timer finishes")
    finish.add_argument(
        "-n", "--silent", "--nosound", dest="sound", action="store_const", const=False, help="no finish sound"
    )
    finish.add_argument("--sound", dest="sound", action="store_const", const=True, help="finish sound (default)")

    parser.add_argument("-y", "--yes", dest="assume_yes", action="store_const", const=True, help="auto-confirm prompts")
    parser.add_argument("--print-config", action="store_true", help="show effective configuration and exit")
    parser.add_argument("-V", "--version", action="version", version=f"countdown {__version__}")
    return parser.parse_args(argv)


def _report_missing(exc: RenderDependencyMissing) -> None:
    names = " ".join(exc.missing)
    logger.error("%s", exc)
    logger.error("Install them with one of:")
    for hint in INSTALL_HINTS:
        logger.error("  %s", hint.format(names))


def main(argv=None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(message)s", stream=sys.stderr)
    args = parse_args(argv)
    raw = vars(args)
    raw["interactive"] = sys.stdin.isatty() and sys.stdout.isatty()
    settings = settings_from_dict(raw)

    if args.print_config:
        print(format_settings(settings))
        return EXIT_OK
    if not settings.duration and not settings.until:
        logger.error(USAGE)
        return EXIT_FAILURE

    if is_headless(sys.stdout):
        suppressed = apply_headless(settings)
        if suppressed:
            logger.warning("WARNING: running in headless mode: %s ignored", " and ".join(suppressed))

    try:
        require_tools(settings.color)
        resolution = resolve_end(
            settings.duration,
            settings.until,
            assume_yes=settings.assume_yes,
            interactive=settings.interactive,
            threshold=settings.long_roll_threshold,
        )
    except RenderDependencyMissing as exc:
        _report_missing(exc)
        return exc.exit_code
    except CountdownError as exc:
        logger.error("%s", exc)
        return exc.exit_code
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED

    if resolution.ignored_duration:
        logger.info("Note: both duration ('%s') and --until given; using --until.", resolution.ignored_duration)

    try:
        from .ui import run

        return run(settings, resolution)
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
