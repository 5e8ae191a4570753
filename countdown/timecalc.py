import logging
import re
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Callable, Optional, Tuple

from .config import LONG_ROLL_THRESHOLD
from .errors import ConfirmationDeclined, ParseError

logger = logging.getLogger(__name__)

DURATION_HELP = "Use SS, MM:SS, HH:MM:SS, Xm, Xh, Xs, 1h30m20s, PT1H30M20S; or --until=..."
UNTIL_HELP = "Use HH:MM[:SS] or YYYY-MM-DDTHH:MM[:SS]"

_SECONDS_RE = re.compile(r"^(\d{1,7})$")
_MMSS_RE = re.compile(r"^(\d{1,5}):([0-5]?\d)$")
_HHMMSS_RE = re.compile(r"^(\d{1,5}):([0-5]?\d):([0-5]?\d)$")
_UNITS_RE = re.compile(r"^(?:\d+[hms])+$", re.IGNORECASE)
_UNIT_RE = re.compile(r"(\d+)([hms])", re.IGNORECASE)
_ISO_RE = re.compile(r"^PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?$", re.IGNORECASE)
_CLOCK_RE = re.compile(r"^([0-2]?\d):([0-5]\d)(?::([0-5]\d))?$")

UNIT_SECONDS = {"h": 3600, "m": 60, "s": 1}


@dataclass(frozen=True)
class Resolution:
    end_instant: int
    rolled_to_tomorrow: bool = False
    ignored_duration: Optional[str] = None

    def remaining(self, now: float) -> int:
        return max(0, self.end_instant - int(now))


def _local_tzinfo():
    return datetime.now().astimezone().tzinfo


def _parse_iso_local(text: str) -> Optional[datetime]:
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=_local_tzinfo())
    return parsed


def parse_duration(token: str) -> int:
    tok = token.strip()
    match = _SECONDS_RE.match(tok)
    if match:
        return int(match.group(1))
    match = _MMSS_RE.match(tok)
    if match:
        return int(match.group(1)) * 60 + int(match.group(2))
    match = _HHMMSS_RE.match(tok)
    if match:
        return int(match.group(1)) * 3600 + int(match.group(2)) * 60 + int(match.group(3))
    if _UNITS_RE.match(tok):
        seen = set()
        total = 0
        for value, unit in _UNIT_RE.findall(tok):
            unit = unit.lower()
            if unit in seen:
                raise ParseError(f"Invalid time. {DURATION_HELP}")
            seen.add(unit)
            total += int(value) * UNIT_SECONDS[unit]
        return total
    match = _ISO_RE.match(tok)
    if match and any(group is not None for group in match.groups()):
        hours, minutes, seconds = (int(group or 0) for group in match.groups())
        return hours * 3600 + minutes * 60 + seconds
    raise ParseError(f"Invalid time. {DURATION_HELP}")


def _clock_time(text: str) -> Optional[time]:
    match = _CLOCK_RE.match(text)
    if not match:
        return None
    try:
        return time(int(match.group(1)), int(match.group(2)), int(match.group(3) or 0))
    except ValueError:
        return None


def parse_until(text: str, now: Optional[datetime] = None) -> Tuple[datetime, bool]:
    """Resolve an until value against ``now``.

    A bare time of day lands on today, or on the next calendar day when
    that instant is not after ``now``; the second item reports the roll.
    """
    if now is None:
        now = datetime.now().astimezone()
    raw = text.strip()
    clock = _clock_time(raw)
    if clock is not None:
        tz = now.tzinfo or _local_tzinfo()
        end = datetime.combine(now.date(), clock, tzinfo=tz)
        if end <= now:
            return datetime.combine(now.date() + timedelta(days=1), clock, tzinfo=tz), True
        return end, False
    parsed = _parse_iso_local(raw)
    if parsed is None:
        raise ParseError(f"Invalid --until value. {UNTIL_HELP}")
    return parsed, False


def format_wait(seconds: int) -> str:
    hours, rest = divmod(max(0, seconds), 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours}h {minutes}m {secs}s"


def confirm_long_roll(
    wait_seconds: int,
    assume_yes: bool,
    interactive: bool,
    prompt: Callable[[str], str] = input,
) -> None:
    question = f"Target time is in {format_wait(wait_seconds)}. Continue? [y/N]"
    if assume_yes:
        return
    if interactive:
        try:
            reply = prompt(question + " ")
        except EOFError:
            reply = ""
        if not reply.strip().lower().startswith("y"):
            raise ConfirmationDeclined("Aborted.")
        return
    logger.info("Notice: %s (non-interactive; proceeding)", question)


def resolve_end(
    duration: Optional[str],
    until: Optional[str],
    assume_yes: bool = False,
    interactive: bool = False,
    now: Optional[datetime] = None,
    prompt: Callable[[str], str] = input,
    threshold: int = LONG_ROLL_THRESHOLD,
) -> Resolution:
    if now is None:
        now = datetime.now().astimezone()
    start = int(now.timestamp())

    if until:
        ignored = None
        if duration:
            try:
                parse_duration(duration)
                ignored = duration
            except ParseError:
                ignored = None
        end, rolled = parse_until(until, now)
        end_instant = int(end.timestamp())
        wait = max(0, end_instant - start)
        if rolled and wait > threshold:
            confirm_long_roll(wait, assume_yes, interactive, prompt)
        return Resolution(end_instant=end_instant, rolled_to_tomorrow=rolled, ignored_duration=ignored)

    if not duration:
        raise ParseError(f"Invalid time. {DURATION_HELP}")
    return Resolution(end_instant=start + parse_duration(duration))


def format_remaining(seconds: int) -> str:
    total = max(0, int(seconds))
    if total >= 86400:
        days = total // 86400
        hours = (total % 86400) // 3600
        minutes = (total % 3600) // 60
        secs = total % 60
        return f"{days}d {hours:02d}:{minutes:02d}:{secs:02d}"
    if total >= 3600:
        return f"{total // 3600}:{(total % 3600) // 60:02d}:{total % 60:02d}"
    return f"{total // 60:02d}:{total % 60:02d}"
