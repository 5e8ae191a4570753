import math
import os
from dataclasses import dataclass, fields
from typing import Any, Dict, List, Mapping, Optional, TextIO

MODES = ["scroll", "clear", "overwrite"]

DEFAULT_FONT = "smblock"
FALLBACK_FONT = "big"
DEFAULT_THROTTLE = 0.05
DEFAULT_MESSAGE = "TIME'S UP!"
LONG_ROLL_THRESHOLD = 21 * 3600
FRAME_BUDGET = 0.9


@dataclass
class Settings:
    font: str = DEFAULT_FONT
    mode: str = "scroll"
    center: bool = True
    throttle: float = DEFAULT_THROTTLE
    color: bool = True
    spread: Optional[str] = None
    freq: Optional[str] = None
    sound: bool = True
    title: bool = True
    message: str = DEFAULT_MESSAGE
    done_cmd: str = ""
    assume_yes: bool = False
    duration: Optional[str] = None
    until: Optional[str] = None
    interactive: bool = False
    long_roll_threshold: int = LONG_ROLL_THRESHOLD
    frame_budget: float = FRAME_BUDGET


def parse_throttle(text: str) -> float:
    raw = text.strip().lower()
    if raw == "off":
        return 0.0
    value = float(raw)
    if math.isnan(value) or value < 0:
        raise ValueError(f"throttle must be a non-negative number or 'off': {text!r}")
    return value


def _get_str(raw: Mapping[str, Any], key: str, default: Optional[str]) -> Optional[str]:
    value = raw.get(key)
    if isinstance(value, str) and value:
        return value
    return default


def _get_bool(raw: Mapping[str, Any], key: str, default: bool) -> bool:
    value = raw.get(key)
    if isinstance(value, bool):
        return value
    return default


def settings_from_dict(raw: Mapping[str, Any]) -> Settings:
    defaults = Settings()
    mode = raw.get("mode")
    if not isinstance(mode, str) or mode.lower() not in MODES:
        mode = defaults.mode
    throttle = raw.get("throttle")
    if isinstance(throttle, str):
        try:
            throttle = parse_throttle(throttle)
        except ValueError:
            throttle = defaults.throttle
    if isinstance(throttle, bool) or not isinstance(throttle, (int, float)) or throttle < 0:
        throttle = defaults.throttle
    threshold = raw.get("long_roll_threshold")
    if isinstance(threshold, bool) or not isinstance(threshold, int) or threshold < 0:
        threshold = defaults.long_roll_threshold
    budget = raw.get("frame_budget")
    if isinstance(budget, bool) or not isinstance(budget, (int, float)) or budget <= 0:
        budget = defaults.frame_budget

    return Settings(
        font=_get_str(raw, "font", defaults.font),
        mode=mode.lower(),
        center=_get_bool(raw, "center", defaults.center),
        throttle=float(throttle),
        color=_get_bool(raw, "color", defaults.color),
        spread=_get_str(raw, "spread", None),
        freq=_get_str(raw, "freq", None),
        sound=_get_bool(raw, "sound", defaults.sound),
        title=_get_bool(raw, "title", defaults.title),
        message=_get_str(raw, "message", defaults.message),
        done_cmd=_get_str(raw, "done_cmd", "") or "",
        assume_yes=_get_bool(raw, "assume_yes", defaults.assume_yes),
        duration=_get_str(raw, "duration", None),
        until=_get_str(raw, "until", None),
        interactive=_get_bool(raw, "interactive", defaults.interactive),
        long_roll_threshold=threshold,
        frame_budget=float(budget),
    )


def settings_as_dict(settings: Settings) -> Dict[str, Any]:
    return {f.name: getattr(settings, f.name) for f in fields(settings)}


def format_settings(settings: Settings) -> str:
    lines = []
    for key, value in settings_as_dict(settings).items():
        if value is None:
            value = ""
        elif isinstance(value, bool):
            value = "true" if value else "false"
        elif key == "throttle" and value == 0:
            value = "off"
        lines.append(f"{key}={value}")
    return "\n".join(lines)


def is_headless(stream: TextIO, environ: Optional[Mapping[str, str]] = None) -> bool:
    if environ is None:
        environ = os.environ
    term = environ.get("TERM", "")
    try:
        tty = stream.isatty()
    except (AttributeError, ValueError):
        tty = False
    return not tty or not term or term == "dumb"


def apply_headless(settings: Settings) -> List[str]:
    """Turn off centering and color; return the names of what was dropped."""
    suppressed = []
    if settings.center:
        suppressed.append("centering")
    if settings.color:
        suppressed.append("colors")
    settings.center = False
    settings.color = False
    return suppressed
