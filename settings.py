"""Calendar configuration: style classes, cell renderer and JSON loading."""

import json
import logging
import os
from dataclasses import dataclass, replace
from datetime import date
from typing import Callable

from calendar_logic import format_day

logger = logging.getLogger(__name__)

_SETTINGS_PATH = os.path.join(os.path.expanduser("~"), ".month-grid-calendar.json")

_CLASS_KEYS = ("header_classes", "month_classes", "cell_classes", "active_classes")


@dataclass(frozen=True)
class CalendarConfig:
    """Read-only styling shared by every part of one calendar.

    Replace it as a whole (``dataclasses.replace``) instead of mutating it.
    """

    header_classes: str = ""
    month_classes: str = ""
    cell_classes: str = ""
    active_classes: str = ""
    cell_renderer: Callable[[date], str] | None = None

    def cell_text(self, d: date) -> str:
        # A failing renderer is the embedding application's problem.
        if self.cell_renderer is not None:
            return self.cell_renderer(d)
        return format_day(d)

    def cell_class(self, active: bool) -> str:
        if active:
            return " ".join(c for c in (self.cell_classes, self.active_classes) if c)
        return self.cell_classes


def strftime_renderer(fmt: str) -> Callable[[date], str]:
    """Return a cell renderer formatting each day with ``fmt``."""
    def render(d: date) -> str:
        return d.strftime(fmt)
    return render


def config_from_mapping(stored: dict) -> CalendarConfig:
    """Build a config from a decoded JSON object, skipping bad values."""
    config = CalendarConfig()
    for key in _CLASS_KEYS:
        if key not in stored:
            continue
        if isinstance(stored[key], str):
            config = replace(config, **{key: stored[key]})
        else:
            logger.warning("settings: ignoring %s=%r (expected a string)", key, stored[key])
    if "cell_format" in stored:
        fmt = stored["cell_format"]
        if isinstance(fmt, str) and fmt:
            config = replace(config, cell_renderer=strftime_renderer(fmt))
        else:
            logger.warning("settings: ignoring cell_format=%r", fmt)
    return config


def load_settings(path: str | os.PathLike | None = None) -> CalendarConfig:
    """Load the calendar config from disk, returning defaults on any problem."""
    path = _SETTINGS_PATH if path is None else path
    try:
        with open(path, "r", encoding="utf-8") as f:
            stored = json.load(f)
    except FileNotFoundError:
        return CalendarConfig()
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("settings: could not read %s: %s", path, exc)
        return CalendarConfig()
    if not isinstance(stored, dict):
        logger.warning("settings: %s does not contain a JSON object", path)
        return CalendarConfig()
    return config_from_mapping(stored)
