from __future__ import annotations

import datetime as dt
import re
from typing import Any, Optional

# Only the elapsed minutes matter, any shared calendar day works.
REFERENCE_DATE = dt.date(2000, 1, 1)


def normalize_text(value: Any) -> Optional[str]:
    """Return text with runs of whitespace, line breaks included, collapsed to one space.

    Blank values become ``None``.
    """
    if value is None:
        return None
    text = " ".join(str(value).split())
    return text or None


def parse_time_of_day(value: str) -> dt.time:
    """Parse ``HH:MM`` or ``HH:MM:SS`` as a time of day.

    Raises ``ValueError`` for anything else, including ISO forms with offsets.
    """
    text = value.strip()
    if not re.fullmatch(r"\d{1,2}:\d{2}(:\d{2})?", text):
        raise ValueError(f"Invalid time of day: {value!r}")
    if len(text.split(":")[0]) == 1:
        text = f"0{text}"
    return dt.time.fromisoformat(text)


def at_reference_date(value: str) -> dt.datetime:
    return dt.datetime.combine(REFERENCE_DATE, parse_time_of_day(value))


def sanitize_filename(name: str) -> str:
    cleaned = re.sub(r"[^\w.-]+", "_", name.strip())
    return cleaned.strip("._")


def format_duration(minutes: float) -> str:
    """Render minutes as ``"{h}h {m}m"``, e.g. 90 -> ``"1h 30m"``."""
    whole = max(0, int(minutes))
    hours, rest = divmod(whole, 60)
    return f"{hours}h {rest}m"
