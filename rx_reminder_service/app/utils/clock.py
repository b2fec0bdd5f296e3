# app/utils/clock.py
from __future__ import annotations

import re
from datetime import datetime
from typing import Iterable, List, Optional

_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_AMPM_RE = re.compile(r"^(\d{1,2})(?::(\d{2}))?\s*([AaPp])\.?\s*[Mm]\.?$")


def _hhmm_to_minutes(hhmm: str) -> int:
    h, m = map(int, hhmm.split(":"))
    return h * 60 + m


def _minutes_to_hhmm(total_minutes: int) -> str:
    total_minutes = max(0, min(23 * 60 + 59, total_minutes))
    h = total_minutes // 60
    m = total_minutes % 60
    return f"{h:02d}:{m:02d}"


def to_clock_24h(value: str) -> Optional[str]:
    """
    "8:00 PM" / "8pm" / "20:00" / "8:30" -> "HH:MM". None if unreadable.
    """
    s = (value or "").strip()

    m = _HHMM_RE.match(s)
    if m:
        h, mi = int(m.group(1)), int(m.group(2))
        if 0 <= h <= 23 and 0 <= mi <= 59:
            return _minutes_to_hhmm(h * 60 + mi)
        return None

    m = _AMPM_RE.match(s)
    if not m:
        return None
    h = int(m.group(1))
    mi = int(m.group(2) or 0)
    if not (1 <= h <= 12 and 0 <= mi <= 59):
        return None
    if m.group(3).lower() == "p" and h != 12:
        h += 12
    elif m.group(3).lower() == "a" and h == 12:
        h = 0
    return _minutes_to_hhmm(h * 60 + mi)


def to_display_12h(hhmm: str) -> str:
    """ "20:00" -> "8:00 PM" """
    total = _hhmm_to_minutes(hhmm)
    h, mi = divmod(total, 60)
    suffix = "PM" if h >= 12 else "AM"
    h12 = h % 12 or 12
    return f"{h12}:{mi:02d} {suffix}"


def normalize_times(values: Iterable[str]) -> List[str]:
    """24h, deduplicated, sorted (string order is clock order for HH:MM)."""
    out = {t for t in (to_clock_24h(v) for v in values) if t}
    return sorted(out)


def current_clock(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"{now.hour:02d}:{now.minute:02d}"
