# app/services/nlp/patterns.py
"""
Regex fallbacks, consulted one slot at a time when the recognizer found nothing.
"""

import re
from typing import List, Optional

_NAME_RE = re.compile(r"take\s+([A-Za-z0-9\s\-]+?)(?:\s+pill|\s+tablet|\s+mg)", re.I)
_NUMBER_RE = re.compile(r"\b(\d+(?:\.\d+)?)\b")
_FREQUENCY_RE = re.compile(r"(daily|once a day|twice a day|\d+ times? a day|every \d+ hours?)", re.I)
_INSTRUCTION_RE = re.compile(r"(with water|with food|empty stomach)", re.I)
_CLOCK_TIME_RE = re.compile(r"\b(\d{1,2}(?::\d{2})?\s*(?:am|pm))\b", re.I)


def match_medication_name(text: str) -> Optional[str]:
    m = _NAME_RE.search(text or "")
    if not m:
        return None
    name = m.group(1).strip()
    return name or None


def match_dosage_number(text: str) -> Optional[str]:
    m = _NUMBER_RE.search(text or "")
    return m.group(1) if m else None


def match_frequency(text: str) -> Optional[str]:
    m = _FREQUENCY_RE.search(text or "")
    return m.group(0) if m else None


def match_instructions(text: str) -> Optional[str]:
    m = _INSTRUCTION_RE.search(text or "")
    return m.group(0) if m else None


def match_clock_times(text: str) -> List[str]:
    """Every "8 am" / "10:30PM" style time, in order of appearance."""
    return [m.group(1) for m in _CLOCK_TIME_RE.finditer(text or "")]
