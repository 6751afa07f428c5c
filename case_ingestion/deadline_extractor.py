"""
Deadline Extractor
Finds deadline phrases such as "Frist am 19.02.2026" or
"20.02.2026 ist Frist" and converts the dates to ISO-8601 instants.
No time of day is stated in these phrases, so 09:00 UTC is assumed.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from .models import format_iso_instant
from .patterns import DEADLINE_RES, normalize_whitespace

logger = logging.getLogger(__name__)

DEFAULT_DUE_HOUR = 9


def to_iso_date(value: str) -> Optional[str]:
    """
    Parse a strict ``dd.mm.yyyy`` (or ``dd.mm.yy``, read as 20yy) date.

    Returns:
        ``YYYY-MM-DDT09:00:00.000Z`` or None for malformed or impossible dates
    """
    parts = (value or "").strip().split(".")
    if len(parts) != 3 or not all(part.isdecimal() for part in parts):
        return None
    day, month, year = parts
    if len(year) == 2:
        year = f"20{year}"
    elif len(year) != 4:
        return None
    try:
        due = datetime(int(year), int(month), int(day), DEFAULT_DUE_HOUR, tzinfo=timezone.utc)
    except ValueError:
        return None
    return format_iso_instant(due)


def extract_deadline_evidence(content: str) -> Dict[str, List[str]]:
    """Map each deadline instant in ``content`` to the phrases that named it."""
    evidence: Dict[str, List[str]] = {}
    for pattern in DEADLINE_RES:
        for match in pattern.finditer(content or ""):
            due_at = to_iso_date(match.group(1))
            if due_at is None:
                logger.debug(f"Ignoring invalid deadline date: {match.group(1)}")
                continue
            phrase = normalize_whitespace(match.group(0))
            phrases = evidence.setdefault(due_at, [])
            if phrase not in phrases:
                phrases.append(phrase)
    return evidence


def extract_deadline_dates(content: str) -> List[str]:
    """Deduplicated deadline instants in first-seen order."""
    return list(extract_deadline_evidence(content))
