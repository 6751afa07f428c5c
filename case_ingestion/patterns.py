"""
Pattern Library
Locale-aware regular expressions for German/Austrian legal documents:
person names by title or role, organizations by legal form, authorities and
courts, contact primitives, money amounts and deadline phrases.

Patterns written with Unicode property classes (``\\p{L}``, ``\\p{Lu}``) are
compiled with the ``regex`` package, so names such as "Jan Dvořák" or
"Élodie Martin" match in full. Each one also has an explicit Latin-diacritic
fallback that ``build_unicode_regex`` compiles with ``re`` if the property
pattern is rejected.
"""

import logging
import re
from typing import Iterable, List, Pattern

import regex

logger = logging.getLogger(__name__)


def build_unicode_regex(pattern: str, fallback: str, flags: int = 0) -> Pattern:
    """
    Compile ``pattern`` with Unicode property support; if it is rejected,
    compile ``fallback`` with the stdlib engine instead.

    Args:
        pattern: Pattern using ``\\p{..}`` classes
        fallback: Equivalent pattern with explicit character classes
        flags: ``re`` flags (``regex`` shares the values of the common ones)
    """
    try:
        return regex.compile(pattern, flags)
    except regex.error as exc:
        logger.warning(f"Unicode property regex rejected ({exc}); using fallback class")
        return re.compile(fallback, flags)


# === NAME PATTERNS ===
# A capitalised word followed by up to two more.
_NAME_TAIL = r"\p{Lu}[\p{L}'-]+(?:\s+\p{Lu}[\p{L}'-]+){0,2}"
_NAME_TAIL_FALLBACK = r"[A-ZÄÖÜ][A-Za-zÄÖÜäöüß'-]+(?:\s+[A-ZÄÖÜ][A-Za-zÄÖÜäöüß'-]+){0,2}"

NAME_PATTERN_UNICODE = r"\b(?:Herr|Frau|Dr\.|RA|RAin)\s+" + _NAME_TAIL + r"\b"
NAME_PATTERN_FALLBACK = r"\b(?:Herr|Frau|Dr\.|RA|RAin)\s+" + _NAME_TAIL_FALLBACK + r"\b"

LAWYER_NAME_PATTERN_UNICODE = r"\b(?:RA|RAin|Rechtsanwalt(?:in)?|Attorney)\s+" + _NAME_TAIL + r"\b"
LAWYER_NAME_PATTERN_FALLBACK = r"\b(?:RA|RAin|Rechtsanwalt(?:in)?|Attorney)\s+" + _NAME_TAIL_FALLBACK + r"\b"

JUDGE_NAME_PATTERN_UNICODE = r"\b(?:Richter(?:in)?|Vorsitzende?r\s+Richter(?:in)?)\s+" + _NAME_TAIL + r"\b"
JUDGE_NAME_PATTERN_FALLBACK = r"\b(?:Richter(?:in)?|Vorsitzende?r\s+Richter(?:in)?)\s+" + _NAME_TAIL_FALLBACK + r"\b"

PROSECUTOR_NAME_PATTERN_UNICODE = r"\b(?:Staatsanwalt(?:in)?|Oberstaatsanwalt(?:in)?)\s+" + _NAME_TAIL + r"\b"
PROSECUTOR_NAME_PATTERN_FALLBACK = r"\b(?:Staatsanwalt(?:in)?|Oberstaatsanwalt(?:in)?)\s+" + _NAME_TAIL_FALLBACK + r"\b"

# Group 1: the role keyword, group 2: the name.
_ROLE_PREFIXES = (
    r"(Opfer|Geschädigte(?:r)?|Nebenkl(?:ä|a)ger(?:in)?|Privatbeteiligte(?:r)?|Kläger(?:in)?|Beklagte(?:r)?)"
)
ROLE_PREFIXED_NAME_PATTERN_UNICODE = r"\b" + _ROLE_PREFIXES + r"\s+(" + _NAME_TAIL + r")\b"
ROLE_PREFIXED_NAME_PATTERN_FALLBACK = r"\b" + _ROLE_PREFIXES + r"\s+(" + _NAME_TAIL_FALLBACK + r")\b"

# === INSTITUTION PATTERNS ===
_LEGAL_FORMS = r"(?:GmbH|AG|KG|UG|OHG|GbR|e\.V\.|Ltd\.?|Inc\.?|SE|KGaA|OG|GesbR|Stiftung|Verein|Kanzlei|Partnerschaft)"
ORG_PATTERN_UNICODE = r"\b[\p{Lu}][\p{L}\d&.,'\-\s]{1,80}\s" + _LEGAL_FORMS + r"\b"
ORG_PATTERN_FALLBACK = r"\b[A-ZÄÖÜ][A-Za-zÄÖÜäöüß\d&.,'\-\s]{1,80}\s" + _LEGAL_FORMS + r"\b"

_INSTITUTIONS = (
    "Staatsanwaltschaft", "Polizei(?:inspektion)?", "Bezirkshauptmannschaft",
    "Landesgericht", "Amtsgericht", "Oberlandesgericht",
)
AUTHORITY_PATTERN_UNICODE = (
    r"\b(?:" + "|".join(rf"{word}\s+[\p{{Lu}}][\p{{L}}-]+" for word in _INSTITUTIONS) + r")\b"
)
AUTHORITY_PATTERN_FALLBACK = (
    r"\b(?:" + "|".join(rf"{word}\s+[A-ZÄÖÜ][A-Za-zÄÖÜäöüß-]+" for word in _INSTITUTIONS) + r")\b"
)

PROSECUTOR_OFFICE_ABBREV_UNICODE = r"\bStA\s+[\p{Lu}][\p{L}-]+\b"
PROSECUTOR_OFFICE_ABBREV_FALLBACK = r"\bStA\s+[A-ZÄÖÜ][A-Za-zÄÖÜäöüß-]+\b"

# === CONTACT / MONEY PATTERNS ===
ADDRESS_PATTERN_UNICODE = (
    r"\b[\p{Lu}][\p{L}\-]+(?:straße|str\.|gasse|weg|platz|allee|ring)\s+\d+[a-z]?(?:/\d+)?"
    r"(?:,?\s+\d{4,5}\s+[\p{Lu}][\p{L}\s-]+)?\b"
)
ADDRESS_PATTERN_FALLBACK = (
    r"\b[A-ZÄÖÜ][A-Za-zÄÖÜäöüß-]+(?:straße|str\.|gasse|weg|platz|allee|ring)\s+\d+[a-z]?(?:/\d+)?"
    r"(?:,?\s+\d{4,5}\s+[A-ZÄÖÜ][A-Za-zÄÖÜäöüß\s-]+)?\b"
)

LETTER_PATTERN_UNICODE = r"\p{L}"
LETTER_PATTERN_FALLBACK = r"[A-Za-zÄÖÜäöüß]"


NAME_RE = build_unicode_regex(NAME_PATTERN_UNICODE, NAME_PATTERN_FALLBACK)
LAWYER_NAME_RE = build_unicode_regex(LAWYER_NAME_PATTERN_UNICODE, LAWYER_NAME_PATTERN_FALLBACK)
JUDGE_NAME_RE = build_unicode_regex(JUDGE_NAME_PATTERN_UNICODE, JUDGE_NAME_PATTERN_FALLBACK)
PROSECUTOR_NAME_RE = build_unicode_regex(PROSECUTOR_NAME_PATTERN_UNICODE, PROSECUTOR_NAME_PATTERN_FALLBACK)
ROLE_PREFIXED_NAME_RE = build_unicode_regex(
    ROLE_PREFIXED_NAME_PATTERN_UNICODE, ROLE_PREFIXED_NAME_PATTERN_FALLBACK
)
ORG_RE = build_unicode_regex(ORG_PATTERN_UNICODE, ORG_PATTERN_FALLBACK)
AUTHORITY_RE = build_unicode_regex(AUTHORITY_PATTERN_UNICODE, AUTHORITY_PATTERN_FALLBACK)
PROSECUTOR_OFFICE_ABBREV_RE = build_unicode_regex(
    PROSECUTOR_OFFICE_ABBREV_UNICODE, PROSECUTOR_OFFICE_ABBREV_FALLBACK
)
ADDRESS_RE = build_unicode_regex(ADDRESS_PATTERN_UNICODE, ADDRESS_PATTERN_FALLBACK, re.IGNORECASE)
LETTER_RE = build_unicode_regex(LETTER_PATTERN_UNICODE, LETTER_PATTERN_FALLBACK)

COURT_RE = re.compile(
    r"\b(?:Landesgericht|Amtsgericht|Bezirksgericht|Oberlandesgericht|Bundesgerichtshof"
    r"|Verwaltungsgericht|Verfassungsgerichtshof)\b",
    re.IGNORECASE,
)
COURT_ABBREV_RE = re.compile(r"\b(?:OLG|LG|AG|BGH|BVerfG|VfGH|VwGH)\b", re.IGNORECASE)

EMAIL_RE = re.compile(r"\b[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-z]{2,}\b")
PHONE_RE = re.compile(r"(?:\+?\d{2,3}[\s/-]?)?(?:\(?\d{2,5}\)?[\s/-]?){2,6}\d{2,4}")
AMOUNT_RE = re.compile(r"(?:EUR|€|CHF|PLN)\s*[\d.,]+|\d[\d.,]*\s*(?:Euro|EUR|€|CHF|PLN)", re.IGNORECASE)

# === REPRESENTATION / DEMAND PATTERNS ===
REPRESENTED_BY_RE = re.compile(
    r"(?:vertreten\s+durch|prozessbevollmächtigt(?:e[rnms]?|\s+durch)?|bevollmächtigt\s+durch)"
    r"\s+([^\n,;.]{3,120})",
    re.IGNORECASE,
)
REPRESENTING_PARTY_RE = re.compile(r"(?:für|namens|im\s+namen\s+von)\s+([^\n,;.]{3,120})", re.IGNORECASE)

DEMAND_RES = (
    re.compile(r"(?:fordert|begehrt|beantragt|verlangt)\s+([^\n.]{5,220})", re.IGNORECASE),
    re.compile(r"(?:schmerzensgeld|schadensersatz|unterlassung|herausgabe|rückzahlung)\s+([^\n.]{0,200})",
               re.IGNORECASE),
)

# === DEADLINE PATTERNS ===
# Group 1 is always the raw date.
DEADLINE_RES = (
    re.compile(r"(?:frist|deadline|fällig|bis spätestens)\s*(?:am\s*)?(\d{1,2}\.\d{1,2}\.\d{2,4})", re.IGNORECASE),
    re.compile(r"(\d{1,2}\.\d{1,2}\.\d{2,4})\s*(?:ist|als)?\s*(?:frist|deadline|fällig)", re.IGNORECASE),
)


# =============================================================================
# HELPERS
# =============================================================================

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_whitespace(value: str) -> str:
    return _WHITESPACE_RE.sub(" ", value).strip()


def unique(values: Iterable[str]) -> List[str]:
    """Trim, drop empties and dedupe while keeping first-seen order."""
    seen: List[str] = []
    for value in values:
        value = value.strip()
        if value and value not in seen:
            seen.append(value)
    return seen


def find_all(pattern: Pattern, text: str) -> List[str]:
    """Whole-match strings of ``pattern`` in ``text``, whitespace-normalized."""
    return unique(normalize_whitespace(match.group(0)) for match in pattern.finditer(text))
