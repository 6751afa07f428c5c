"""
Document Reliability Scorer
Heuristic weight in [0.6, 1.25] describing how far extractions from a
document can be trusted. Court decisions and indictments score high,
informal notes, chats and OCR noise score low.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, List

from .models import SourceDocument
from .patterns import LETTER_RE

logger = logging.getLogger(__name__)

BASE_WEIGHT = 1.0
MIN_WEIGHT = 0.6
MAX_WEIGHT = 1.25
CONTENT_HEAD_CHARS = 2000
MIN_LETTER_RATIO = 0.45


@dataclass(frozen=True)
class DocumentSignals:
    """Lower-cased views of a document that the rules look at."""
    title: str
    content_head: str
    tags: List[str]

    @classmethod
    def from_document(cls, doc: SourceDocument) -> "DocumentSignals":
        return cls(
            title=(doc.title or "").lower(),
            content_head=(doc.content or "")[:CONTENT_HEAD_CHARS].lower(),
            tags=[tag.lower() for tag in doc.tags],
        )

    @property
    def letter_ratio(self) -> float:
        if not self.content_head:
            return 0.0
        return len(LETTER_RE.findall(self.content_head)) / len(self.content_head)


@dataclass(frozen=True)
class ReliabilityRule:
    name: str
    weight: float
    applies: Callable[[DocumentSignals], bool]


def _title_matches(pattern: str) -> Callable[[DocumentSignals], bool]:
    compiled = re.compile(pattern)
    return lambda signals: bool(compiled.search(signals.title))


def _any_tag_matches(pattern: str) -> Callable[[DocumentSignals], bool]:
    compiled = re.compile(pattern)
    return lambda signals: any(compiled.search(tag) for tag in signals.tags)


_NAMED_AUTHORITY_RE = re.compile(
    r"(landesgericht|amtsgericht|oberlandesgericht|bundesgerichtshof|staatsanwaltschaft|verwaltungsgericht)"
)

RELIABILITY_RULES: List[ReliabilityRule] = [
    ReliabilityRule(
        "authoritative_title", 0.18,
        _title_matches(r"(urteil|beschluss|erkenntnis|anklageschrift|strafbefehl|bescheid|protokoll)"),
    ),
    ReliabilityRule(
        "names_authority", 0.12,
        lambda signals: bool(_NAMED_AUTHORITY_RE.search(signals.content_head)),
    ),
    ReliabilityRule(
        "formal_submission_title", 0.08,
        _title_matches(r"(klageschrift|berufung|stellungnahme|eingabe|schriftsatz)"),
    ),
    ReliabilityRule(
        "informal_title", -0.18,
        _title_matches(r"(notiz|memo|entwurf|chat|telefonnotiz)"),
    ),
    ReliabilityRule(
        "correspondence_title", -0.08,
        _title_matches(r"(email|korrespondenz|nachricht)"),
    ),
    ReliabilityRule(
        "ocr_noise", -0.08,
        lambda signals: signals.letter_ratio < MIN_LETTER_RATIO,
    ),
    ReliabilityRule(
        "official_tag", 0.06,
        _any_tag_matches(r"(gericht|behoerde|authority|court|official)"),
    ),
    ReliabilityRule(
        "draft_tag", -0.06,
        _any_tag_matches(r"(draft|entwurf|note)"),
    ),
]


def _fired_rules(doc: SourceDocument) -> List[ReliabilityRule]:
    signals = DocumentSignals.from_document(doc)
    return [rule for rule in RELIABILITY_RULES if rule.applies(signals)]


def applied_reliability_rules(doc: SourceDocument) -> List[str]:
    """Names of the rules that fire for ``doc``, in table order."""
    return [rule.name for rule in _fired_rules(doc)]


def compute_source_reliability(doc: SourceDocument) -> float:
    """
    Reliability weight for ``doc``.

    Args:
        doc: Source document (title, content and tags are inspected)

    Returns:
        Weight clamped to [0.6, 1.25]
    """
    rules = _fired_rules(doc)
    weight = BASE_WEIGHT + sum(rule.weight for rule in rules)
    weight = max(MIN_WEIGHT, min(MAX_WEIGHT, weight))
    logger.debug(f"Reliability {weight:.2f} for document {doc.id}: {[rule.name for rule in rules]}")
    return weight
