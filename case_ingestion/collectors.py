"""
Issue, Deadline and Memory Collectors
Per-document collectors that turn keyword hits, deadline phrases and
content excerpts into case entities with deterministic ids.
"""

import logging
from dataclasses import dataclass
from typing import List, Tuple

from .deadline_extractor import extract_deadline_evidence
from .models import (
    CaseDeadline,
    CaseIssue,
    CaseMemoryEvent,
    CasePriority,
    IssueCategory,
    SourceDocument,
)
from .patterns import normalize_whitespace

logger = logging.getLogger(__name__)

MEMORY_EXCERPT_CHARS = 280


@dataclass(frozen=True)
class IssueRule:
    """Raise an issue when any keyword occurs in the document (case-insensitive)."""
    category: IssueCategory
    keywords: Tuple[str, ...]
    title: str
    description: str                    # formatted with the document title
    priority: CasePriority
    confidence: float

    def matches(self, lowered_content: str) -> bool:
        return any(keyword in lowered_content for keyword in self.keywords)


ISSUE_RULES: List[IssueRule] = [
    IssueRule(
        category=IssueCategory.CONTRADICTION,
        keywords=("widerspruch",),
        title="Möglicher Widerspruchshinweis",
        description="Dokument {title} enthält Hinweise auf widersprüchliche Darstellung.",
        priority=CasePriority.HIGH,
        confidence=0.72,
    ),
    IssueRule(
        category=IssueCategory.LIABILITY,
        keywords=("amtshaftung", "amtspflichtverletzung"),
        title="Amtshaftungsrelevanter Hinweis",
        description="Dokument {title} enthält mögliche Amtshaftungsindizien.",
        priority=CasePriority.CRITICAL,
        confidence=0.70,
    ),
]


def collect_issues(case_id: str, doc: SourceDocument, now: str) -> List[CaseIssue]:
    lowered = (doc.content or "").lower()
    issues = []
    for rule in ISSUE_RULES:
        if not rule.matches(lowered):
            continue
        issues.append(CaseIssue(
            id=f"issue:{case_id}:{doc.id}:{rule.category.value}",
            case_id=case_id,
            category=rule.category,
            title=rule.title,
            description=rule.description.format(title=doc.title),
            priority=rule.priority,
            confidence=rule.confidence,
            created_at=now,
            updated_at=now,
            source_doc_ids=[doc.id],
        ))
    if issues:
        logger.debug(f"Document {doc.id}: {[issue.category.value for issue in issues]}")
    return issues


def collect_deadlines(case_id: str, doc: SourceDocument, now: str) -> List[CaseDeadline]:
    deadlines = []
    for due_at, phrases in extract_deadline_evidence(doc.content).items():
        deadlines.append(CaseDeadline(
            id=f"deadline:{case_id}:{doc.id}:{due_at}",
            case_id=case_id,
            title=f"Frist aus {doc.title}",
            due_at=due_at,
            created_at=now,
            updated_at=now,
            source_doc_ids=[doc.id],
            evidence_snippets=phrases,
        ))
    return deadlines


def collect_memory_event(case_id: str, doc: SourceDocument, now: str) -> CaseMemoryEvent:
    excerpt = normalize_whitespace((doc.content or "")[:MEMORY_EXCERPT_CHARS])
    return CaseMemoryEvent(
        id=f"memory:{case_id}:{doc.id}",
        case_id=case_id,
        summary=f"Dokument aufgenommen: {doc.title}. Kontextauszug: {excerpt}",
        created_at=now,
        source_doc_ids=[doc.id],
    )
