"""
Data Models for the Case Ingestion Pipeline
Source documents are validated with Pydantic; everything the pipeline
produces is a plain dataclass.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# ENUMS
# =============================================================================

class ActorRole(str, Enum):
    JUDGE = "judge"
    PROSECUTOR = "prosecutor"
    LAWYER = "lawyer"
    COURT = "court"
    AUTHORITY = "authority"
    VICTIM = "victim"
    PRIVATE_PLAINTIFF = "private_plaintiff"
    WITNESS = "witness"
    SUSPECT = "suspect"
    CLIENT = "client"
    OPPOSING_PARTY = "opposing_party"
    ORGANIZATION = "organization"
    EMPLOYEE = "employee"
    OTHER = "other"


class ProcedureType(str, Enum):
    CRIMINAL = "criminal"
    CIVIL = "civil"
    ADMINISTRATIVE = "administrative"
    LABOR = "labor"
    UNKNOWN = "unknown"


class CasePriority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class IssueCategory(str, Enum):
    CONTRADICTION = "contradiction"
    LIABILITY = "liability"


class DeadlineStatus(str, Enum):
    OPEN = "open"
    ALERTED = "alerted"
    ACKNOWLEDGED = "acknowledged"
    COMPLETED = "completed"
    EXPIRED = "expired"


INSTITUTION_ROLES = frozenset({ActorRole.ORGANIZATION, ActorRole.AUTHORITY, ActorRole.COURT})

REMINDER_OFFSETS_IN_MINUTES = (20160, 10080, 4320, 1440, 180, 60)


# =============================================================================
# TIMESTAMPS
# =============================================================================

def format_iso_instant(value: datetime) -> str:
    """Format an aware datetime as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC."""
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def utc_now_iso() -> str:
    return format_iso_instant(datetime.now(timezone.utc))


# =============================================================================
# INPUT
# =============================================================================

class SourceDocument(BaseModel):
    """A raw legal document handed to the pipeline. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    title: str = ""
    content: str = ""
    tags: List[str] = Field(default_factory=list)
    created_at: Optional[str] = None

    @field_validator("title", "content", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("tags", mode="before")
    @classmethod
    def _clean_tags(cls, value: Any) -> Any:
        if value is None:
            return []
        cleaned: List[str] = []
        for tag in value:
            tag = str(tag).strip()
            if tag and tag not in cleaned:
                cleaned.append(tag)
        return cleaned


# =============================================================================
# EXTRACTION OUTPUT
# =============================================================================

@dataclass
class ExtractedActorProfile:
    """One actor as seen in a single document scan. Never persisted."""
    name: str
    role: ActorRole
    confidence: float
    organization_name: Optional[str] = None
    represented_by: Optional[str] = None
    represented_parties: List[str] = field(default_factory=list)
    phones: List[str] = field(default_factory=list)
    emails: List[str] = field(default_factory=list)
    addresses: List[str] = field(default_factory=list)
    demands: List[str] = field(default_factory=list)
    claim_amounts: List[str] = field(default_factory=list)
    extracted_from_text: List[str] = field(default_factory=list)


@dataclass
class CaseActor:
    """
    Case-scoped actor merged across all documents of a case.
    Exactly one per identity key; ``id`` is derived from that key.
    """
    id: str
    case_id: str
    name: str
    role: ActorRole
    updated_at: str
    confidence: float = 0.0
    aliases: List[str] = field(default_factory=list)
    organization_name: Optional[str] = None
    represented_by: Optional[str] = None
    represented_by_conflicts: List[str] = field(default_factory=list)
    represented_parties: List[str] = field(default_factory=list)
    phones: List[str] = field(default_factory=list)
    emails: List[str] = field(default_factory=list)
    addresses: List[str] = field(default_factory=list)
    demands: List[str] = field(default_factory=list)
    claim_amounts: List[str] = field(default_factory=list)
    extracted_from_text: List[str] = field(default_factory=list)
    source_doc_ids: List[str] = field(default_factory=list)
    notes: Optional[str] = None


@dataclass
class CaseDeadline:
    id: str
    case_id: str
    title: str
    due_at: str                         # ISO instant, 09:00 UTC unless stated
    created_at: str
    updated_at: str
    source_doc_ids: List[str] = field(default_factory=list)
    status: DeadlineStatus = DeadlineStatus.OPEN
    priority: CasePriority = CasePriority.CRITICAL
    reminder_offsets_in_minutes: List[int] = field(
        default_factory=lambda: list(REMINDER_OFFSETS_IN_MINUTES)
    )
    derived_from: str = "regex_extract"
    evidence_snippets: List[str] = field(default_factory=list)


@dataclass
class CaseIssue:
    id: str
    case_id: str
    category: IssueCategory
    title: str
    description: str
    priority: CasePriority
    confidence: float
    created_at: str
    updated_at: str
    source_doc_ids: List[str] = field(default_factory=list)


@dataclass
class CaseMemoryEvent:
    id: str
    case_id: str
    summary: str
    created_at: str
    source_doc_ids: List[str] = field(default_factory=list)


@dataclass
class CaseFile:
    """Aggregate root of one ingested case."""
    id: str
    workspace_id: str
    title: str
    summary: str
    created_at: str
    updated_at: str
    external_ref: Optional[str] = None
    actor_ids: List[str] = field(default_factory=list)
    issue_ids: List[str] = field(default_factory=list)
    deadline_ids: List[str] = field(default_factory=list)
    memory_event_ids: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)


@dataclass
class CaseIngestionResult:
    case_file: CaseFile
    actors: List[CaseActor] = field(default_factory=list)
    issues: List[CaseIssue] = field(default_factory=list)
    deadlines: List[CaseDeadline] = field(default_factory=list)
    memory_events: List[CaseMemoryEvent] = field(default_factory=list)


# =============================================================================
# SERIALIZATION
# =============================================================================

def _plain_dict(items) -> Dict[str, Any]:
    return {key: value.value if isinstance(value, Enum) else value for key, value in items}


def to_record(entity) -> Dict[str, Any]:
    """Convert any pipeline dataclass into JSON-ready primitives."""
    return asdict(entity, dict_factory=_plain_dict)
