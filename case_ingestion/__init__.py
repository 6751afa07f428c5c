"""
Case Ingestion Pipeline
Turns raw legal documents into a structured case file: actors, issues,
deadlines and memory events, deduplicated across documents.

Components:
- ActorProfileExtractor: Pattern-based actor extraction per document
- detect_procedure_type: Criminal / civil / administrative / labor classifier
- compute_source_reliability: Document trust weight in [0.6, 1.25]
- resolve_case_actors: Cross-document actor deduplication
- CaseIngestor: Orchestrates scan → resolve → collect → persist
- CaseStore: Upsert contract (InMemoryCaseStore, DatabaseCaseStore)
"""

from .actor_extractor import ActorProfileExtractor, extract_actor_names, extract_actor_profiles
from .case_assembler import CaseIngestor, ingest_case_from_documents
from .config import PipelineConfig
from .db_inserter import CaseStore, DatabaseCaseStore, InMemoryCaseStore, PersistenceError
from .deadline_extractor import extract_deadline_dates, to_iso_date
from .entity_resolver import resolve_case_actors
from .models import (
    ActorRole,
    CaseActor,
    CaseDeadline,
    CaseFile,
    CaseIngestionResult,
    CaseIssue,
    CaseMemoryEvent,
    ExtractedActorProfile,
    ProcedureType,
    SourceDocument,
)
from .procedure_classifier import detect_procedure_type
from .reliability import compute_source_reliability

__all__ = [
    # Core pipeline
    'CaseIngestor',
    'ingest_case_from_documents',
    'PipelineConfig',

    # Extraction
    'ActorProfileExtractor',
    'extract_actor_profiles',
    'extract_actor_names',
    'detect_procedure_type',
    'compute_source_reliability',
    'extract_deadline_dates',
    'to_iso_date',
    'resolve_case_actors',

    # Persistence
    'CaseStore',
    'InMemoryCaseStore',
    'DatabaseCaseStore',
    'PersistenceError',

    # Models
    'ActorRole',
    'ProcedureType',
    'SourceDocument',
    'ExtractedActorProfile',
    'CaseActor',
    'CaseIssue',
    'CaseDeadline',
    'CaseMemoryEvent',
    'CaseFile',
    'CaseIngestionResult',
]
