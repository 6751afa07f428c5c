"""
Case Assembler
Orchestrates one ingestion call: scans the documents of a case, resolves
actors across documents, collects issues, deadlines and memory events,
builds the CaseFile and upserts everything through a CaseStore.

Re-ingesting the same documents yields the same ids, so the store ends up
in the same state (timestamps aside).
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from .actor_extractor import ActorProfileExtractor
from .collectors import collect_deadlines, collect_issues, collect_memory_event
from .config import PipelineConfig
from .db_inserter import CaseStore, InMemoryCaseStore, PersistenceError
from .entity_resolver import DocumentScan, resolve_case_actors
from .models import (
    CaseDeadline,
    CaseFile,
    CaseIngestionResult,
    CaseIssue,
    ExtractedActorProfile,
    ProcedureType,
    SourceDocument,
    utc_now_iso,
)
from .reliability import compute_source_reliability

logger = logging.getLogger(__name__)

DocumentInput = Union[SourceDocument, Mapping[str, Any]]


def build_case_summary(doc_count: int, issue_count: int, deadline_count: int) -> str:
    return (
        f"Akte mit {doc_count} Dokument(en), {issue_count} erkanntem Problemfeld "
        f"und {deadline_count} Frist(en)."
    )


def scan_document(
    doc: SourceDocument,
    procedure_type: Optional[ProcedureType] = None,
) -> List[ExtractedActorProfile]:
    """Extract actor profiles from one document, weighted by its reliability."""
    weight = compute_source_reliability(doc)
    return ActorProfileExtractor(procedure_type, weight).extract(doc.content)


class CaseIngestor:
    """
    Turns a batch of source documents into a persisted case.

    Usage:
        ingestor = CaseIngestor(store=DatabaseCaseStore.from_url(url))
        result = await ingestor.ingest_case_from_documents(
            case_id="case-1", workspace_id="ws-1", title="Muster ./. Beispiel",
            docs=documents,
        )
    """

    def __init__(
        self,
        store: Optional[CaseStore] = None,
        config: Optional[PipelineConfig] = None,
    ):
        self.config = config or PipelineConfig()
        self.config.validate()
        self.store = store or InMemoryCaseStore()

    async def ingest_case_from_documents(
        self,
        case_id: str,
        workspace_id: str,
        title: str,
        docs: Sequence[DocumentInput],
        tags: Optional[List[str]] = None,
        external_ref: Optional[str] = None,
        skip_deadline_extraction: Optional[bool] = None,
        procedure_type: Optional[ProcedureType] = None,
    ) -> CaseIngestionResult:
        """
        Ingest documents into a case and persist the result.

        Args:
            case_id: Case identifier, also the CaseFile id
            workspace_id: Workspace the case belongs to
            title: Case title
            docs: SourceDocuments or dicts with the same fields
            tags: Case tags
            external_ref: Reference in an external system (file number)
            skip_deadline_extraction: Overrides the configured default
            procedure_type: Forces a procedure family instead of detecting it per document

        Returns:
            CaseIngestionResult with everything that was upserted

        Raises:
            ValueError: Empty case or workspace id
            PersistenceError: At least one upsert failed (all were attempted)
        """
        if not case_id or not case_id.strip():
            raise ValueError("case_id must not be empty")
        if not workspace_id or not workspace_id.strip():
            raise ValueError("workspace_id must not be empty")
        if skip_deadline_extraction is None:
            skip_deadline_extraction = self.config.skip_deadline_extraction

        documents = [
            doc if isinstance(doc, SourceDocument) else SourceDocument.model_validate(doc)
            for doc in docs
        ]
        now = utc_now_iso()
        logger.info(f"Ingesting case {case_id}: {len(documents)} document(s)")

        # Step 1: Scan documents and resolve actors
        scans = self._scan_documents(documents, procedure_type)
        actors = resolve_case_actors(case_id, scans, now)

        # Step 2: Issues, deadlines and memory events per document
        issues: List[CaseIssue] = []
        deadlines: List[CaseDeadline] = []
        memory_events = []
        for doc in documents:
            issues.extend(collect_issues(case_id, doc, now))
            if not skip_deadline_extraction:
                deadlines.extend(collect_deadlines(case_id, doc, now))
            memory_events.append(collect_memory_event(case_id, doc, now))

        # Step 3: Case file
        case_file = CaseFile(
            id=case_id,
            workspace_id=workspace_id,
            title=title,
            summary=build_case_summary(len(documents), len(issues), len(deadlines)),
            created_at=now,
            updated_at=now,
            external_ref=external_ref,
            actor_ids=[actor.id for actor in actors],
            issue_ids=[issue.id for issue in issues],
            deadline_ids=[deadline.id for deadline in deadlines],
            memory_event_ids=[event.id for event in memory_events],
            tags=list(tags or []),
        )
        result = CaseIngestionResult(
            case_file=case_file,
            actors=actors,
            issues=issues,
            deadlines=deadlines,
            memory_events=memory_events,
        )

        # Step 4: Persist
        await self._persist(result)
        logger.info(
            f"Case {case_id} ingested: {len(actors)} actors, {len(issues)} issues, "
            f"{len(deadlines)} deadlines, {len(memory_events)} memory events"
        )
        return result

    def ingest_case_from_documents_sync(self, *args, **kwargs) -> CaseIngestionResult:
        """Synchronous wrapper for ingest_case_from_documents."""
        return asyncio.run(self.ingest_case_from_documents(*args, **kwargs))

    def _scan_documents(
        self,
        documents: List[SourceDocument],
        procedure_type: Optional[ProcedureType],
    ) -> List[DocumentScan]:
        workers = min(self.config.scan_workers, len(documents))
        if workers > 1:
            # map keeps document order
            with ThreadPoolExecutor(max_workers=workers) as executor:
                profiles = list(executor.map(lambda doc: scan_document(doc, procedure_type), documents))
        else:
            profiles = [scan_document(doc, procedure_type) for doc in documents]
        return [(doc.id, doc_profiles) for doc, doc_profiles in zip(documents, profiles)]

    async def _persist(self, result: CaseIngestionResult) -> None:
        operations: List[Tuple[str, Any]] = [(result.case_file.id, self.store.upsert_case_file(result.case_file))]
        operations += [(actor.id, self.store.upsert_actor(actor)) for actor in result.actors]
        operations += [(issue.id, self.store.upsert_issue(issue)) for issue in result.issues]
        operations += [(deadline.id, self.store.upsert_deadline(deadline)) for deadline in result.deadlines]
        operations += [(event.id, self.store.upsert_memory_event(event)) for event in result.memory_events]

        outcomes = await asyncio.gather(*(op for _, op in operations), return_exceptions=True)

        failures = []
        for (entity_id, _), outcome in zip(operations, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(f"Upsert failed for {entity_id}: {outcome}")
                failures.append((entity_id, outcome))
        if failures:
            raise PersistenceError(failures, result)
        logger.debug(f"Upserted {len(operations)} entities for case {result.case_file.id}")


def ingest_case_from_documents(
    case_id: str,
    workspace_id: str,
    title: str,
    docs: Sequence[DocumentInput],
    store: Optional[CaseStore] = None,
    config: Optional[PipelineConfig] = None,
    **options: Any,
) -> CaseIngestionResult:
    """Convenience function: ingest synchronously with a fresh CaseIngestor."""
    ingestor = CaseIngestor(store=store, config=config)
    return ingestor.ingest_case_from_documents_sync(case_id, workspace_id, title, docs, **options)
