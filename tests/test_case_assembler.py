from __future__ import annotations

import asyncio

import pytest

from case_ingestion.case_assembler import CaseIngestor, build_case_summary, ingest_case_from_documents
from case_ingestion.config import PipelineConfig
from case_ingestion.db_inserter import InMemoryCaseStore, PersistenceError
from case_ingestion.models import ActorRole, CaseIssue, SourceDocument


def _ingest(ingestor: CaseIngestor, docs, **options):
    return asyncio.run(
        ingestor.ingest_case_from_documents("case-1", "ws-1", "Beispiel ./. Klein", docs, **options)
    )


def test_ingestion_builds_case_file(case_documents, memory_store: InMemoryCaseStore) -> None:
    result = _ingest(CaseIngestor(store=memory_store), case_documents, tags=["strafsache"], external_ref="12 Hv 3/26")

    case_file = result.case_file
    assert case_file.id == "case-1"
    assert case_file.workspace_id == "ws-1"
    assert case_file.summary == "Akte mit 2 Dokument(en), 1 erkanntem Problemfeld und 1 Frist(en)."
    assert case_file.tags == ["strafsache"]
    assert case_file.external_ref == "12 Hv 3/26"
    assert case_file.actor_ids == [actor.id for actor in result.actors]
    assert case_file.memory_event_ids == ["memory:case-1:anklage", "memory:case-1:notiz"]
    assert [deadline.due_at for deadline in result.deadlines] == ["2026-02-19T09:00:00.000Z"]

    assert memory_store.case_files["case-1"]["summary"] == case_file.summary
    assert len(memory_store.actors) == len(result.actors)
    assert len(memory_store.memory_events) == 2


def test_actors_are_merged_across_documents(case_documents, memory_store: InMemoryCaseStore) -> None:
    result = _ingest(CaseIngestor(store=memory_store), case_documents)

    ids = [actor.id for actor in result.actors]
    assert len(ids) == len(set(ids))

    victim = next(actor for actor in result.actors if actor.id == "actor:person:maria-beispiel")
    assert victim.role == ActorRole.VICTIM
    assert victim.source_doc_ids == ["anklage", "notiz"]
    assert victim.represented_by == "RA Max Verteidiger"
    assert "EUR 12.500" in victim.claim_amounts

    lawyer = next(actor for actor in result.actors if actor.id == "actor:person:max-verteidiger")
    assert lawyer.role == ActorRole.LAWYER
    assert lawyer.source_doc_ids == ["anklage", "notiz"]


def test_reingestion_is_idempotent(case_documents, memory_store: InMemoryCaseStore) -> None:
    ingestor = CaseIngestor(store=memory_store)
    first = _ingest(ingestor, case_documents)
    counts = (len(memory_store.actors), len(memory_store.issues), len(memory_store.deadlines))
    second = _ingest(ingestor, case_documents)

    assert [(a.id, a.role) for a in first.actors] == [(a.id, a.role) for a in second.actors]
    assert (len(memory_store.actors), len(memory_store.issues), len(memory_store.deadlines)) == counts
    assert len(memory_store.case_files) == 1


def test_skip_deadline_extraction(case_documents, memory_store: InMemoryCaseStore) -> None:
    result = _ingest(CaseIngestor(store=memory_store), case_documents, skip_deadline_extraction=True)
    assert result.deadlines == []
    assert result.case_file.summary.endswith("und 0 Frist(en).")
    assert memory_store.deadlines == {}


def test_configured_skip_and_thread_pool_scan(case_documents) -> None:
    config = PipelineConfig(scan_workers=4, skip_deadline_extraction=True)
    sequential = _ingest(CaseIngestor(), case_documents)
    pooled = _ingest(CaseIngestor(config=config), case_documents)

    assert pooled.deadlines == []
    assert [a.id for a in pooled.actors] == [a.id for a in sequential.actors]


def test_dict_documents_are_accepted() -> None:
    docs = [{"id": "d1", "title": "Klageschrift", "content": "Der Kläger Hans Beispiel begehrt Zahlung."}]
    result = ingest_case_from_documents("case-2", "ws-1", "Beispiel", docs)
    assert [actor.name for actor in result.actors] == ["Hans Beispiel"]
    assert result.actors[0].role == ActorRole.CLIENT


def test_empty_identifiers_are_rejected(case_documents) -> None:
    ingestor = CaseIngestor()
    with pytest.raises(ValueError):
        asyncio.run(ingestor.ingest_case_from_documents("", "ws-1", "T", case_documents))
    with pytest.raises(ValueError):
        asyncio.run(ingestor.ingest_case_from_documents("case-1", " ", "T", case_documents))


def test_empty_document_list_still_creates_case_file(memory_store: InMemoryCaseStore) -> None:
    result = _ingest(CaseIngestor(store=memory_store), [])
    assert result.actors == []
    assert result.case_file.summary == build_case_summary(0, 0, 0)
    assert "case-1" in memory_store.case_files


class _FailingIssueStore(InMemoryCaseStore):
    async def upsert_issue(self, issue: CaseIssue) -> None:
        raise RuntimeError("issue table unavailable")


def test_persistence_failure_is_raised_after_all_upserts(case_documents) -> None:
    store = _FailingIssueStore()
    with pytest.raises(PersistenceError) as excinfo:
        _ingest(CaseIngestor(store=store), case_documents)

    error = excinfo.value
    assert [entity_id for entity_id, _ in error.failures] == ["issue:case-1:notiz:contradiction"]
    assert isinstance(error.failures[0][1], RuntimeError)
    assert error.result is not None
    assert "case-1" in store.case_files
    assert len(store.actors) == len(error.result.actors)
    assert len(store.memory_events) == 2


def test_document_without_content_is_tolerated(memory_store: InMemoryCaseStore) -> None:
    docs = [SourceDocument(id="leer", title="Leeres Dokument", content="")]
    result = _ingest(CaseIngestor(store=memory_store), docs)
    assert result.actors == []
    assert result.memory_events[0].summary == "Dokument aufgenommen: Leeres Dokument. Kontextauszug: "
