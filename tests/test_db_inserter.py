from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from case_ingestion.case_assembler import CaseIngestor
from case_ingestion.db_inserter import DatabaseCaseStore, PersistenceError, is_memory_sqlite_url
from case_ingestion.models import CaseMemoryEvent


@pytest.fixture
def sqlite_store(tmp_path: Path) -> DatabaseCaseStore:
    return DatabaseCaseStore.from_url(f"sqlite:///{tmp_path / 'cases.db'}")


def test_ingestion_round_trips_through_database(sqlite_store: DatabaseCaseStore, case_documents) -> None:
    ingestor = CaseIngestor(store=sqlite_store)
    result = asyncio.run(ingestor.ingest_case_from_documents("case-1", "ws-1", "Beispiel", case_documents))

    stats = sqlite_store.get_case_stats("case-1")
    assert stats == {
        "case_id": "case-1",
        "case_files": 1,
        "actors": len(result.actors),
        "issues": len(result.issues),
        "deadlines": len(result.deadlines),
        "memory_events": len(result.memory_events),
    }

    stored = {record["id"]: record for record in sqlite_store.load_actors("case-1")}
    victim = stored["actor:person:maria-beispiel"]
    assert victim["role"] == "victim"
    assert victim["source_doc_ids"] == ["anklage", "notiz"]


def test_reingestion_does_not_duplicate_rows(sqlite_store: DatabaseCaseStore, case_documents) -> None:
    ingestor = CaseIngestor(store=sqlite_store)
    asyncio.run(ingestor.ingest_case_from_documents("case-1", "ws-1", "Beispiel", case_documents))
    before = sqlite_store.get_case_stats("case-1")
    asyncio.run(ingestor.ingest_case_from_documents("case-1", "ws-1", "Beispiel", case_documents))
    assert sqlite_store.get_case_stats("case-1") == before


def test_upsert_replaces_payload(sqlite_store: DatabaseCaseStore) -> None:
    event = CaseMemoryEvent(id="memory:c:d", case_id="c", summary="alt", created_at="2026-01-01T00:00:00.000Z")
    sqlite_store.save_memory_event(event)
    event.summary = "neu"
    sqlite_store.save_memory_event(event)
    assert sqlite_store.get_case_stats("c")["memory_events"] == 1


def test_cases_are_isolated_by_case_id(sqlite_store: DatabaseCaseStore, case_documents) -> None:
    ingestor = CaseIngestor(store=sqlite_store)
    asyncio.run(ingestor.ingest_case_from_documents("case-1", "ws-1", "A", case_documents))
    asyncio.run(ingestor.ingest_case_from_documents("case-2", "ws-1", "B", case_documents))

    assert sqlite_store.get_case_stats("case-1")["actors"] == sqlite_store.get_case_stats("case-2")["actors"]
    assert sqlite_store.get_case_stats("case-3")["case_files"] == 0


@pytest.mark.parametrize("url", ["sqlite://", "sqlite:///:memory:"])
def test_in_memory_sqlite_shares_one_database(url: str, case_documents) -> None:
    store = DatabaseCaseStore.from_url(url)
    ingestor = CaseIngestor(store=store)
    result = asyncio.run(ingestor.ingest_case_from_documents("case-1", "ws-1", "Beispiel", case_documents))

    stats = store.get_case_stats("case-1")
    assert stats["case_files"] == 1
    assert stats["actors"] == len(result.actors)
    assert stats["memory_events"] == len(result.memory_events)
    assert len(store.load_actors("case-1")) == len(result.actors)


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("sqlite://", True),
        ("sqlite:///:memory:", True),
        ("sqlite+pysqlite:///:memory:", True),
        ("sqlite:///cases.db", False),
        ("postgresql://user:pw@localhost/cases", False),
    ],
)
def test_is_memory_sqlite_url(url: str, expected: bool) -> None:
    assert is_memory_sqlite_url(url) is expected


def test_persistence_error_message_lists_failures() -> None:
    error = PersistenceError([("actor:x", RuntimeError("boom"))])
    assert "1 upsert(s) failed" in str(error)
    assert "actor:x: boom" in str(error)
