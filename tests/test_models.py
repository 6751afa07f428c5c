from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from case_ingestion.models import (
    ActorRole,
    CaseDeadline,
    SourceDocument,
    format_iso_instant,
    to_record,
)


def test_source_document_cleans_tags_and_missing_text() -> None:
    doc = SourceDocument(id="d1", title=None, content=None, tags=[" court ", "court", "", "draft"])
    assert doc.title == ""
    assert doc.content == ""
    assert doc.tags == ["court", "draft"]


def test_source_document_requires_id() -> None:
    with pytest.raises(ValidationError):
        SourceDocument(id="", title="x", content="y")


def test_source_document_is_frozen() -> None:
    doc = SourceDocument(id="d1", title="Urteil", content="Text")
    with pytest.raises(ValidationError):
        doc.title = "Beschluss"


def test_format_iso_instant_uses_millisecond_utc() -> None:
    value = datetime(2026, 2, 19, 9, 0, 0, 123456, tzinfo=timezone.utc)
    assert format_iso_instant(value) == "2026-02-19T09:00:00.123Z"


def test_to_record_flattens_enums() -> None:
    deadline = CaseDeadline(
        id="deadline:c:d:2026-02-19T09:00:00.000Z",
        case_id="c",
        title="Frist aus Urteil",
        due_at="2026-02-19T09:00:00.000Z",
        created_at="2026-01-01T00:00:00.000Z",
        updated_at="2026-01-01T00:00:00.000Z",
    )
    record = to_record(deadline)
    assert record["status"] == "open"
    assert record["priority"] == "critical"
    assert record["reminder_offsets_in_minutes"] == [20160, 10080, 4320, 1440, 180, 60]
    assert ActorRole("private_plaintiff") is ActorRole.PRIVATE_PLAINTIFF
