from __future__ import annotations

import pytest

from case_ingestion.deadline_extractor import extract_deadline_dates, extract_deadline_evidence, to_iso_date


def test_to_iso_date_parses_german_dates() -> None:
    assert to_iso_date("19.02.2026") == "2026-02-19T09:00:00.000Z"
    assert to_iso_date("1.2.26") == "2026-02-01T09:00:00.000Z"


@pytest.mark.parametrize("value", ["31.13.2026", "31.02.2026", "19-02-2026", "19.02.202", "", "aa.bb.cccc"])
def test_to_iso_date_rejects_malformed_or_impossible_dates(value: str) -> None:
    assert to_iso_date(value) is None


def test_extract_deadline_dates_finds_both_phrase_orders() -> None:
    content = "Die Frist am 19.02.2026 ist einzuhalten. 20.02.2026 ist Frist für Stellungnahme."
    assert extract_deadline_dates(content) == [
        "2026-02-19T09:00:00.000Z",
        "2026-02-20T09:00:00.000Z",
    ]


def test_duplicate_deadlines_are_collapsed_with_evidence() -> None:
    content = "Frist am 19.02.2026. Nochmals: fällig 19.02.2026."
    evidence = extract_deadline_evidence(content)
    assert list(evidence) == ["2026-02-19T09:00:00.000Z"]
    assert evidence["2026-02-19T09:00:00.000Z"] == ["Frist am 19.02.2026", "fällig 19.02.2026"]


def test_invalid_deadline_dates_are_skipped() -> None:
    assert extract_deadline_dates("Frist am 31.02.2026") == []
    assert extract_deadline_dates("") == []
