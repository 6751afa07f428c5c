from __future__ import annotations

import pytest

from case_ingestion.models import SourceDocument
from case_ingestion.reliability import applied_reliability_rules, compute_source_reliability

PLAIN_TEXT = "Das Gericht hat in der Sache entschieden und die Parteien geladen."


def test_neutral_document_keeps_base_weight() -> None:
    doc = SourceDocument(id="d", title="Unterlagen", content=PLAIN_TEXT)
    assert applied_reliability_rules(doc) == []
    assert compute_source_reliability(doc) == pytest.approx(1.0)


def test_court_decision_is_capped_at_maximum() -> None:
    doc = SourceDocument(id="d", title="Urteil", content="Landesgericht Wien. " + PLAIN_TEXT, tags=["court"])
    assert applied_reliability_rules(doc) == ["authoritative_title", "names_authority", "official_tag"]
    assert compute_source_reliability(doc) == pytest.approx(1.25)


def test_informal_draft_scores_low() -> None:
    doc = SourceDocument(id="d", title="Telefonnotiz", content=PLAIN_TEXT, tags=["Draft"])
    assert compute_source_reliability(doc) == pytest.approx(0.76)


def test_correspondence_title_is_discounted() -> None:
    doc = SourceDocument(id="d", title="Email an Mandant", content=PLAIN_TEXT)
    assert compute_source_reliability(doc) == pytest.approx(0.92)


def test_ocr_noise_and_empty_content_are_discounted() -> None:
    noisy = SourceDocument(id="d", title="Scan", content="1234 5678 #### 9999 //// 0000 a")
    empty = SourceDocument(id="e", title="Scan", content="")
    assert applied_reliability_rules(noisy) == ["ocr_noise"]
    assert compute_source_reliability(noisy) == pytest.approx(0.92)
    assert compute_source_reliability(empty) == pytest.approx(0.92)


@pytest.mark.parametrize(
    "content",
    [
        "Le tribunal a rendu sa décision après une longue délibération.",
        "Élodie Šimić und Jan Dvořák übergaben die Unterlagen persönlich.",
        "Το δικαστήριο εξέδωσε την απόφαση μετά από μακρά διάσκεψη.",
    ],
)
def test_accented_prose_is_not_ocr_noise(content: str) -> None:
    doc = SourceDocument(id="d", title="Unterlagen", content=content)
    assert applied_reliability_rules(doc) == []
    assert compute_source_reliability(doc) == pytest.approx(1.0)


def test_weight_never_leaves_bounds() -> None:
    worst = SourceDocument(id="d", title="Entwurf Chat Email", content="###", tags=["draft", "note"])
    assert compute_source_reliability(worst) >= 0.6
