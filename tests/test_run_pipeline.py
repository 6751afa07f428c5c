from __future__ import annotations

import json
from pathlib import Path

import pytest

from case_ingestion.run_pipeline import load_documents, main


@pytest.fixture
def docs_dir(tmp_path: Path) -> Path:
    (tmp_path / "anklage_schrift.txt").write_text(
        "Staatsanwalt Markus Klein erhebt Anklage.\nDie Frist am 19.02.2026 ist einzuhalten.",
        encoding="utf-8",
    )
    (tmp_path / "ignored.pdf").write_text("binary", encoding="utf-8")
    return tmp_path


@pytest.fixture(autouse=True)
def _no_database(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("SKIP_DEADLINE_EXTRACTION", raising=False)


def test_load_documents_reads_text_files(docs_dir: Path) -> None:
    docs = load_documents(docs_dir)
    assert [(doc.id, doc.title) for doc in docs] == [("anklage_schrift", "anklage schrift")]


def test_cli_prints_summary(docs_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = main(["--docs-dir", str(docs_dir), "--case-id", "case-1", "--title", "Klein"])
    out = capsys.readouterr().out
    assert exit_code == 0
    assert "Akte mit 1 Dokument(en), 0 erkanntem Problemfeld und 1 Frist(en)." in out
    assert "Staatsanwalt Markus Klein" in out


def test_cli_json_output_with_database(docs_dir: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = main([
        "--docs-dir", str(docs_dir),
        "--case-id", "case-1",
        "--title", "Klein",
        "--skip-deadlines",
        "--tag", "strafsache",
        "--database-url", f"sqlite:///{tmp_path / 'cli.db'}",
        "--json",
    ])
    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert payload["case_file"]["id"] == "case-1"
    assert payload["case_file"]["tags"] == ["strafsache"]
    assert payload["deadlines"] == []
    assert payload["actors"][0]["role"] == "prosecutor"


def test_cli_missing_directory(tmp_path: Path) -> None:
    assert main(["--docs-dir", str(tmp_path / "missing"), "--case-id", "c", "--title", "t"]) == 1
