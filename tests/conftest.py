from __future__ import annotations

from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from case_ingestion.db_inserter import InMemoryCaseStore  # noqa: E402
from case_ingestion.models import SourceDocument  # noqa: E402


CRIMINAL_BLOCK = """
    Richterin Dr. Petra Sommer verhandelte am Landesgericht Wien.
    Staatsanwalt Markus Klein stellte Antrag.
    Opfer Maria Beispiel, vertreten durch RA Max Verteidiger, fordert Schadensersatz EUR 12.500.
    Privatbeteiligte Anna Nebenklägerin, Kanzlei Muster & Partner GmbH, Tel: +43 664 1234567, E-Mail: anna@example.com
    Anschrift: Hauptstraße 10, 1010 Wien
"""


@pytest.fixture
def criminal_block() -> str:
    return CRIMINAL_BLOCK


@pytest.fixture
def case_documents() -> list[SourceDocument]:
    return [
        SourceDocument(
            id="anklage",
            title="Anklageschrift",
            content=(
                "Staatsanwalt Markus Klein erhebt Anklage nach StGB.\n"
                "Opfer Maria Beispiel, vertreten durch RA Max Verteidiger, fordert Schadensersatz EUR 12.500.\n"
                "Die Frist am 19.02.2026 ist einzuhalten."
            ),
            tags=["court"],
        ),
        SourceDocument(
            id="notiz",
            title="Telefonnotiz",
            content=(
                "Opfer Maria Beispiel meldet einen Widerspruch in der Aussage.\n"
                "RA Max Verteidiger bittet um Rückruf."
            ),
        ),
    ]


@pytest.fixture
def memory_store() -> InMemoryCaseStore:
    return InMemoryCaseStore()
