"""
Procedure Classifier
Scores document text against keyword families and picks the most likely
kind of proceeding (criminal, civil, administrative, labor).
"""

import re
from typing import Dict, List, Tuple, Pattern

from .models import ProcedureType

# Each family is scored by presence (0/1) of each of its signal groups.
# Table order is the tie-break order: the first family reaching the top score wins.
PROCEDURE_SIGNALS: List[Tuple[ProcedureType, Tuple[Pattern, ...]]] = [
    (ProcedureType.CRIMINAL, (
        re.compile(r"\bstaatsanwalt|\banklage|\bstrafbefehl|\bstpo|\bstgb|\bbeschuldig"),
        re.compile(r"\bopfer|\bprivatbeteilig|\bnebenkl(ä|a)ger"),
    )),
    (ProcedureType.CIVIL, (
        re.compile(r"\bzpo|\bzivil|\bklageschrift|\bvertrag|\bschadensersatz|\bforderung"),
        re.compile(r"\bbeklagte|\bkl(ä|a)ger"),
    )),
    (ProcedureType.ADMINISTRATIVE, (
        re.compile(r"\bverwaltungsgericht|\bbescheid|\bbehörde|\bamtshaftung|\bvhg|\bavg"),
    )),
    (ProcedureType.LABOR, (
        re.compile(r"\barbeitsgericht|\bkuendigung|\bkündigung|\bbetriebsrat|\barbeitnehmer|\barbeitgeber"),
    )),
]


def score_procedure_types(text: str) -> Dict[ProcedureType, int]:
    """Per-family signal scores for ``text`` (case-insensitive)."""
    lowered = (text or "").lower()
    return {
        procedure: sum(1 for signal in signals if signal.search(lowered))
        for procedure, signals in PROCEDURE_SIGNALS
    }


def detect_procedure_type(text: str) -> ProcedureType:
    """
    Classify the proceeding a document belongs to.

    Returns ProcedureType.UNKNOWN for blank text or when no family scores.
    Ties at the top resolve in table order: criminal, civil, administrative, labor.
    """
    if not (text or "").strip():
        return ProcedureType.UNKNOWN

    scores = score_procedure_types(text)
    best = max(scores.values())
    if best == 0:
        return ProcedureType.UNKNOWN

    for procedure, _signals in PROCEDURE_SIGNALS:
        if scores[procedure] == best:
            return procedure
    return ProcedureType.LABOR
