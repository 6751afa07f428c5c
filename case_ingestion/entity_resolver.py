"""
Cross-Document Entity Resolver
Folds the per-document actor profiles of a case into one CaseActor per
identity. Identity is an exact match on a canonical form of the name:
titles, diacritics, punctuation and legal-form suffixes are ignored, but no
fuzzy matching is done ("M. Mustermann" and "Max Mustermann" stay apart).
"""

import logging
import re
import unicodedata
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .models import ActorRole, CaseActor, ExtractedActorProfile, INSTITUTION_ROLES
from .patterns import unique

logger = logging.getLogger(__name__)

ROLE_PRIORITY: Dict[ActorRole, int] = {
    ActorRole.JUDGE: 100,
    ActorRole.PROSECUTOR: 95,
    ActorRole.LAWYER: 90,
    ActorRole.COURT: 85,
    ActorRole.AUTHORITY: 80,
    ActorRole.VICTIM: 75,
    ActorRole.PRIVATE_PLAINTIFF: 72,
    ActorRole.WITNESS: 70,
    ActorRole.SUSPECT: 68,
    ActorRole.CLIENT: 65,
    ActorRole.OPPOSING_PARTY: 62,
    ActorRole.ORGANIZATION: 60,
    ActorRole.EMPLOYEE: 50,
    ActorRole.OTHER: 10,
}

_PERSON_TITLE_RE = re.compile(
    r"\b(herr|frau|dr|prof|mag|ra|rain|rechtsanwaltin|rechtsanwalt|richterin|richter|staatsanwaltin|staatsanwalt)\b"
)
_INSTITUTION_CODES = (
    (re.compile(r"\bstaatsanwaltschaft\b"), "sta"),
    (re.compile(r"\blandesgericht\b"), "lg"),
    (re.compile(r"\boberlandesgericht\b"), "olg"),
    (re.compile(r"\bamtsgericht\b"), "ag"),
    (re.compile(r"\bbezirksgericht\b"), "bg"),
)
_LEGAL_FORM_RE = re.compile(r"\b(gmbh|ag|kg|ug|ohg|gbr|ev|ltd|inc|se|kgaa|og|gesbr)\b")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")
_WHITESPACE_RE = re.compile(r"\s+")

# One scanned document: its id and the profiles found in it.
DocumentScan = Tuple[str, Sequence[ExtractedActorProfile]]


def _collapse(value: str) -> str:
    return _WHITESPACE_RE.sub(" ", value).strip()


def normalize_ascii(value: str) -> str:
    """Strip diacritics, lower-case, keep only [a-z0-9] and single spaces."""
    decomposed = unicodedata.normalize("NFKD", value)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _collapse(_NON_ALNUM_RE.sub(" ", stripped.lower()))


def canonical_person_name(name: str) -> str:
    return _collapse(_PERSON_TITLE_RE.sub("", normalize_ascii(name)))


def canonical_institution_name(name: str) -> str:
    canonical = normalize_ascii(name)
    for pattern, code in _INSTITUTION_CODES:
        canonical = pattern.sub(code, canonical)
    return _collapse(_LEGAL_FORM_RE.sub("", canonical))


def actor_identity_key(role: ActorRole, name: str, organization_name: Optional[str] = None) -> str:
    """Dedup boundary for actors: ``org:<canonical>`` or ``person:<canonical>``."""
    source = organization_name or name
    if role in INSTITUTION_ROLES:
        return f"org:{canonical_institution_name(source) or normalize_ascii(source)}"
    return f"person:{canonical_person_name(source) or normalize_ascii(source)}"


def actor_id_for_key(identity_key: str) -> str:
    return f"actor:{_WHITESPACE_RE.sub('-', identity_key)}"


def pick_role(current: ActorRole, candidate: ActorRole) -> ActorRole:
    """Higher-priority role wins; a role never regresses."""
    if ROLE_PRIORITY.get(candidate, 0) > ROLE_PRIORITY.get(current, 0):
        return candidate
    return current


def merge_notes(current: Optional[str], addition: Optional[str]) -> Optional[str]:
    if not current:
        return addition or None
    if not addition or addition in current:
        return current
    return f"{current} | {addition}"


def new_case_actor(
    actor_id: str,
    case_id: str,
    doc_id: str,
    profile: ExtractedActorProfile,
    now: str,
) -> CaseActor:
    notes = None
    if profile.demands:
        notes = f"Erkannte Forderungen: {'; '.join(profile.demands[:3])}"
    return CaseActor(
        id=actor_id,
        case_id=case_id,
        name=profile.name,
        role=profile.role,
        updated_at=now,
        confidence=profile.confidence,
        organization_name=profile.organization_name,
        represented_by=profile.represented_by,
        represented_parties=unique(profile.represented_parties),
        phones=unique(profile.phones),
        emails=unique(profile.emails),
        addresses=unique(profile.addresses),
        demands=unique(profile.demands),
        claim_amounts=unique(profile.claim_amounts),
        extracted_from_text=unique(profile.extracted_from_text),
        source_doc_ids=[doc_id],
        notes=notes,
    )


def merge_profile_into_actor(
    actor: CaseActor,
    profile: ExtractedActorProfile,
    doc_id: str,
    now: str,
) -> None:
    """Fold one more sighting of an identity into its CaseActor."""
    actor.role = pick_role(actor.role, profile.role)
    if actor.name != profile.name:
        actor.aliases = unique(actor.aliases + [profile.name])
    actor.organization_name = actor.organization_name or profile.organization_name

    if profile.represented_by:
        if not actor.represented_by:
            actor.represented_by = profile.represented_by
        elif actor.represented_by != profile.represented_by:
            # Never overwrite: conflicting counsel is recorded for review.
            actor.represented_by_conflicts = unique(
                actor.represented_by_conflicts + [actor.represented_by, profile.represented_by]
            )
            actor.notes = merge_notes(
                actor.notes,
                f"Vertretungskonflikt erkannt: {' / '.join(actor.represented_by_conflicts)}",
            )
            logger.info(f"Representation conflict for {actor.id}: {actor.represented_by_conflicts}")

    actor.represented_parties = unique(actor.represented_parties + profile.represented_parties)
    actor.phones = unique(actor.phones + profile.phones)
    actor.emails = unique(actor.emails + profile.emails)
    actor.addresses = unique(actor.addresses + profile.addresses)
    actor.demands = unique(actor.demands + profile.demands)
    actor.claim_amounts = unique(actor.claim_amounts + profile.claim_amounts)
    actor.extracted_from_text = unique(actor.extracted_from_text + profile.extracted_from_text)
    actor.confidence = max(actor.confidence, profile.confidence)

    if doc_id not in actor.source_doc_ids:
        actor.source_doc_ids.append(doc_id)
    actor.updated_at = now


def resolve_case_actors(case_id: str, scans: Iterable[DocumentScan], now: str) -> List[CaseActor]:
    """
    Merge profiles from every document of a case into case actors.

    Args:
        case_id: Case the actors belong to
        scans: (document id, profiles) pairs in document order
        now: ISO timestamp stamped on created/updated actors

    Returns:
        CaseActors in first-seen order, one per identity key
    """
    actors: Dict[str, CaseActor] = {}
    for doc_id, profiles in scans:
        for profile in profiles:
            identity_key = actor_identity_key(profile.role, profile.name, profile.organization_name)
            actor_id = actor_id_for_key(identity_key)
            current = actors.get(actor_id)
            if current is None:
                actors[actor_id] = new_case_actor(actor_id, case_id, doc_id, profile, now)
            else:
                merge_profile_into_actor(current, profile, doc_id, now)

    logger.info(f"Resolved {len(actors)} actors for case {case_id}")
    return list(actors.values())
