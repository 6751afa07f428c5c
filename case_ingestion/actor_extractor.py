"""
Actor Profile Extractor
Line-by-line scan of one document that finds the people and institutions
taking part in a proceeding, infers their role from the surrounding line,
and collects contacts, representation, demands and claim amounts.

One profile is produced per distinct (case-insensitive) name in the document.
"""

import logging
import re
from typing import Dict, List, Optional, Tuple, Pattern

from .models import ActorRole, ExtractedActorProfile, ProcedureType
from .patterns import (
    ADDRESS_RE,
    AMOUNT_RE,
    AUTHORITY_RE,
    COURT_ABBREV_RE,
    COURT_RE,
    DEMAND_RES,
    EMAIL_RE,
    JUDGE_NAME_RE,
    LAWYER_NAME_RE,
    NAME_RE,
    ORG_RE,
    PHONE_RE,
    PROSECUTOR_NAME_RE,
    PROSECUTOR_OFFICE_ABBREV_RE,
    REPRESENTED_BY_RE,
    REPRESENTING_PARTY_RE,
    ROLE_PREFIXED_NAME_RE,
    find_all,
    normalize_whitespace,
    unique,
)
from .procedure_classifier import detect_procedure_type

logger = logging.getLogger(__name__)

MIN_SOURCE_WEIGHT = 0.6
MAX_SOURCE_WEIGHT = 1.25
MIN_CONFIDENCE = 0.35
MAX_CONFIDENCE = 0.99
SNIPPET_LENGTH = 220

_LINE_SPLIT_RE = re.compile(r"\r\n|\r|\n")
_ADDRESS_LINE_RE = re.compile(r"^(anschrift|adresse)\s*:", re.IGNORECASE)
_PARTY_WORD_RE = re.compile(
    r"\b(?:opfer|geschädigte?r|privatbeteiligte?r|nebenkl(?:ä|a)ger(?:in)?|kläger(?:in)?|beklagte?r)\b",
    re.IGNORECASE,
)

# Context inference, first hit wins. The third column overrides the role in
# criminal proceedings. Order matters: lines often hit several families.
ROLE_CONTEXT_RULES: List[Tuple[Pattern, ActorRole, Optional[ActorRole]]] = [
    (re.compile(r"\bstaatsanwalt|\bstaatsanwältin|\boberstaatsanwalt"), ActorRole.PROSECUTOR, None),
    (re.compile(r"\brichter|\brichterin|\bvorsitz"), ActorRole.JUDGE, None),
    (re.compile(r"\bra\b|\brain\b|\brechtsanwalt|\brechtsanwältin|\bverteidiger"), ActorRole.LAWYER, None),
    (re.compile(r"\bopfer\b|\bgeschädigt"), ActorRole.VICTIM, None),
    (re.compile(r"\bprivatbeteiligt|\bnebenkl(ä|a)ger"), ActorRole.PRIVATE_PLAINTIFF, None),
    (re.compile(r"\bkl(ä|a)ger|\bnebenkl(ä|a)ger"), ActorRole.CLIENT, ActorRole.PRIVATE_PLAINTIFF),
    (re.compile(r"\bmandant|\bmandantin|\bauftraggeber|\bclient\b"), ActorRole.CLIENT, None),
    (re.compile(r"\bbeklagte?r|\bgegner|\bgegnerin"), ActorRole.OPPOSING_PARTY, None),
    (re.compile(r"\bzeuge|\bzeugin"), ActorRole.WITNESS, None),
    (re.compile(r"\bbeschuldigt|\bverdächtig|\bangeklagt"), ActorRole.SUSPECT, None),
    (re.compile(r"\bbehörde|\bamt|\bstaatsanwaltschaft|\bpolizei"), ActorRole.AUTHORITY, None),
    (re.compile(r"\bgericht|\bsenat|\bkammer"), ActorRole.COURT, None),
]

# === CONFIDENCE SIGNALS ===
DIRECT_TITLE_SIGNALS: Dict[ActorRole, Pattern] = {
    ActorRole.JUDGE: re.compile(r"\brichter|\brichterin"),
    ActorRole.PROSECUTOR: re.compile(r"\bstaatsanwalt|\bstaatsanwältin"),
    ActorRole.LAWYER: re.compile(r"\bra\b|\brechtsanwalt|\brechtsanwältin"),
}
PARTY_KEYWORD_SIGNAL = re.compile(r"\bkl(ä|a)ger|\bbeklagte|\bopfer|\bprivatbeteiligt|\bzeug")
PROCEDURE_CONTEXT_SIGNALS: Dict[ProcedureType, Pattern] = {
    ProcedureType.CRIMINAL: re.compile(r"\banklage|\bstgb|\bstpo|\bstraf"),
    ProcedureType.CIVIL: re.compile(r"\bzpo|\bzivil|\bvertrag|\bschadensersatz"),
    ProcedureType.ADMINISTRATIVE: re.compile(r"\bverwaltungs|\bbescheid|\bbehörde"),
    ProcedureType.LABOR: re.compile(r"\barbeitsgericht|\bkündigung|\bkuendigung|\bbetriebsrat"),
}


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def normalize_phone(value: str) -> Optional[str]:
    """Keep digits and '+'; reject anything outside 7-15 digits."""
    compact = re.sub(r"[^\d+]", "", value)
    digit_count = len(re.sub(r"\D", "", compact))
    if digit_count < 7 or digit_count > 15:
        return None
    return compact


def infer_role_from_context(
    context: str,
    procedure_type: ProcedureType,
    seed_role: Optional[ActorRole] = None,
) -> ActorRole:
    """Role for a name seen in ``context``. A seed other than OTHER wins outright."""
    if seed_role is not None and seed_role != ActorRole.OTHER:
        return seed_role
    lowered = context.lower()
    for pattern, role, criminal_role in ROLE_CONTEXT_RULES:
        if pattern.search(lowered):
            if criminal_role is not None and procedure_type == ProcedureType.CRIMINAL:
                return criminal_role
            return role
    return seed_role or ActorRole.OTHER


def role_confidence(
    role: ActorRole,
    context: str,
    procedure_type: ProcedureType,
    source_weight: float,
) -> float:
    """
    Confidence for a role assignment.

    Direct professional titles count most, party keywords and procedure
    signals a little; the result is scaled by the source reliability weight
    and always stays within [0.35, 0.99].
    """
    if role == ActorRole.OTHER:
        base = 0.45
    else:
        lowered = context.lower()
        title_signal = DIRECT_TITLE_SIGNALS.get(role)
        procedure_signal = PROCEDURE_CONTEXT_SIGNALS.get(procedure_type)
        has_direct_title = bool(title_signal and title_signal.search(lowered))
        has_party_keyword = bool(PARTY_KEYWORD_SIGNAL.search(lowered))
        has_procedure_signal = bool(procedure_signal and procedure_signal.search(lowered))
        base = clamp(
            0.55
            + (0.25 if has_direct_title else 0)
            + (0.10 if has_party_keyword else 0)
            + (0.05 if has_procedure_signal else 0),
            0.40,
            0.98,
        )
    return clamp(base * source_weight, MIN_CONFIDENCE, MAX_CONFIDENCE)


def seed_role_for_prefix(keyword: str, procedure_type: ProcedureType) -> ActorRole:
    """Role implied by the keyword in front of a role-prefixed name."""
    keyword = keyword.lower()
    if keyword.startswith(("opfer", "geschädigt")):
        return ActorRole.VICTIM
    if keyword.startswith(("privatbeteiligt", "nebenkl")):
        return ActorRole.PRIVATE_PLAINTIFF
    if keyword.startswith("beklagt"):
        return ActorRole.OPPOSING_PARTY
    if keyword.startswith(("kläger", "klager")):
        if procedure_type == ProcedureType.CRIMINAL:
            return ActorRole.PRIVATE_PLAINTIFF
        return ActorRole.CLIENT
    return ActorRole.OTHER


# === PER-LINE FIELD EXTRACTION ===

def extract_phones(context: str) -> List[str]:
    phones = (normalize_phone(match.group(0)) for match in PHONE_RE.finditer(context))
    return unique(phone for phone in phones if phone)


def extract_emails(context: str) -> List[str]:
    return unique(match.group(0).lower() for match in EMAIL_RE.finditer(context))


def extract_demands(context: str) -> List[str]:
    demands = []
    for pattern in DEMAND_RES:
        for match in pattern.finditer(context):
            demand = normalize_whitespace(match.group(0))
            if len(demand) >= 6:
                demands.append(demand)
    return unique(demands)


def extract_claim_amounts(context: str) -> List[str]:
    return unique(
        re.sub(r"\s*[.,;:]+$", "", normalize_whitespace(match.group(0)))
        for match in AMOUNT_RE.finditer(context)
    )


def extract_represented_by(context: str) -> Optional[str]:
    for match in REPRESENTED_BY_RE.finditer(context):
        value = normalize_whitespace(match.group(1) or "")
        if len(value) >= 3:
            return value
    return None


def extract_represented_parties(context: str) -> List[str]:
    parties = []
    for match in REPRESENTING_PARTY_RE.finditer(context):
        value = normalize_whitespace(match.group(1) or "")
        if len(value) >= 3:
            parties.append(value)
    return unique(parties)


class _ProfileRegistry:
    """Profiles of a single document, keyed by lower-cased name."""

    def __init__(self, procedure_type: ProcedureType, source_weight: float):
        self.procedure_type = procedure_type
        self.source_weight = source_weight
        self.profiles: Dict[str, ExtractedActorProfile] = {}
        self.last_person_key: Optional[str] = None

    def register(
        self,
        raw_name: str,
        context: str,
        seed_role: Optional[ActorRole] = None,
        organization_name: Optional[str] = None,
    ) -> None:
        name = normalize_whitespace(raw_name)
        if len(name) < 3:
            return

        role = infer_role_from_context(context, self.procedure_type, seed_role)
        confidence = role_confidence(role, context, self.procedure_type, self.source_weight)
        key = name.lower()

        if role not in (ActorRole.ORGANIZATION, ActorRole.AUTHORITY):
            self.last_person_key = key

        snippet = context[:SNIPPET_LENGTH]
        phones = extract_phones(context)
        emails = extract_emails(context)
        addresses = find_all(ADDRESS_RE, context)
        demands = extract_demands(context)
        claim_amounts = extract_claim_amounts(context)
        represented_by = extract_represented_by(context)
        represented_parties = extract_represented_parties(context)

        existing = self.profiles.get(key)
        if existing is None:
            self.profiles[key] = ExtractedActorProfile(
                name=name,
                role=role,
                confidence=confidence,
                organization_name=organization_name,
                represented_by=represented_by,
                represented_parties=represented_parties,
                phones=phones,
                emails=emails,
                addresses=addresses,
                demands=demands,
                claim_amounts=claim_amounts,
                extracted_from_text=unique([snippet]),
            )
            return

        if existing.role == ActorRole.OTHER and role != ActorRole.OTHER:
            existing.role = role
        existing.organization_name = existing.organization_name or organization_name
        existing.represented_by = existing.represented_by or represented_by
        existing.represented_parties = unique(existing.represented_parties + represented_parties)
        existing.phones = unique(existing.phones + phones)
        existing.emails = unique(existing.emails + emails)
        existing.addresses = unique(existing.addresses + addresses)
        existing.demands = unique(existing.demands + demands)
        existing.claim_amounts = unique(existing.claim_amounts + claim_amounts)
        existing.extracted_from_text = unique(existing.extracted_from_text + [snippet])
        existing.confidence = max(existing.confidence, confidence)

    def attach_addresses(self, line: str) -> None:
        """Join an address line onto the person registered on an earlier line."""
        if self.last_person_key is None:
            return
        profile = self.profiles.get(self.last_person_key)
        addresses = find_all(ADDRESS_RE, line)
        if profile is not None and addresses:
            profile.addresses = unique(profile.addresses + addresses)


class ActorProfileExtractor:
    """
    Pattern-based actor extractor for a single document.

    Usage:
        extractor = ActorProfileExtractor(source_weight=1.18)
        profiles = extractor.extract(document.content)
    """

    def __init__(
        self,
        procedure_type: Optional[ProcedureType] = None,
        source_weight: float = 1.0,
    ):
        self.procedure_type = procedure_type
        self.source_weight = clamp(source_weight, MIN_SOURCE_WEIGHT, MAX_SOURCE_WEIGHT)

    def extract(self, content: str) -> List[ExtractedActorProfile]:
        text = content or ""
        if not text.strip():
            return []

        procedure_type = self.procedure_type or detect_procedure_type(text)
        registry = _ProfileRegistry(procedure_type, self.source_weight)

        lines = [line.strip() for line in _LINE_SPLIT_RE.split(text)]
        for line in lines:
            if line:
                self._scan_line(line, registry)

        profiles = list(registry.profiles.values())
        logger.debug(
            f"Extracted {len(profiles)} actor profiles "
            f"(procedure={procedure_type.value}, weight={self.source_weight:.2f})"
        )
        return profiles

    def _scan_line(self, line: str, registry: _ProfileRegistry) -> None:
        if _ADDRESS_LINE_RE.match(line):
            registry.attach_addresses(line)

        # 1. Names introduced by their party role
        for match in ROLE_PREFIXED_NAME_RE.finditer(line):
            seed = seed_role_for_prefix(match.group(1), registry.procedure_type)
            registry.register(match.group(2), line, seed)

        # 2. Titles and professional roles
        for name in find_all(NAME_RE, line):
            registry.register(name, line)
        for name in find_all(LAWYER_NAME_RE, line):
            registry.register(name, line, ActorRole.LAWYER)
        for name in find_all(JUDGE_NAME_RE, line):
            registry.register(name, line, ActorRole.JUDGE)
        for name in find_all(PROSECUTOR_NAME_RE, line):
            registry.register(name, line, ActorRole.PROSECUTOR)

        # 3. Organizations, also in trailing "Name, Firma GmbH" segments
        segments = [segment.strip() for segment in line.split(",") if segment.strip()]
        for segment in segments[1:]:
            for org in self._organizations(segment):
                registry.register(org, line, ActorRole.ORGANIZATION, org)
        for org in self._organizations(line):
            registry.register(org, line, ActorRole.ORGANIZATION, org)

        # 4. Authorities and courts
        for authority in find_all(AUTHORITY_RE, line):
            registry.register(authority, line, ActorRole.AUTHORITY, authority)
        for office in find_all(PROSECUTOR_OFFICE_ABBREV_RE, line):
            registry.register(office, line, ActorRole.AUTHORITY, office)
        for court in find_all(COURT_RE, line):
            registry.register(court, line, ActorRole.COURT, court)
        for court in find_all(COURT_ABBREV_RE, line):
            registry.register(court, line, ActorRole.COURT, court)

    @staticmethod
    def _organizations(text: str) -> List[str]:
        # The legal-form pattern can swallow a preceding party phrase.
        return [org for org in find_all(ORG_RE, text) if not _PARTY_WORD_RE.search(org)]


def extract_actor_profiles(
    content: str,
    procedure_type: Optional[ProcedureType] = None,
    source_weight: float = 1.0,
) -> List[ExtractedActorProfile]:
    """Convenience wrapper around ActorProfileExtractor."""
    return ActorProfileExtractor(procedure_type, source_weight).extract(content)


def extract_actor_names(content: str) -> List[str]:
    return [profile.name for profile in extract_actor_profiles(content)]
