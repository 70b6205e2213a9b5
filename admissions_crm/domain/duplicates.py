"""
Duplicate Lead Detection

Pure functions over lead-like objects (anything with id, first_name,
last_name, email, phone and program_interest attributes).

Match rules and confidence:
- email: identical email, case-insensitive (100)
- phone: identical normalized phone of at least 7 digits (95)
- similar_name: full-name similarity ratio >= 0.8 (80)
- name_program: identical full name and a shared program of interest (75)

Merging folds secondary leads into a primary one; see merge_lead_values.
"""

import re
from dataclasses import dataclass, field
from datetime import date
from difflib import SequenceMatcher
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence


NAME_SIMILARITY_THRESHOLD = 0.8
MIN_PHONE_DIGITS = 7


class MatchType(str, Enum):
    EMAIL = "email"
    PHONE = "phone"
    EMAIL_AND_PHONE = "email_and_phone"
    SIMILAR_NAME = "similar_name"
    NAME_PROGRAM = "name_program"


CONFIDENCE = {
    MatchType.EMAIL: 100,
    MatchType.EMAIL_AND_PHONE: 100,
    MatchType.PHONE: 95,
    MatchType.SIMILAR_NAME: 80,
    MatchType.NAME_PROGRAM: 75,
}


@dataclass
class DuplicateGroup:
    """Leads believed to be the same person. The oldest lead is primary."""
    match_type: MatchType
    key: str
    leads: List[Any] = field(default_factory=list)

    @property
    def confidence(self) -> int:
        return CONFIDENCE[self.match_type]

    @property
    def primary_lead_id(self):
        return self.leads[0].id if self.leads else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "match_type": self.match_type.value,
            "key": self.key,
            "confidence": self.confidence,
            "primary_lead_id": str(self.primary_lead_id) if self.primary_lead_id else None,
            "lead_ids": [str(lead.id) for lead in self.leads],
        }


@dataclass
class DuplicateCheckResult:
    is_duplicate: bool
    existing_lead: Optional[Any] = None
    match_type: Optional[MatchType] = None


def normalize_phone(phone: Optional[str]) -> str:
    """Digits only, keeping the last 10 (drops country prefixes)."""
    if not phone:
        return ""
    return re.sub(r"\D", "", phone)[-10:]


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def full_name(lead: Any) -> str:
    return f"{lead.first_name or ''} {lead.last_name or ''}".strip().lower()


def name_similarity(a: str, b: str) -> float:
    """Similarity ratio in [0, 1] between two names."""
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    return SequenceMatcher(None, a, b).ratio()


def _group_by(leads: Iterable[Any], key_fn) -> Dict[str, List[Any]]:
    groups: Dict[str, List[Any]] = {}
    for lead in leads:
        key = key_fn(lead)
        if key:
            groups.setdefault(key, []).append(lead)
    return groups


def _phone_key(lead: Any) -> str:
    phone = normalize_phone(lead.phone)
    return phone if len(phone) >= MIN_PHONE_DIGITS else ""


def _similar_name_groups(leads: Sequence[Any]) -> List[DuplicateGroup]:
    groups: List[DuplicateGroup] = []
    processed = set()

    for i, lead in enumerate(leads):
        if lead.id in processed:
            continue
        name = full_name(lead)
        similar = [lead]

        for other in leads[i + 1:]:
            if other.id in processed:
                continue
            if name_similarity(name, full_name(other)) >= NAME_SIMILARITY_THRESHOLD:
                similar.append(other)
                processed.add(other.id)

        if len(similar) > 1:
            processed.add(lead.id)
            groups.append(DuplicateGroup(MatchType.SIMILAR_NAME, name, similar))

    return groups


def _name_program_groups(leads: Sequence[Any]) -> List[DuplicateGroup]:
    key_map: Dict[str, List[Any]] = {}
    for lead in leads:
        name = full_name(lead)
        for program in lead.program_interest or []:
            key_map.setdefault(f"{name}|{program.lower()}", []).append(lead)

    return [
        DuplicateGroup(MatchType.NAME_PROGRAM, key, matched)
        for key, matched in key_map.items()
        if len(matched) > 1
    ]


def find_duplicate_groups(leads: Sequence[Any]) -> List[DuplicateGroup]:
    """
    Find all duplicate groups among ``leads``.

    A lead may appear in several groups (e.g. same email and similar name).
    Groups are returned in descending confidence order.
    """
    groups: List[DuplicateGroup] = []

    for key, matched in _group_by(leads, lambda l: normalize_email(l.email)).items():
        if len(matched) > 1:
            groups.append(DuplicateGroup(MatchType.EMAIL, key, matched))

    for key, matched in _group_by(leads, _phone_key).items():
        if len(matched) > 1:
            groups.append(DuplicateGroup(MatchType.PHONE, key, matched))

    groups.extend(_similar_name_groups(leads))
    groups.extend(_name_program_groups(leads))

    groups.sort(key=lambda g: g.confidence, reverse=True)
    return groups


def check_for_duplicate(
    email: str,
    phone: Optional[str],
    existing: Iterable[Any],
    mode: Optional[str],
) -> DuplicateCheckResult:
    """
    Check a new lead's contact fields against existing leads.

    Args:
        email: Candidate email
        phone: Candidate phone (optional)
        existing: Leads already in the tenant
        mode: Tenant duplicate-prevention mode (email, phone, both or None)
    """
    if not mode:
        return DuplicateCheckResult(is_duplicate=False)

    candidate_email = normalize_email(email)
    candidate_phone = normalize_phone(phone)
    check_email = mode in ("email", "both")
    check_phone = mode in ("phone", "both") and len(candidate_phone) >= MIN_PHONE_DIGITS

    for lead in existing:
        email_match = check_email and normalize_email(lead.email) == candidate_email
        phone_match = check_phone and normalize_phone(lead.phone) == candidate_phone

        if email_match and phone_match:
            return DuplicateCheckResult(True, lead, MatchType.EMAIL_AND_PHONE)
        if email_match:
            return DuplicateCheckResult(True, lead, MatchType.EMAIL)
        if phone_match:
            return DuplicateCheckResult(True, lead, MatchType.PHONE)

    return DuplicateCheckResult(is_duplicate=False)


# =============================================================================
# Merging
# =============================================================================

# Highest first
PRIORITY_ORDER = ["urgent", "high", "medium", "low"]
NOTES_SEPARATOR = "\n\n---\n\n"


@dataclass
class MergeResolution:
    """How conflicting values are resolved when duplicates are merged."""
    merge_programs: bool = True
    merge_tags: bool = True
    merge_documents: bool = True
    highest_priority: bool = False
    highest_score: bool = True
    concatenate_notes: bool = False


def _union(lists: Iterable[Optional[List[str]]]) -> List[str]:
    merged: List[str] = []
    for values in lists:
        for value in values or []:
            if value not in merged:
                merged.append(value)
    return merged


def _priority_rank(priority: Any) -> int:
    value = getattr(priority, "value", priority)
    return PRIORITY_ORDER.index(value) if value in PRIORITY_ORDER else len(PRIORITY_ORDER)


def merge_lead_values(
    primary: Any,
    secondaries: Sequence[Any],
    resolution: MergeResolution,
    merged_on: date,
) -> Dict[str, Any]:
    """
    Field values to write onto ``primary`` when folding ``secondaries`` into it.

    Blank contact fields of the primary are filled from the first secondary
    that has them. A merge note is always appended to the notes.
    """
    leads = [primary, *secondaries]
    values: Dict[str, Any] = {}

    for name in ("phone", "country"):
        if not getattr(primary, name):
            donor = next((s for s in secondaries if getattr(s, name)), None)
            if donor is not None:
                values[name] = getattr(donor, name)

    if resolution.merge_programs:
        values["program_interest"] = _union(lead.program_interest for lead in leads)
    if resolution.merge_tags:
        values["tags"] = _union(lead.tags for lead in leads)
    if resolution.highest_priority:
        values["priority"] = min((lead.priority for lead in leads), key=_priority_rank)
    if resolution.highest_score:
        values["lead_score"] = max(lead.lead_score or 0 for lead in leads)

    if resolution.concatenate_notes:
        notes = NOTES_SEPARATOR.join(lead.notes for lead in leads if lead.notes)
    else:
        notes = primary.notes or ""

    if len(secondaries) == 1:
        marker = f"[Merged from duplicate lead {secondaries[0].email} on {merged_on.isoformat()}]"
    else:
        marker = f"[Merged {len(secondaries)} duplicate(s) on {merged_on.isoformat()}]"
    values["notes"] = f"{notes}\n\n{marker}".strip()

    return values
