"""
PROFILE PIPELINE
================

Profiles are created ONLY by the public submission form, always carrying the
submitter captured at entry. Admins may edit the person fields and delete
rows; the submitter fields are never edited after creation.

Every store row is converted to ProfileRecord before any domain logic runs.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Mapping

from sqlalchemy.orm import Session

from app.registry.audit import record_event
from app.registry.constants import NAKSHATRAS, PROFILES_TABLE, RASHIS
from app.registry.models import User
from app.registry.store import RecordStore, StoreError
from app.registry.utils import ValidationError, parse_date

EDITABLE_FIELDS = (
    "name",
    "relation",
    "dob",
    "nakshatra",
    "rashi",
    "contact_number",
    "occupation",
    "address",
)

MIN_DOB = date(1900, 1, 1)

_NAME_RE = re.compile(r"^[a-zA-Z\s]+$")
_CONTACT_RE = re.compile(r"^[\d\s+\-()]+$")


class RecordShapeError(ValueError):
    pass


def coerce_id(value: Any) -> int | str:
    """Store ids are integers for the SQL backend, opaque strings elsewhere."""
    if isinstance(value, int):
        return value
    s = str(value).strip()
    return int(s) if s.isdigit() else s


def _text(row: Mapping[str, Any], key: str) -> str:
    v = row.get(key)
    return "" if v is None else str(v)


def _optional_text(row: Mapping[str, Any], key: str) -> str | None:
    v = row.get(key)
    return None if v is None else str(v)


@dataclass(frozen=True)
class ProfileRecord:
    id: int | str
    name: str
    relation: str
    dob: str
    nakshatra: str
    rashi: str
    contact_number: str
    occupation: str
    address: str
    submitter_name: str | None = None
    submitter_mobile: str | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ProfileRecord":
        if row.get("id") is None:
            raise RecordShapeError(f"Profile row has no id: {dict(row)!r}")
        return cls(
            id=coerce_id(row["id"]),
            name=_text(row, "name"),
            relation=_text(row, "relation"),
            dob=_text(row, "dob"),
            nakshatra=_text(row, "nakshatra"),
            rashi=_text(row, "rashi"),
            contact_number=_text(row, "contact_number"),
            occupation=_text(row, "occupation"),
            address=_text(row, "address"),
            submitter_name=_optional_text(row, "submitter_name"),
            submitter_mobile=_optional_text(row, "submitter_mobile"),
        )

    def editable_values(self) -> dict[str, str]:
        return {f: getattr(self, f) for f in EDITABLE_FIELDS}


def records_from_rows(rows: list[dict[str, Any]]) -> list[ProfileRecord]:
    return [ProfileRecord.from_row(r) for r in rows]


def validate_profile_payload(payload: Mapping[str, Any], *, today: date | None = None) -> list[ValidationError]:
    errs: list[ValidationError] = []

    name = (payload.get("name") or "").strip()
    if len(name) < 2:
        errs.append(ValidationError("name", "Name must be at least 2 characters."))
    elif len(name) > 100:
        errs.append(ValidationError("name", "Name must not exceed 100 characters."))
    elif not _NAME_RE.match(name):
        errs.append(ValidationError("name", "Name can only contain letters and spaces."))

    if not (payload.get("relation") or "").strip():
        errs.append(ValidationError("relation", "Please select a relation."))

    raw_dob = (payload.get("dob") or "").strip()
    if not raw_dob:
        errs.append(ValidationError("dob", "Date of birth is required."))
    else:
        try:
            dob = parse_date(raw_dob)
        except ValueError:
            errs.append(ValidationError("dob", "Date of birth must be YYYY-MM-DD."))
        else:
            if dob is not None and dob > (today or date.today()):
                errs.append(ValidationError("dob", "Date of birth cannot be in the future."))
            elif dob is not None and dob < MIN_DOB:
                errs.append(ValidationError("dob", "Date of birth cannot be before 1900-01-01."))

    nakshatra = (payload.get("nakshatra") or "").strip()
    if not nakshatra:
        errs.append(ValidationError("nakshatra", "Please select a nakshatra."))
    elif nakshatra not in NAKSHATRAS:
        errs.append(ValidationError("nakshatra", f"Unknown nakshatra: {nakshatra}."))

    rashi = (payload.get("rashi") or "").strip()
    if not rashi:
        errs.append(ValidationError("rashi", "Please select a rashi."))
    elif rashi not in RASHIS:
        errs.append(ValidationError("rashi", f"Unknown rashi: {rashi}."))

    contact = (payload.get("contact_number") or "").strip()
    if contact:
        if len(contact) < 10:
            errs.append(ValidationError("contact_number", "Contact number must be at least 10 digits."))
        elif len(contact) > 15:
            errs.append(ValidationError("contact_number", "Contact number must not exceed 15 digits."))
        elif not _CONTACT_RE.match(contact):
            errs.append(
                ValidationError(
                    "contact_number",
                    "Contact number can only contain digits, spaces, +, -, and parentheses.",
                )
            )

    occupation = (payload.get("occupation") or "").strip()
    if not occupation:
        errs.append(ValidationError("occupation", "Occupation is required."))
    elif len(occupation) > 100:
        errs.append(ValidationError("occupation", "Occupation must not exceed 100 characters."))

    address = (payload.get("address") or "").strip()
    if len(address) < 10:
        errs.append(ValidationError("address", "Address must be at least 10 characters."))
    elif len(address) > 500:
        errs.append(ValidationError("address", "Address must not exceed 500 characters."))

    return errs


def clean_profile_payload(payload: Mapping[str, Any]) -> dict[str, str | None]:
    values: dict[str, str | None] = {f: (payload.get(f) or "").strip() for f in EDITABLE_FIELDS}
    values["contact_number"] = values["contact_number"] or None
    return values


def list_profiles(store: RecordStore) -> list[ProfileRecord]:
    return records_from_rows(store.select(PROFILES_TABLE, order_by="id"))


def get_profile(store: RecordStore, profile_id: int | str) -> ProfileRecord | None:
    rows = store.select(PROFILES_TABLE, eq={"id": coerce_id(profile_id)}, limit=1)
    return ProfileRecord.from_row(rows[0]) if rows else None


def create_profile(
    s: Session,
    store: RecordStore,
    payload: Mapping[str, Any],
    *,
    submitter_name: str,
    submitter_mobile: str,
) -> ProfileRecord:
    """Insert one submitted profile. Caller validates first and commits `s` (audit)."""
    row = clean_profile_payload(payload)
    row["submitter_name"] = submitter_name
    row["submitter_mobile"] = submitter_mobile
    inserted = store.insert(PROFILES_TABLE, row)
    if not inserted:
        raise StoreError("Record store returned no row for the inserted profile")
    profile = ProfileRecord.from_row(inserted[0])
    record_event(
        s,
        actor=None,
        action="profile.create",
        entity_type="Profile",
        entity_id=str(profile.id),
        metadata={"submitter_name": submitter_name, "submitter_mobile": submitter_mobile},
    )
    return profile


def update_profile(
    s: Session,
    store: RecordStore,
    profile: ProfileRecord,
    payload: Mapping[str, Any],
    *,
    user: User,
) -> ProfileRecord:
    before = profile.editable_values()
    values = clean_profile_payload(payload)
    row = store.update(PROFILES_TABLE, profile.id, values)
    if row is None:
        raise LookupError(f"Profile {profile.id} no longer exists")
    updated = ProfileRecord.from_row(row)
    after = updated.editable_values()
    fields_changed = [k for k in before.keys() if before[k] != after[k]]
    record_event(
        s,
        actor=user,
        action="profile.update",
        entity_type="Profile",
        entity_id=str(profile.id),
        metadata={"before": before, "after": after, "fields_changed": fields_changed},
    )
    return updated


def delete_profile(s: Session, store: RecordStore, profile: ProfileRecord, *, user: User) -> bool:
    deleted = store.delete(PROFILES_TABLE, profile.id)
    if deleted:
        record_event(
            s,
            actor=user,
            action="profile.delete",
            entity_type="Profile",
            entity_id=str(profile.id),
            metadata={
                "name": profile.name,
                "submitter_name": profile.submitter_name,
                "submitter_mobile": profile.submitter_mobile,
            },
        )
    return deleted
