"""
SUBMITTER IDENTITY
==================

Identity key = (submitter_name, submitter_mobile), trimmed, case-sensitive.

Operation               | Key form            | Store failure
------------------------|---------------------|-------------------------------
resolve_session         | raw trimmed pair    | FALLBACK (transient session)
aggregate_submitters    | raw trimmed pair    | n/a (pure)
find_records_by_...     | exact, then matched | STORE_ERROR (empty result)
  _submitter_mobile     | on normalized form  |

The list view groups by the raw pair while the detail lookup matches on the
normalized mobile: two spellings of one number show as two submitters that
both open the same detail page. Kept as-is until product decides otherwise.

INVARIANTS:
- resolve_session never raises; every outcome carries a usable session.
- Lookup with an empty / "undefined" / "null" key never touches the store.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping

from app.registry.constants import INVALID_LOOKUP_KEYS, PROFILES_TABLE, SUBMITTER_SESSIONS_TABLE
from app.registry.modules.profiles.service import ProfileRecord, coerce_id, records_from_rows
from app.registry.modules.submitters.utils import mobile_digit_count, mobiles_match
from app.registry.store import RecordStore, StoreError
from app.registry.utils import ValidationError

logger = logging.getLogger(__name__)

MIN_MOBILE_DIGITS = 10


def _parse_timestamp(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    s = str(value).strip()
    if not s:
        return None
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    return datetime.fromisoformat(s)


@dataclass(frozen=True)
class SubmitterSession:
    submitter_name: str
    submitter_mobile: str
    id: int | str | None = None
    created_at: datetime | None = None
    last_active_at: datetime | None = None

    @property
    def is_transient(self) -> bool:
        """Not backed by a stored row (session store missing or failing)."""
        return self.id is None

    @classmethod
    def transient(cls, name: str, mobile: str) -> "SubmitterSession":
        return cls(submitter_name=name, submitter_mobile=mobile)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "SubmitterSession":
        raw_id = row.get("id")
        return cls(
            submitter_name=str(row.get("submitter_name") or ""),
            submitter_mobile=str(row.get("submitter_mobile") or ""),
            id=coerce_id(raw_id) if raw_id is not None else None,
            created_at=_parse_timestamp(row.get("created_at")),
            last_active_at=_parse_timestamp(row.get("last_active_at")),
        )


class SessionOutcome(str, enum.Enum):
    RESOLVED = "resolved"  # existing row found, last_active_at touched
    CREATED = "created"
    FALLBACK = "fallback"  # transient session, nothing stored


@dataclass(frozen=True)
class SessionResolution:
    session: SubmitterSession
    outcome: SessionOutcome
    error: str | None = None

    @property
    def is_fallback(self) -> bool:
        return self.outcome is SessionOutcome.FALLBACK


def _fallback(name: str, mobile: str, error: str) -> SessionResolution:
    return SessionResolution(SubmitterSession.transient(name, mobile), SessionOutcome.FALLBACK, error)


def resolve_session(
    store: RecordStore | None,
    name: str,
    mobile: str,
    *,
    now: datetime | None = None,
) -> SessionResolution:
    """
    Find-or-create the current submitter session for (name, mobile).

    1. Most recently active stored session for the exact pair → touch
       last_active_at and return it (the untouched row if the update fails).
    2. None stored → insert a new one.
    3. Insert rejected, session table missing, store absent or any store
       error → transient session holding just name and mobile.

    Never raises.
    """
    name = (name or "").strip()
    mobile = (mobile or "").strip()
    if store is None:
        logger.warning("No record store configured; using transient submitter session")
        return _fallback(name, mobile, "record store not configured")

    # aware UTC: the hosted store keeps these in timestamptz columns
    ts = now or datetime.now(timezone.utc)
    try:
        rows = store.select(
            SUBMITTER_SESSIONS_TABLE,
            eq={"submitter_name": name, "submitter_mobile": mobile},
            order_by="last_active_at",
            descending=True,
            limit=1,
        )
        if rows:
            existing = rows[0]
            try:
                updated = store.update(SUBMITTER_SESSIONS_TABLE, existing["id"], {"last_active_at": ts})
            except Exception as e:
                logger.warning("Touching submitter session id=%s failed: %s", existing.get("id"), e)
                updated = None
            return SessionResolution(SubmitterSession.from_row(updated or existing), SessionOutcome.RESOLVED)

        try:
            inserted = store.insert(
                SUBMITTER_SESSIONS_TABLE,
                {
                    "submitter_name": name,
                    "submitter_mobile": mobile,
                    "created_at": ts,
                    "last_active_at": ts,
                },
            )
        except StoreError as e:
            logger.warning("submitter_sessions insert rejected (table may not exist): %s", e)
            return _fallback(name, mobile, str(e))
        if not inserted:
            return _fallback(name, mobile, "insert returned no row")
        return SessionResolution(SubmitterSession.from_row(inserted[0]), SessionOutcome.CREATED)
    except Exception as e:
        logger.warning("Error creating/retrieving submitter session: %s", e)
        return _fallback(name, mobile, str(e))


def get_current_session(store: RecordStore | None, name: str, mobile: str) -> SubmitterSession | None:
    """
    Read-only: the most recently active stored session, else a transient one
    built from the newest profile the pair submitted, else None.
    """
    if store is None:
        return None
    name = (name or "").strip()
    mobile = (mobile or "").strip()
    ident = {"submitter_name": name, "submitter_mobile": mobile}
    try:
        try:
            rows = store.select(SUBMITTER_SESSIONS_TABLE, eq=ident, order_by="last_active_at", descending=True, limit=1)
        except StoreError as e:
            logger.info("submitter_sessions unavailable, checking profiles: %s", e)
            rows = []
        if rows:
            return SubmitterSession.from_row(rows[0])

        rows = store.select(PROFILES_TABLE, eq=ident, order_by="id", descending=True, limit=1)
        if rows:
            return SubmitterSession.transient(
                str(rows[0].get("submitter_name") or ""),
                str(rows[0].get("submitter_mobile") or ""),
            )
        return None
    except (StoreError, ValueError) as e:
        logger.warning("Error getting submitter session: %s", e)
        return None


def validate_submitter_entry(name: str | None, mobile: str | None) -> list[ValidationError]:
    errs: list[ValidationError] = []
    if not (name or "").strip():
        errs.append(ValidationError("name", "Please enter your name"))
    if not (mobile or "").strip():
        errs.append(ValidationError("mobile", "Please enter your mobile number"))
    elif mobile_digit_count(mobile) < MIN_MOBILE_DIGITS:
        errs.append(ValidationError("mobile", "Please enter a valid mobile number (at least 10 digits)"))
    return errs


# ============================================================================
# Aggregation
# ============================================================================

@dataclass(frozen=True)
class SubmitterAggregate:
    name: str
    mobile: str
    record_count: int


def aggregate_submitters(records: Iterable[ProfileRecord]) -> list[SubmitterAggregate]:
    """
    Group profiles by the raw trimmed (submitter_name, submitter_mobile) pair.

    Records missing either field are skipped. Groups come out in order of
    first appearance, so a fixed input order gives a fixed output.
    """
    counts: dict[tuple[str, str], int] = {}
    skipped = 0
    for r in records:
        name = (r.submitter_name or "").strip()
        mobile = (r.submitter_mobile or "").strip()
        if not name or not mobile:
            skipped += 1
            continue
        key = (name, mobile)
        counts[key] = counts.get(key, 0) + 1
    if skipped:
        logger.debug("aggregate_submitters skipped %d record(s) without submitter info", skipped)
    return [SubmitterAggregate(name=k[0], mobile=k[1], record_count=n) for k, n in counts.items()]


def list_submitters(store: RecordStore) -> list[SubmitterAggregate]:
    rows = store.select(PROFILES_TABLE, order_by="id")
    return aggregate_submitters(records_from_rows(rows))


# ============================================================================
# Lookup by mobile
# ============================================================================

class LookupOutcome(str, enum.Enum):
    EXACT = "exact"
    NORMALIZED = "normalized"
    NOT_FOUND = "not_found"
    INVALID_KEY = "invalid_key"
    STORE_ERROR = "store_error"


@dataclass(frozen=True)
class LookupResult:
    records: tuple[ProfileRecord, ...]
    submitter_name: str
    outcome: LookupOutcome

    @property
    def found(self) -> bool:
        return bool(self.records)


def _empty(outcome: LookupOutcome) -> LookupResult:
    return LookupResult(records=(), submitter_name="", outcome=outcome)


def _sort_key(r: ProfileRecord) -> tuple[int, Any]:
    # ints before opaque string ids; each ascending
    return (0, r.id) if isinstance(r.id, int) else (1, str(r.id))


def _result(records: list[ProfileRecord], outcome: LookupOutcome) -> LookupResult:
    ordered = tuple(sorted(records, key=_sort_key))
    return LookupResult(records=ordered, submitter_name=ordered[0].submitter_name or "", outcome=outcome)


def is_valid_lookup_key(raw_mobile: str | None) -> bool:
    key = (raw_mobile or "").strip()
    return bool(key) and key not in INVALID_LOOKUP_KEYS


def find_records_by_submitter_mobile(store: RecordStore | None, raw_mobile: str | None) -> LookupResult:
    """
    All profiles submitted from a mobile number, ascending by id.

    Exact match on submitter_mobile first; when that finds nothing, scan every
    profile with a submitter_mobile and compare normalized forms. Store errors
    end the lookup with an empty STORE_ERROR result.
    """
    if not is_valid_lookup_key(raw_mobile):
        logger.info("Invalid submitter mobile lookup key: %r", raw_mobile)
        return _empty(LookupOutcome.INVALID_KEY)
    if store is None:
        return _empty(LookupOutcome.STORE_ERROR)

    try:
        rows = store.select(PROFILES_TABLE, eq={"submitter_mobile": raw_mobile}, order_by="id")
        if rows:
            return _result(records_from_rows(rows), LookupOutcome.EXACT)

        logger.debug("Exact match failed for %r, trying normalized search", raw_mobile)
        all_rows = store.select(PROFILES_TABLE, not_null=("submitter_mobile",), order_by="id")
    except StoreError as e:
        logger.warning("Error fetching profiles for submitter mobile %r: %s", raw_mobile, e)
        return _empty(LookupOutcome.STORE_ERROR)

    matched = [r for r in records_from_rows(all_rows) if mobiles_match(r.submitter_mobile, raw_mobile)]
    if not matched:
        logger.info("No profiles for submitter mobile %r (%d scanned)", raw_mobile, len(all_rows))
        return _empty(LookupOutcome.NOT_FOUND)
    return _result(matched, LookupOutcome.NORMALIZED)
