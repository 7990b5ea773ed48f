from __future__ import annotations

from flask import Blueprint, render_template

from app.registry.modules.submitters.service import (
    LookupOutcome,
    find_records_by_submitter_mobile,
    get_current_session,
)
from app.registry.rbac import require_permission
from app.registry.store import record_store

bp = Blueprint("submitters", __name__)


@bp.get("/submitters/<path:mobile>")
@require_permission("profiles.view")
def submitter_detail(mobile: str):
    store = record_store()
    result = find_records_by_submitter_mobile(store, mobile)
    # Stored spelling of the mobile, not the URL one: sessions are keyed on it.
    last_session = None
    if result.found:
        last_session = get_current_session(store, result.submitter_name, result.records[0].submitter_mobile or "")
    return render_template(
        "admin/submitters/detail.html",
        mobile=mobile,
        result=result,
        last_session=last_session,
        store_configured=store is not None,
        invalid_key=result.outcome is LookupOutcome.INVALID_KEY,
    )
