from __future__ import annotations

from flask import Blueprint, current_app, flash, g, redirect, render_template, request, url_for

from app.registry.constants import NAKSHATRAS, RASHIS
from app.registry.db import db_session
from app.registry.models import User
from app.registry.modules.profiles.service import (
    EDITABLE_FIELDS,
    delete_profile,
    get_profile,
    update_profile,
    validate_profile_payload,
)
from app.registry.rbac import require_permission
from app.registry.store import StoreError, record_store
from app.registry.utils import format_errors

bp = Blueprint("profiles", __name__)


def _current_user() -> User:
    u = getattr(g, "current_user", None)
    if not u:
        raise RuntimeError("No current user")
    return u


def _back(default: str | None = None):
    nxt = (request.form.get("next") or request.args.get("next") or "").strip()
    if nxt.startswith("/") and not nxt.startswith("//"):
        return redirect(nxt)
    return redirect(default or url_for("admin.index"))


def _load(profile_id: str):
    store = record_store()
    if store is None:
        flash("Database not configured. Please check your settings.", "danger")
        return None, None
    try:
        profile = get_profile(store, profile_id)
    except StoreError as e:
        current_app.logger.error("Error loading profile %s: %s", profile_id, e)
        flash("Failed to load profile. Please try again.", "danger")
        return store, None
    if profile is None:
        flash("Profile not found.", "danger")
    return store, profile


@bp.get("/profiles/<profile_id>/edit")
@require_permission("profiles.edit")
def profile_edit_get(profile_id: str):
    _store, profile = _load(profile_id)
    if profile is None:
        return _back()
    return render_template(
        "admin/profiles/edit.html",
        profile=profile,
        nakshatras=NAKSHATRAS,
        rashis=RASHIS,
        next=(request.args.get("next") or "").strip(),
    )


@bp.post("/profiles/<profile_id>/edit")
@require_permission("profiles.edit")
def profile_edit_post(profile_id: str):
    store, profile = _load(profile_id)
    if store is None or profile is None:
        return _back()

    payload = {k: request.form.get(k) for k in EDITABLE_FIELDS}
    errs = validate_profile_payload(payload)
    if errs:
        flash(format_errors(errs), "danger")
        return redirect(url_for("profiles.profile_edit_get", profile_id=profile_id, next=request.form.get("next") or ""))

    s = db_session()
    try:
        update_profile(s, store, profile, payload, user=_current_user())
        s.commit()
    except (StoreError, LookupError) as e:
        s.rollback()
        current_app.logger.error("Error updating profile %s: %s", profile_id, e)
        flash("Failed to update profile. Please try again.", "danger")
        return _back()

    flash("Profile updated.", "success")
    return _back()


@bp.post("/profiles/<profile_id>/delete")
@require_permission("profiles.delete")
def profile_delete(profile_id: str):
    store, profile = _load(profile_id)
    if store is None or profile is None:
        return _back()

    s = db_session()
    try:
        deleted = delete_profile(s, store, profile, user=_current_user())
        s.commit()
    except StoreError as e:
        s.rollback()
        current_app.logger.error("Error deleting profile %s: %s", profile_id, e)
        flash("Failed to delete profile. Please try again.", "danger")
        return _back()

    if deleted:
        flash("Profile deleted.", "success")
    else:
        flash("Profile not found.", "danger")
    return _back()
