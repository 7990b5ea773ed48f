from __future__ import annotations

from flask import Blueprint, current_app, flash, redirect, render_template, request, session, url_for

from app.registry.constants import NAKSHATRAS, RASHIS
from app.registry.db import db_session
from app.registry.modules.profiles.service import create_profile, validate_profile_payload
from app.registry.modules.submitters.service import resolve_session, validate_submitter_entry
from app.registry.store import StoreError, StoreUnavailable, record_store
from app.registry.utils import format_errors

bp = Blueprint("routes", __name__)

_SUBMITTER_KEYS = ("submitter_name", "submitter_mobile", "submitter_session_id", "submitter_outcome")


def current_submitter() -> dict | None:
    name = session.get("submitter_name")
    mobile = session.get("submitter_mobile")
    if not name or not mobile:
        return None
    return {"name": name, "mobile": mobile, "outcome": session.get("submitter_outcome")}


@bp.get("/")
def index():
    return render_template(
        "public/index.html",
        submitter=current_submitter(),
        store_configured=record_store() is not None,
        nakshatras=NAKSHATRAS,
        rashis=RASHIS,
    )


@bp.post("/enter")
def enter():
    name = request.form.get("name") or ""
    mobile = request.form.get("mobile") or ""
    errs = validate_submitter_entry(name, mobile)
    if errs:
        flash(format_errors(errs), "danger")
        return redirect(url_for("routes.index"))

    resolution = resolve_session(record_store(), name, mobile)
    if resolution.is_fallback:
        current_app.logger.info("Submitter session fallback for %s: %s", resolution.session.submitter_mobile, resolution.error)
        flash("Continuing without a saved session. Your submissions will still be recorded.", "info")
    session["submitter_name"] = resolution.session.submitter_name
    session["submitter_mobile"] = resolution.session.submitter_mobile
    session["submitter_session_id"] = resolution.session.id
    session["submitter_outcome"] = resolution.outcome.value
    return redirect(url_for("routes.index"))


@bp.post("/exit")
def exit_submitter():
    for key in _SUBMITTER_KEYS:
        session.pop(key, None)
    return redirect(url_for("routes.index"))


@bp.post("/profiles")
def submit_profile():
    submitter = current_submitter()
    if not submitter:
        flash("Please enter your details to continue.", "danger")
        return redirect(url_for("routes.index"))

    store = record_store()
    if store is None:
        flash("Database not configured. Please check your settings.", "danger")
        return redirect(url_for("routes.index"))

    payload = {k: request.form.get(k) for k in ("name", "relation", "dob", "nakshatra", "rashi", "contact_number", "occupation", "address")}
    errs = validate_profile_payload(payload)
    if errs:
        flash(format_errors(errs), "danger")
        return redirect(url_for("routes.index"))

    s = db_session()
    try:
        create_profile(s, store, payload, submitter_name=submitter["name"], submitter_mobile=submitter["mobile"])
        s.commit()
    except StoreUnavailable:
        s.rollback()
        current_app.logger.exception("Profile submission: record store unavailable")
        flash("Database not configured. Please check your settings.", "danger")
        return redirect(url_for("routes.index"))
    except StoreError as e:
        s.rollback()
        current_app.logger.error("Submission Error: %s", e)
        flash("Submission Failed: could not save details. Please try again.", "danger")
        return redirect(url_for("routes.index"))

    flash("Details submitted successfully to the Suvarna Sawari registry.", "success")
    return redirect(url_for("routes.index"))


@bp.get("/health")
def health():
    """Health check endpoint. Returns JSON."""
    return {"ok": True}


@bp.get("/healthz")
def healthz():
    """
    Fast liveness check for container orchestration. No DB access.
    """
    return "ok", 200
