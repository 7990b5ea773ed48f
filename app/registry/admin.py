from flask import Blueprint, current_app, flash, render_template

from app.registry.modules.profiles.service import list_profiles
from app.registry.modules.submitters.service import aggregate_submitters
from app.registry.rbac import require_permission
from app.registry.store import StoreError, record_store

bp = Blueprint("admin", __name__)


@bp.get("/")
@require_permission("admin.view")
def index():
    """Records tab: submitters with their record counts, then every profile."""
    store = record_store()
    if store is None:
        return render_template("admin/index.html", store_configured=False, profiles=[], submitters=[])

    try:
        profiles = list_profiles(store)
    except StoreError as e:
        current_app.logger.error("Error fetching profiles: %s", e)
        flash("Failed to load records. Please try again.", "danger")
        profiles = []

    return render_template(
        "admin/index.html",
        store_configured=True,
        profiles=profiles,
        submitters=aggregate_submitters(profiles),
    )
