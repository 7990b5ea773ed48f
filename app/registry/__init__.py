import logging
from datetime import timedelta

from flask import Flask, g, render_template, request, session
from dotenv import load_dotenv
from sqlalchemy import inspect as sa_inspect

from app.registry.config import load_config
from app.registry.constants import PROFILES_TABLE, SUBMITTER_SESSIONS_TABLE
from app.registry.db import init_db, teardown_db_session
from app.registry.routes import bp as routes_bp
from app.registry.auth import bp as auth_bp, load_current_user
from app.registry.admin import bp as admin_bp
from app.registry.modules.profiles.admin import bp as profiles_bp
from app.registry.modules.submitters.admin import bp as submitters_bp
from app.registry.store import teardown_record_store


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__, template_folder="templates", static_folder="static")
    app.config.from_mapping(load_config())
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(hours=8)
    app.config["SESSION_REFRESH_EACH_REQUEST"] = True

    from app.registry.security import ensure_csrf_token, validate_csrf

    @app.context_processor
    def _inject_csrf() -> dict:
        return {"csrf_token": ensure_csrf_token()}

    @app.context_processor
    def _inject_permissions() -> dict:
        from app.registry.rbac import user_has_permission

        def has_perm(key: str) -> bool:
            return user_has_permission(getattr(g, "current_user", None), key)

        return {"has_perm": has_perm, "current_user": getattr(g, "current_user", None)}

    @app.before_request
    def _csrf_guard():
        if request.path.startswith(("/static/", "/health", "/healthz")):
            return None
        ensure_csrf_token()
        session.permanent = True
        if request.method in ("POST", "PUT", "PATCH", "DELETE"):
            # login/logout carry no CSRF token
            if (request.endpoint or "").startswith("auth."):
                return None
            if not validate_csrf(request):
                return render_template("errors/400.html", message="CSRF token missing or invalid."), 400

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if not app.config.get("DATABASE_URL") or str(app.config["DATABASE_URL"]).strip() == "":
            raise RuntimeError("DATABASE_URL is required in production.")
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")
        if app.config.get("RECORD_STORE_BACKEND") == "rest":
            if not app.config.get("RECORD_STORE_URL") or not app.config.get("RECORD_STORE_API_KEY"):
                raise RuntimeError("RECORD_STORE_URL and RECORD_STORE_API_KEY are required for the rest record store.")

    init_db(app)

    def _dispose_engine_on_fork() -> None:
        import os

        if hasattr(os, "register_at_fork"):
            def _after_fork_child():
                engine = app.extensions.get("sqlalchemy_engine")
                if engine:
                    engine.dispose()
                    app.logger.info("Disposed DB engine after fork (pid=%s)", os.getpid())

            os.register_at_fork(after_in_child=_after_fork_child)

    _dispose_engine_on_fork()

    app.register_blueprint(routes_bp)
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(admin_bp, url_prefix="/admin")
    app.register_blueprint(profiles_bp, url_prefix="/admin")
    app.register_blueprint(submitters_bp, url_prefix="/admin")

    def _load_user_wrapper():
        if request.path.startswith(("/static/", "/health", "/healthz")):
            g.current_user = None
            return None
        return load_current_user()

    app.before_request(_load_user_wrapper)
    app.teardown_appcontext(teardown_db_session)
    app.teardown_appcontext(teardown_record_store)

    # Schema health: profiles is required, submitter_sessions is optional.
    # Checked on the first request so tables created after create_app() count.
    app.config.setdefault("_schema_health_ok", True)
    app.config.setdefault("_schema_health_missing", [])
    app.config.setdefault("_schema_health_checked", False)

    def _run_schema_health_check() -> None:
        app.config["_schema_health_checked"] = True
        if app.config.get("RECORD_STORE_BACKEND") != "sql":
            return
        missing: list[str] = []
        try:
            insp = sa_inspect(app.extensions["sqlalchemy_engine"])
            if not insp.has_table(PROFILES_TABLE):
                missing.append(f"{PROFILES_TABLE} (table)")
            if not insp.has_table(SUBMITTER_SESSIONS_TABLE):
                app.logger.warning(
                    "%s table missing; submitter sessions will be transient.", SUBMITTER_SESSIONS_TABLE
                )
        except Exception as e:
            app.logger.exception("Schema health check failed: %s", e)
            return

        if missing:
            app.config["_schema_health_ok"] = False
            app.config["_schema_health_missing"] = missing
            app.logger.error("DB schema out of date; run `alembic upgrade head`. Missing: %s", ", ".join(missing))

    @app.before_request
    def _schema_health_guardrail():  # type: ignore[no-redef]
        if not app.config.get("_schema_health_checked"):
            _run_schema_health_check()
        if app.config.get("_schema_health_ok"):
            return None
        if request.path.startswith("/admin") and getattr(g, "current_user", None):
            return render_template("errors/schema_out_of_date.html", missing=app.config.get("_schema_health_missing") or []), 500
        return None

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        return render_template("errors/500.html"), 500

    @app.errorhandler(404)
    def _err_404(e):  # type: ignore[no-redef]
        return render_template("errors/404.html"), 404

    @app.errorhandler(403)
    def _err_403(e):  # type: ignore[no-redef]
        missing = getattr(g, "missing_permission", None)
        if missing:
            app.logger.warning("Forbidden: missing_permission=%s request_id=%s", missing, getattr(g, "request_id", None))
        return render_template("errors/403.html", missing_permission=missing), 403

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
