import logging

from flask import Flask, g, jsonify, request
from dotenv import load_dotenv
from sqlalchemy import inspect as sa_inspect

from app.docledger.auth import attach_request_id, load_current_identity
from app.docledger.config import load_config
from app.docledger.db import init_db, teardown_db_session
from app.docledger.errors import LedgerError
from app.docledger.routes import bp as routes_bp
from app.docledger.modules.access_control.routes import bp as access_control_bp
from app.docledger.modules.document_registry.routes import bp as document_registry_bp
from app.docledger.modules.verification_ledger.routes import bp as verification_ledger_bp

REQUIRED_TABLES = ("ledger_state", "authorized_verifiers", "documents", "attestations", "audit_events")


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__)
    app.config.from_mapping(load_config())

    level = logging.getLevelName(app.config.get("LOG_LEVEL") or "INFO")
    if isinstance(level, int):
        logging.getLogger("app").setLevel(level)
        app.logger.setLevel(level)

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if not app.config.get("DATABASE_URL") or str(app.config["DATABASE_URL"]).strip() == "":
            raise RuntimeError("DATABASE_URL is required in production.")
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

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
    app.register_blueprint(access_control_bp, url_prefix="/api/access")
    app.register_blueprint(document_registry_bp, url_prefix="/api/documents")
    app.register_blueprint(verification_ledger_bp, url_prefix="/api/documents")

    app.before_request(load_current_identity)
    app.after_request(attach_request_id)
    app.teardown_appcontext(teardown_db_session)

    # Migration health (lean): detect missing tables instead of failing per request.
    app.config.setdefault("_schema_health_ok", False)
    app.config.setdefault("_schema_health_missing", [])
    app.config.setdefault("_schema_health_logged", False)

    def _run_schema_health_check() -> bool:
        missing: list[str] = []
        try:
            engine = app.extensions.get("sqlalchemy_engine")
            if engine is None:
                raise RuntimeError("sqlalchemy_engine not initialized")
            insp = sa_inspect(engine)
            for table in REQUIRED_TABLES:
                if not insp.has_table(table):
                    missing.append(f"{table} (table)")
        except Exception as e:
            app.logger.exception("Schema health check failed: %s", e)
            missing.append("(inspection failed)")

        app.config["_schema_health_missing"] = missing
        if missing and not app.config.get("_schema_health_logged"):
            app.config["_schema_health_logged"] = True
            app.logger.error("DB schema out of date; run `alembic upgrade head`. Missing: %s", ", ".join(missing))
        app.config["_schema_health_ok"] = not missing
        return not missing

    _run_schema_health_check()

    @app.before_request
    def _schema_health_guardrail():  # type: ignore[no-redef]
        if app.config.get("_schema_health_ok") or not request.path.startswith("/api/"):
            return None
        # Tables may have been created since startup (migrations run after boot).
        if _run_schema_health_check():
            return None
        return jsonify(
            {
                "error": "schema_out_of_date",
                "message": "Database schema is out of date.",
                "missing": app.config.get("_schema_health_missing") or [],
            }
        ), 503

    @app.errorhandler(LedgerError)
    def _ledger_error(e: LedgerError):  # type: ignore[no-redef]
        app.logger.warning(
            "Rejected %s %s: %s (%s) identity=%s request_id=%s",
            request.method,
            request.path,
            e.code,
            e.message,
            getattr(g, "identity", None),
            getattr(g, "request_id", None),
        )
        return jsonify({"error": e.code, "message": e.message}), e.http_status

    @app.errorhandler(404)
    def _err_404(e):  # type: ignore[no-redef]
        return jsonify({"error": "not_found", "message": "Resource not found."}), 404

    @app.errorhandler(405)
    def _err_405(e):  # type: ignore[no-redef]
        return jsonify({"error": "method_not_allowed", "message": "Method not allowed."}), 405

    @app.errorhandler(413)
    def _err_413(e):  # type: ignore[no-redef]
        return jsonify({"error": "payload_too_large", "message": "Request body too large."}), 413

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        app.logger.error(
            "Unhandled 500 (request_id=%s)",
            getattr(g, "request_id", None),
            exc_info=getattr(e, "original_exception", None) or e,
        )
        return jsonify({"error": "internal_error", "message": "Internal server error."}), 500

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
