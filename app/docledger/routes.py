from flask import Blueprint, current_app

bp = Blueprint("routes", __name__)


@bp.get("/health")
def health():
    """Liveness plus the last schema health result. No DB access."""
    return {
        "ok": True,
        "schema_ok": bool(current_app.config.get("_schema_health_ok")),
        "env": current_app.config.get("ENV"),
    }


@bp.get("/healthz")
def healthz():
    """Plain-text probe for load balancers."""
    return "ok", 200
