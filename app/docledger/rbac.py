from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import current_app, g, jsonify


def current_identity() -> str | None:
    return getattr(g, "identity", None)


def require_identity(fn: Callable[..., Any]) -> Callable[..., Any]:
    """
    Gate for endpoints that act on behalf of a caller.
    Role checks (owner, verifier) belong to the services, not to this decorator.
    """

    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        if not current_identity():
            header = current_app.config.get("IDENTITY_HEADER") or "X-Identity"
            return jsonify({"error": "identity_required", "message": f"Missing {header} header."}), 401
        return fn(*args, **kwargs)

    return wrapped
