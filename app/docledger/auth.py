from __future__ import annotations

import uuid

from flask import current_app, g, request

from app.docledger.constants import IDENTITY_MAX_LENGTH


def load_current_identity() -> None:
    """
    Loads g.identity from the configured identity header.
    Identities are issued elsewhere; the ledger only compares them for equality.
    Also assigns a simple per-request request_id (for audit/log correlation).
    """
    if not getattr(g, "request_id", None):
        g.request_id = (request.headers.get("X-Request-ID") or "").strip()[:64] or uuid.uuid4().hex
    if request.path.startswith(("/health", "/healthz")):
        g.identity = None
        return

    header = current_app.config.get("IDENTITY_HEADER") or "X-Identity"
    raw = (request.headers.get(header) or "").strip()
    if not raw or len(raw) > IDENTITY_MAX_LENGTH:
        if raw:
            current_app.logger.warning(
                "Ignoring oversized identity header (len=%s request_id=%s)", len(raw), g.request_id
            )
        g.identity = None
        return
    g.identity = raw


def attach_request_id(response):
    rid = getattr(g, "request_id", None)
    if rid:
        response.headers["X-Request-ID"] = rid
    return response
