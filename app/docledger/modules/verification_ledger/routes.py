from __future__ import annotations

from flask import Blueprint, jsonify

from app.docledger.db import db_session
from app.docledger.modules.document_registry.service import get_document_info
from app.docledger.modules.verification_ledger.models import Attestation
from app.docledger.modules.verification_ledger.service import (
    get_verifier_count,
    has_verified,
    list_attestations,
    update_document_status,
)
from app.docledger.rbac import current_identity, require_identity
from app.docledger.utils import isoformat_utc, json_body

bp = Blueprint("verification_ledger", __name__)


def _attestation_json(a: Attestation) -> dict:
    return {
        "verifier": a.verifier,
        "status": a.status,
        "attested_at": isoformat_utc(a.attested_at),
    }


@bp.post("/<content_hash>/status")
@require_identity
def update_status_post(content_hash: str):
    s = db_session()
    payload = json_body()
    a = update_document_status(
        s,
        caller=current_identity(),
        content_hash=content_hash,
        new_status=payload.get("status"),
    )
    info = get_document_info(s, content_hash)
    return jsonify({"document": info.as_dict(), "attestation": _attestation_json(a)})


@bp.get("/<content_hash>/verifiers/<path:identity>")
def has_verified_get(content_hash: str, identity: str):
    s = db_session()
    return jsonify({"identity": identity, "has_verified": has_verified(s, content_hash, identity)})


@bp.get("/<content_hash>/verifier-count")
def verifier_count_get(content_hash: str):
    s = db_session()
    return jsonify({"count": get_verifier_count(s, content_hash)})


@bp.get("/<content_hash>/attestations")
def attestations_get(content_hash: str):
    s = db_session()
    return jsonify({"attestations": [_attestation_json(a) for a in list_attestations(s, content_hash)]})
