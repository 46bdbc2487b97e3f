from __future__ import annotations

from flask import Blueprint, jsonify

from app.docledger.db import db_session
from app.docledger.modules.access_control.service import (
    add_verifier,
    get_owner,
    is_authorized,
    list_verifiers,
    remove_verifier,
)
from app.docledger.rbac import current_identity, require_identity
from app.docledger.utils import json_body

bp = Blueprint("access_control", __name__)


@bp.get("/owner")
def owner():
    s = db_session()
    return jsonify({"owner": get_owner(s)})


@bp.get("/verifiers")
def verifiers():
    s = db_session()
    return jsonify({"verifiers": list_verifiers(s)})


@bp.get("/verifiers/<path:identity>")
def verifier_status(identity: str):
    s = db_session()
    return jsonify({"identity": identity, "authorized": is_authorized(s, identity)})


@bp.post("/verifiers")
@require_identity
def add_verifier_post():
    s = db_session()
    payload = json_body()
    target = payload.get("identity")
    changed = add_verifier(s, caller=current_identity(), target=target)
    return jsonify({"identity": target.strip(), "authorized": True, "changed": changed})


@bp.delete("/verifiers/<path:identity>")
@require_identity
def remove_verifier_delete(identity: str):
    s = db_session()
    changed = remove_verifier(s, caller=current_identity(), target=identity)
    return jsonify({"identity": identity.strip(), "authorized": False, "changed": changed})
