from __future__ import annotations

from flask import Blueprint, jsonify

from app.docledger.db import db_session
from app.docledger.modules.document_registry.service import get_document_info, register_document
from app.docledger.rbac import current_identity, require_identity
from app.docledger.utils import json_body

bp = Blueprint("document_registry", __name__)


@bp.post("")
@require_identity
def register_document_post():
    s = db_session()
    payload = json_body()
    doc = register_document(
        s,
        caller=current_identity(),
        content_hash=payload.get("content_hash"),
        metadata_uri=payload.get("metadata_uri"),
    )
    info = get_document_info(s, doc.content_hash)
    return jsonify(info.as_dict()), 201


@bp.get("/<content_hash>")
def document_info(content_hash: str):
    s = db_session()
    return jsonify(get_document_info(s, content_hash).as_dict())
