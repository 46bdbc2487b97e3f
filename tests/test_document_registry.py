"""Tests for the Document Registry module."""
import hashlib
from datetime import datetime

import pytest

from app.docledger import create_app
from app.docledger.db import session_scope
from app.docledger.errors import AlreadyRegistered, InvalidInput, NotFound
from app.docledger.models import AuditEvent, Base
from app.docledger.modules.access_control.service import initialize
from app.docledger.modules.document_registry.models import Document, DocumentStatus
from app.docledger.modules.document_registry.service import get_document, get_document_info, register_document

OWNER = "0xOwner"
USER = "0xUser"
OTHER = "0xOther"
DOC_HASH = hashlib.sha256(b"test document").hexdigest()


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")

    app = create_app()
    Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])
    with session_scope(app) as s:
        initialize(s, deployer=OWNER)
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


def test_any_caller_can_register(app):
    with session_scope(app) as s:
        register_document(s, caller=USER, content_hash=DOC_HASH, metadata_uri="ipfs://metadata")

    with session_scope(app) as s:
        info = get_document_info(s, DOC_HASH)
        assert info.metadata_uri == "ipfs://metadata"
        assert info.registrant == USER
        assert info.status is DocumentStatus.PENDING
        assert info.status.code == 0
        assert isinstance(info.registered_at, datetime)
        assert info.registered_at.timestamp() > 0

        ev = s.query(AuditEvent).filter(AuditEvent.action == "document.register").one()
        assert ev.actor_identity == USER
        assert ev.entity_id == DOC_HASH


def test_duplicate_registration_keeps_first_record(app):
    with session_scope(app) as s:
        register_document(s, caller=USER, content_hash=DOC_HASH, metadata_uri="ipfs://metadata")

    with session_scope(app) as s:
        with pytest.raises(AlreadyRegistered):
            register_document(s, caller=OTHER, content_hash=DOC_HASH, metadata_uri="ipfs://metadata2")

    with session_scope(app) as s:
        info = get_document_info(s, DOC_HASH)
        assert info.metadata_uri == "ipfs://metadata"
        assert info.registrant == USER
        assert s.query(Document).count() == 1
        assert s.query(AuditEvent).filter(AuditEvent.action == "document.register").count() == 1


def test_hash_forms_share_one_key(app):
    raw = bytes.fromhex(DOC_HASH)
    with session_scope(app) as s:
        register_document(s, caller=USER, content_hash=raw, metadata_uri="ref://meta")

    with session_scope(app) as s:
        with pytest.raises(AlreadyRegistered):
            register_document(s, caller=USER, content_hash="0x" + DOC_HASH.upper(), metadata_uri="ref://meta")
        assert get_document_info(s, "0x" + DOC_HASH).registrant == USER


def test_get_document_refreshes_loaded_row(app):
    with session_scope(app) as s:
        register_document(s, caller=USER, content_hash=DOC_HASH, metadata_uri="ipfs://metadata")

    with session_scope(app) as reader:
        doc = get_document(reader, DOC_HASH)
        assert doc.status == DocumentStatus.PENDING.value

        with session_scope(app) as writer:
            writer.get(Document, DOC_HASH).status = DocumentStatus.REJECTED.value

        assert get_document(reader, "0x" + DOC_HASH.upper()) is doc
        assert doc.status == DocumentStatus.REJECTED.value
        assert get_document(reader, hashlib.sha256(b"missing").digest()) is None


def test_unknown_document_is_not_found(app):
    with session_scope(app) as s:
        with pytest.raises(NotFound):
            get_document_info(s, "00" * 32)


@pytest.mark.parametrize(
    "content_hash, metadata_uri",
    [
        ("abc", "ref://meta"),
        ("zz" * 32, "ref://meta"),
        (b"\x00" * 31, "ref://meta"),
        (None, "ref://meta"),
        (DOC_HASH, ""),
        (DOC_HASH, "   "),
        (DOC_HASH, "x" * 2049),
    ],
)
def test_register_rejects_malformed_input(app, content_hash, metadata_uri):
    with session_scope(app) as s:
        with pytest.raises(InvalidInput):
            register_document(s, caller=USER, content_hash=content_hash, metadata_uri=metadata_uri)
        assert s.query(Document).count() == 0


def test_http_register_and_read(client):
    r = client.post(
        "/api/documents",
        json={"content_hash": "0x" + DOC_HASH, "metadata_uri": "ipfs://metadata"},
        headers={"X-Identity": USER},
    )
    assert r.status_code == 201
    assert r.json["content_hash"] == DOC_HASH
    assert r.json["registrant"] == USER
    assert r.json["status"] == "Pending"
    assert r.json["status_code"] == 0
    assert r.json["registered_at"].endswith("+00:00")

    r = client.get(f"/api/documents/{DOC_HASH.upper()}")
    assert r.status_code == 200
    assert r.json["metadata_uri"] == "ipfs://metadata"


def test_http_duplicate_and_missing(client):
    body = {"content_hash": DOC_HASH, "metadata_uri": "ipfs://metadata"}
    assert client.post("/api/documents", json=body, headers={"X-Identity": USER}).status_code == 201

    r = client.post("/api/documents", json={**body, "metadata_uri": "ipfs://metadata2"}, headers={"X-Identity": USER})
    assert r.status_code == 409
    assert r.json["error"] == "already_registered"

    r = client.get(f"/api/documents/{'11' * 32}")
    assert r.status_code == 404
    assert r.json["error"] == "not_found"

    r = client.get("/api/documents/not-a-hash")
    assert r.status_code == 400
    assert r.json["error"] == "invalid_input"


def test_http_register_records_request_id(client, app):
    r = client.post(
        "/api/documents",
        json={"content_hash": DOC_HASH, "metadata_uri": "ipfs://metadata"},
        headers={"X-Identity": USER, "X-Request-ID": "rid-42"},
    )
    assert r.status_code == 201
    with session_scope(app) as s:
        ev = s.query(AuditEvent).filter(AuditEvent.action == "document.register").one()
        assert ev.request_id == "rid-42"
