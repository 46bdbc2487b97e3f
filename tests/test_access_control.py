"""Tests for the Access Control module."""
import pytest

from app.docledger import create_app
from app.docledger.db import session_scope
from app.docledger.errors import AlreadyInitialized, NotInitialized, Unauthorized
from app.docledger.models import AuditEvent, Base
from app.docledger.modules.access_control.service import (
    add_verifier,
    get_owner,
    initialize,
    is_authorized,
    list_verifiers,
    remove_verifier,
)

OWNER = "0xOwner"
VERIFIER = "0xVerifier"
USER = "0xUser"


@pytest.fixture()
def bare_app(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")

    app = create_app()
    Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])
    return app


@pytest.fixture()
def app(bare_app):
    with session_scope(bare_app) as s:
        initialize(s, deployer=OWNER)
    return bare_app


@pytest.fixture()
def client(app):
    return app.test_client()


def _as(identity):
    return {"X-Identity": identity}


def test_initialize_sets_owner_and_first_verifier(app):
    with session_scope(app) as s:
        assert get_owner(s) == OWNER
        assert is_authorized(s, OWNER) is True
        assert list_verifiers(s) == [OWNER]
        actions = [e.action for e in s.query(AuditEvent).all()]
        assert actions == ["ledger.initialize"]


def test_initialize_is_idempotent_for_same_owner_and_refuses_another(app):
    with session_scope(app) as s:
        state = initialize(s, deployer=f"  {OWNER} ")
        assert state.owner_identity == OWNER

    with session_scope(app) as s:
        with pytest.raises(AlreadyInitialized):
            initialize(s, deployer=USER)

    with session_scope(app) as s:
        assert get_owner(s) == OWNER
        assert is_authorized(s, USER) is False
        assert s.query(AuditEvent).count() == 1


def test_operations_before_initialize(bare_app):
    with session_scope(bare_app) as s:
        with pytest.raises(NotInitialized):
            get_owner(s)
        with pytest.raises(NotInitialized):
            add_verifier(s, caller=OWNER, target=VERIFIER)
        with pytest.raises(NotInitialized):
            remove_verifier(s, caller=OWNER, target=VERIFIER)
        assert list_verifiers(s) == []

    r = bare_app.test_client().get("/api/access/owner")
    assert r.status_code == 409
    assert r.json["error"] == "not_initialized"


def test_owner_adds_and_removes_verifier(app):
    with session_scope(app) as s:
        assert add_verifier(s, caller=OWNER, target=VERIFIER) is True
    with session_scope(app) as s:
        assert is_authorized(s, VERIFIER) is True
        assert remove_verifier(s, caller=OWNER, target=VERIFIER) is True
    with session_scope(app) as s:
        assert is_authorized(s, VERIFIER) is False
        actions = [e.action for e in s.query(AuditEvent).order_by(AuditEvent.id.asc()).all()]
        assert actions == ["ledger.initialize", "verifier.add", "verifier.remove"]


def test_add_is_idempotent_and_remove_absent_is_noop(app):
    with session_scope(app) as s:
        assert add_verifier(s, caller=OWNER, target=VERIFIER) is True
        assert add_verifier(s, caller=OWNER, target=VERIFIER) is False
        assert remove_verifier(s, caller=OWNER, target=USER) is False
        assert list_verifiers(s) == sorted([OWNER, VERIFIER])
        # no-ops leave no audit trail
        assert s.query(AuditEvent).count() == 2


@pytest.mark.parametrize("caller", [VERIFIER, USER, "0xowner"])
def test_non_owner_cannot_manage_verifiers(app, caller):
    with session_scope(app) as s:
        add_verifier(s, caller=OWNER, target=VERIFIER)

    with session_scope(app) as s:
        before = list_verifiers(s)
        with pytest.raises(Unauthorized):
            add_verifier(s, caller=caller, target=USER)
        with pytest.raises(Unauthorized):
            remove_verifier(s, caller=caller, target=VERIFIER)

    with session_scope(app) as s:
        assert list_verifiers(s) == before


def test_is_authorized_rejects_invalid_identity(app):
    with session_scope(app) as s:
        assert is_authorized(s, "") is False
        assert is_authorized(s, "   ") is False
        assert is_authorized(s, None) is False
        assert is_authorized(s, "x" * 256) is False
        assert is_authorized(s, f"  {OWNER} ", lock=True) is True


def test_http_verifier_management(client):
    r = client.get("/api/access/owner")
    assert r.status_code == 200
    assert r.json["owner"] == OWNER

    r = client.post("/api/access/verifiers", json={"identity": VERIFIER}, headers=_as(USER))
    assert r.status_code == 403
    assert r.json["error"] == "unauthorized"

    r = client.post("/api/access/verifiers", json={"identity": VERIFIER}, headers=_as(OWNER))
    assert r.status_code == 200
    assert r.json == {"identity": VERIFIER, "authorized": True, "changed": True}

    r = client.get(f"/api/access/verifiers/{VERIFIER}")
    assert r.json["authorized"] is True

    r = client.get("/api/access/verifiers")
    assert r.json["verifiers"] == sorted([OWNER, VERIFIER])

    r = client.delete(f"/api/access/verifiers/{VERIFIER}", headers=_as(VERIFIER))
    assert r.status_code == 403

    r = client.delete(f"/api/access/verifiers/{VERIFIER}", headers=_as(OWNER))
    assert r.status_code == 200
    assert r.json["changed"] is True

    r = client.get(f"/api/access/verifiers/{VERIFIER}")
    assert r.json["authorized"] is False


def test_http_add_verifier_requires_target(client):
    r = client.post("/api/access/verifiers", json={}, headers=_as(OWNER))
    assert r.status_code == 400
    assert r.json["error"] == "invalid_input"
