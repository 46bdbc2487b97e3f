import pytest
from sqlalchemy import create_engine

from app.docledger.errors import AlreadyInitialized
from app.docledger.models import Base
from app.docledger.modules.access_control.service import get_owner, list_verifiers
from scripts import init_db
from scripts._db_utils import script_session


@pytest.fixture()
def db_url(tmp_path):
    url = f"sqlite:///{tmp_path/'seed.db'}"
    engine = create_engine(url, future=True)
    Base.metadata.create_all(bind=engine)
    engine.dispose()
    return url


def test_seed_initializes_owner_and_initial_verifiers(db_url, monkeypatch, capsys):
    monkeypatch.setenv("OWNER_IDENTITY", "0xOwner")
    monkeypatch.setenv("INITIAL_VERIFIERS", "0xA, 0xB,,")

    assert init_db.seed_only(database_url=db_url) == "0xOwner"
    # idempotent
    init_db.seed_only(database_url=db_url)

    with script_session(db_url) as s:
        assert get_owner(s) == "0xOwner"
        assert list_verifiers(s) == ["0xA", "0xB", "0xOwner"]

    out = capsys.readouterr().out
    assert "Ledger owner and first authorized verifier: 0xOwner" in out


def test_seed_refuses_to_change_owner(db_url, monkeypatch):
    monkeypatch.setenv("OWNER_IDENTITY", "0xOwner")
    monkeypatch.delenv("INITIAL_VERIFIERS", raising=False)
    init_db.seed_only(database_url=db_url)

    monkeypatch.setenv("OWNER_IDENTITY", "0xSomeoneElse")
    with pytest.raises(AlreadyInitialized):
        init_db.seed_only(database_url=db_url)


def test_seed_requires_owner(db_url, monkeypatch):
    monkeypatch.delenv("OWNER_IDENTITY", raising=False)
    with pytest.raises(RuntimeError, match="OWNER_IDENTITY"):
        init_db.seed_only(database_url=db_url)
