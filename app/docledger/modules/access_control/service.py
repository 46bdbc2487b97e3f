from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from app.docledger.audit import record_event
from app.docledger.constants import (
    ACTION_LEDGER_INITIALIZE,
    ACTION_VERIFIER_ADD,
    ACTION_VERIFIER_REMOVE,
)
from app.docledger.db import atomic
from app.docledger.errors import AlreadyInitialized, NotInitialized, Unauthorized
from app.docledger.modules.access_control.models import LEDGER_STATE_ID, AuthorizedVerifier, LedgerState
from app.docledger.utils import clean_identity, normalize_identity

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def get_state(s: "Session") -> LedgerState | None:
    return s.get(LedgerState, LEDGER_STATE_ID)


def get_owner(s: "Session") -> str:
    state = get_state(s)
    if state is None:
        raise NotInitialized("Ledger has no owner yet.")
    return state.owner_identity


def is_authorized(s: "Session", identity: str, *, lock: bool = False) -> bool:
    """
    Capability predicate consulted by the verification ledger.

    lock=True takes a shared row lock (FOR SHARE where the backend supports it)
    so a concurrent removal in another process waits for the caller's commit.
    """
    identity = clean_identity(identity)
    if identity is None:
        return False
    q = select(AuthorizedVerifier.identity).where(AuthorizedVerifier.identity == identity)
    if lock:
        q = q.with_for_update(read=True)
    return s.scalar(q) is not None


def list_verifiers(s: "Session") -> list[str]:
    return list(s.scalars(select(AuthorizedVerifier.identity).order_by(AuthorizedVerifier.identity.asc())))


def initialize(s: "Session", *, deployer: str) -> LedgerState:
    """
    Fix the owner and seed the verifier set with it.

    Re-running with the same deployer returns the existing state unchanged.
    """
    deployer = normalize_identity(deployer, field="deployer")
    with atomic(s, verifiers="exclusive"):
        state = get_state(s)
        if state is not None:
            if state.owner_identity != deployer:
                raise AlreadyInitialized(f"Ledger already initialized with owner {state.owner_identity!r}.")
            return state

        now = datetime.utcnow()
        state = LedgerState(id=LEDGER_STATE_ID, owner_identity=deployer, initialized_at=now)
        s.add(state)
        if s.get(AuthorizedVerifier, deployer, populate_existing=True) is None:
            s.add(AuthorizedVerifier(identity=deployer, added_at=now, added_by=deployer))
        try:
            s.flush()
        except IntegrityError as e:
            raise AlreadyInitialized("Ledger was initialized concurrently.") from e

        record_event(
            s,
            actor=deployer,
            action=ACTION_LEDGER_INITIALIZE,
            entity_type="LedgerState",
            entity_id=str(LEDGER_STATE_ID),
            metadata={"owner": deployer},
        )
    logger.info("Ledger initialized; owner and first authorized verifier: %s", deployer)
    return state


def _require_owner(s: "Session", caller: str) -> str:
    owner = get_owner(s)
    if caller != owner:
        raise Unauthorized("Only owner can call this function.")
    return owner


def add_verifier(s: "Session", *, caller: str, target: str) -> bool:
    """Authorize target. Returns False when it was already authorized (no-op)."""
    caller = normalize_identity(caller, field="caller")
    target = normalize_identity(target, field="target")
    with atomic(s, verifiers="exclusive"):
        _require_owner(s, caller)
        if s.get(AuthorizedVerifier, target, populate_existing=True) is not None:
            return False
        s.add(AuthorizedVerifier(identity=target, added_at=datetime.utcnow(), added_by=caller))
        s.flush()
        record_event(
            s,
            actor=caller,
            action=ACTION_VERIFIER_ADD,
            entity_type="AuthorizedVerifier",
            entity_id=target,
        )
    logger.info("Verifier added: %s (by %s)", target, caller)
    return True


def remove_verifier(s: "Session", *, caller: str, target: str) -> bool:
    """
    Revoke target's authorization. Returns False when it was not authorized (no-op).
    Attestations the target already made stay on record.
    """
    caller = normalize_identity(caller, field="caller")
    target = normalize_identity(target, field="target")
    with atomic(s, verifiers="exclusive"):
        _require_owner(s, caller)
        row = s.get(AuthorizedVerifier, target, populate_existing=True)
        if row is None:
            return False
        s.delete(row)
        s.flush()
        record_event(
            s,
            actor=caller,
            action=ACTION_VERIFIER_REMOVE,
            entity_type="AuthorizedVerifier",
            entity_id=target,
        )
    logger.info("Verifier removed: %s (by %s)", target, caller)
    return True
