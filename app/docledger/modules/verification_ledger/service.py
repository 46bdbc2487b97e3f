from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from app.docledger.audit import record_event
from app.docledger.constants import ACTION_DOCUMENT_ATTEST
from app.docledger.db import atomic
from app.docledger.errors import AlreadyAttested, NotFound, Unauthorized
from app.docledger.modules.access_control.service import is_authorized
from app.docledger.modules.document_registry.models import DocumentStatus
from app.docledger.modules.document_registry.service import document_lock_key, get_document
from app.docledger.modules.verification_ledger.models import Attestation
from app.docledger.utils import clean_identity, normalize_content_hash, normalize_identity, parse_status

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def _find_attestation(s: "Session", content_hash: str, verifier: str) -> Attestation | None:
    return s.scalar(
        select(Attestation).where(Attestation.content_hash == content_hash, Attestation.verifier == verifier)
    )


def update_document_status(
    s: "Session",
    *,
    caller: str,
    content_hash: bytes | str,
    new_status: DocumentStatus | str | int,
) -> Attestation:
    """
    Record caller's one-time attestation and overwrite the document status.

    Checks run in order (document exists, caller authorized, caller has not
    attested yet) and the first failure aborts the unit with nothing written.
    The verifier set is held stable from the authorization check to the commit.
    The status is overwritten whatever it was before.
    """
    caller = normalize_identity(caller, field="caller")
    key = normalize_content_hash(content_hash)
    status = parse_status(new_status)

    with atomic(s, document_lock_key(key), verifiers="shared"):
        doc = get_document(s, key, for_update=True)
        if doc is None:
            raise NotFound("Document does not exist.")
        if not is_authorized(s, caller, lock=True):
            raise Unauthorized("Not authorized.")
        if _find_attestation(s, key, caller) is not None:
            raise AlreadyAttested("Already verified by this address.")

        previous = doc.status
        attestation = Attestation(
            content_hash=key,
            verifier=caller,
            status=status.value,
            attested_at=datetime.utcnow(),
        )
        s.add(attestation)
        try:
            s.flush()  # unique (content_hash, verifier) decides races between processes
        except IntegrityError as e:
            raise AlreadyAttested("Already verified by this address.") from e
        doc.status = status.value

        record_event(
            s,
            actor=caller,
            action=ACTION_DOCUMENT_ATTEST,
            entity_type="Document",
            entity_id=key,
            metadata={"from": previous, "to": status.value},
        )
    logger.info("Document %s attested %s by %s (was %s)", key, status.value, caller, previous)
    return attestation


def has_verified(s: "Session", content_hash: bytes | str, identity: str) -> bool:
    """False for unknown documents; never raises NotFound."""
    key = normalize_content_hash(content_hash)
    identity = clean_identity(identity)
    if identity is None:
        return False
    return _find_attestation(s, key, identity) is not None


def get_verifier_count(s: "Session", content_hash: bytes | str) -> int:
    """0 for unknown documents; never raises NotFound."""
    key = normalize_content_hash(content_hash)
    return int(s.scalar(select(func.count(Attestation.id)).where(Attestation.content_hash == key)) or 0)


def list_attestations(s: "Session", content_hash: bytes | str) -> list[Attestation]:
    key = normalize_content_hash(content_hash)
    if get_document(s, key) is None:
        raise NotFound("Document does not exist.")
    return list(
        s.scalars(select(Attestation).where(Attestation.content_hash == key).order_by(Attestation.id.asc()))
    )
