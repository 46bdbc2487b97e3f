from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from app.docledger.audit import record_event
from app.docledger.constants import ACTION_DOCUMENT_REGISTER, DOCUMENT_LOCK_PREFIX
from app.docledger.db import atomic
from app.docledger.errors import AlreadyRegistered, NotFound
from app.docledger.modules.document_registry.models import Document, DocumentStatus
from app.docledger.utils import isoformat_utc, normalize_content_hash, normalize_identity, normalize_metadata_uri

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentInfo:
    content_hash: str
    metadata_uri: str
    registrant: str
    status: DocumentStatus
    registered_at: datetime

    def as_dict(self) -> dict[str, Any]:
        return {
            "content_hash": self.content_hash,
            "metadata_uri": self.metadata_uri,
            "registrant": self.registrant,
            "status": self.status.value,
            "status_code": self.status.code,
            "registered_at": isoformat_utc(self.registered_at),
        }


def document_lock_key(content_hash: str) -> str:
    return f"{DOCUMENT_LOCK_PREFIX}{content_hash}"


def get_document(s: "Session", content_hash: bytes | str, *, for_update: bool = False) -> Document | None:
    key = normalize_content_hash(content_hash)
    q = select(Document).where(Document.content_hash == key).execution_options(populate_existing=True)
    if for_update:
        q = q.with_for_update()
    return s.scalar(q)


def register_document(s: "Session", *, caller: str, content_hash: bytes | str, metadata_uri: str) -> Document:
    """Public, first-write-wins registration. The caller becomes the registrant."""
    caller = normalize_identity(caller, field="caller")
    key = normalize_content_hash(content_hash)
    uri = normalize_metadata_uri(metadata_uri)

    with atomic(s, document_lock_key(key)):
        if get_document(s, key) is not None:
            raise AlreadyRegistered("Document already registered.")
        doc = Document(
            content_hash=key,
            metadata_uri=uri,
            registrant=caller,
            status=DocumentStatus.PENDING.value,
            registered_at=datetime.utcnow(),
        )
        s.add(doc)
        try:
            s.flush()  # primary key decides races between processes
        except IntegrityError as e:
            raise AlreadyRegistered("Document already registered.") from e

        record_event(
            s,
            actor=caller,
            action=ACTION_DOCUMENT_REGISTER,
            entity_type="Document",
            entity_id=key,
            metadata={"metadata_uri": uri},
        )
    logger.info("Document registered: %s by %s", key, caller)
    return doc


def get_document_info(s: "Session", content_hash: bytes | str) -> DocumentInfo:
    doc = get_document(s, content_hash)
    if doc is None:
        raise NotFound("Document does not exist.")
    return DocumentInfo(
        content_hash=doc.content_hash,
        metadata_uri=doc.metadata_uri,
        registrant=doc.registrant,
        status=DocumentStatus(doc.status),
        registered_at=doc.registered_at,
    )
