from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from app.docledger.constants import IDENTITY_MAX_LENGTH


class Base(DeclarativeBase):
    pass


class AuditEvent(Base):
    """
    Append-only audit trail event.
    Written in the same transaction as the ledger mutation it describes.
    """

    __tablename__ = "audit_events"
    __table_args__ = (
        Index("idx_audit_events_entity", "entity_type", "entity_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    request_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    actor_identity: Mapped[str | None] = mapped_column(String(IDENTITY_MAX_LENGTH), nullable=True)

    action: Mapped[str] = mapped_column(String(128), nullable=False)  # e.g. "document.attest"
    entity_type: Mapped[str | None] = mapped_column(String(128), nullable=True)  # e.g. "Document"
    entity_id: Mapped[str | None] = mapped_column(String(128), nullable=True)  # content hash or identity

    reason: Mapped[str | None] = mapped_column(String(512), nullable=True)
    metadata_json: Mapped[str | None] = mapped_column(Text, nullable=True)  # small JSON string


# Ensure module models are imported so Base.metadata includes their tables.
# (Kept at bottom to avoid circular imports.)
from app.docledger.modules.access_control.models import AuthorizedVerifier, LedgerState  # noqa: E402,F401
from app.docledger.modules.document_registry.models import Document  # noqa: E402,F401
from app.docledger.modules.verification_ledger.models import Attestation  # noqa: E402,F401
