from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.docledger.constants import CONTENT_HASH_BYTES, IDENTITY_MAX_LENGTH
from app.docledger.models import Base
from app.docledger.modules.document_registry.models import Document


class Attestation(Base):
    __tablename__ = "attestations"
    __table_args__ = (
        UniqueConstraint("content_hash", "verifier", name="uq_attestation_document_verifier"),
        CheckConstraint("status IN ('Pending','Verified','Rejected')", name="ck_attestations_status"),
        Index("idx_attestations_content_hash", "content_hash"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    content_hash: Mapped[str] = mapped_column(
        String(CONTENT_HASH_BYTES * 2),
        ForeignKey("documents.content_hash", ondelete="RESTRICT"),
        nullable=False,
    )
    verifier: Mapped[str] = mapped_column(String(IDENTITY_MAX_LENGTH), nullable=False)

    # status requested by this verifier
    status: Mapped[str] = mapped_column(String(16), nullable=False)

    attested_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    document: Mapped[Document] = relationship(
        "Document",
        back_populates="attestations",
        lazy="selectin",
    )
