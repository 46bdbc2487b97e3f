from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import CheckConstraint, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.docledger.constants import CONTENT_HASH_BYTES, IDENTITY_MAX_LENGTH
from app.docledger.models import Base


class DocumentStatus(str, Enum):
    PENDING = "Pending"
    VERIFIED = "Verified"
    REJECTED = "Rejected"

    @property
    def code(self) -> int:
        return _STATUS_CODES.index(self)

    @classmethod
    def from_code(cls, code: int) -> "DocumentStatus":
        if code < 0 or code >= len(_STATUS_CODES):
            raise ValueError(f"Unknown status code: {code!r}")
        return _STATUS_CODES[code]


# Ordinal codes: Pending=0, Verified=1, Rejected=2
_STATUS_CODES = (DocumentStatus.PENDING, DocumentStatus.VERIFIED, DocumentStatus.REJECTED)


class Document(Base):
    __tablename__ = "documents"
    __table_args__ = (
        CheckConstraint("status IN ('Pending','Verified','Rejected')", name="ck_documents_status"),
    )

    # canonical lowercase hex, no 0x prefix
    content_hash: Mapped[str] = mapped_column(String(CONTENT_HASH_BYTES * 2), primary_key=True)

    metadata_uri: Mapped[str] = mapped_column(Text, nullable=False)
    registrant: Mapped[str] = mapped_column(String(IDENTITY_MAX_LENGTH), nullable=False)

    # Pending -> whatever the latest accepted attestation requested
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=DocumentStatus.PENDING.value)

    registered_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    attestations: Mapped[list["Attestation"]] = relationship(
        "Attestation",
        back_populates="document",
        lazy="selectin",
        order_by="Attestation.id",
    )
