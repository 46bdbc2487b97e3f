from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.docledger.constants import IDENTITY_MAX_LENGTH
from app.docledger.models import Base

LEDGER_STATE_ID = 1


class LedgerState(Base):
    """Single row holding the owner identity. Written once by initialization."""

    __tablename__ = "ledger_state"
    __table_args__ = (
        CheckConstraint(f"id = {LEDGER_STATE_ID}", name="ck_ledger_state_singleton"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=LEDGER_STATE_ID)
    owner_identity: Mapped[str] = mapped_column(String(IDENTITY_MAX_LENGTH), nullable=False)
    initialized_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)


class AuthorizedVerifier(Base):
    __tablename__ = "authorized_verifiers"

    identity: Mapped[str] = mapped_column(String(IDENTITY_MAX_LENGTH), primary_key=True)
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    added_by: Mapped[str | None] = mapped_column(String(IDENTITY_MAX_LENGTH), nullable=True)
