"""create ledger tables

Revision ID: d0c1e2d9a7b3
Revises:
Create Date: 2026-10-18 09:12:40.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = "d0c1e2d9a7b3"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    insp = inspect(bind)
    existing_tables = set(insp.get_table_names())

    if "ledger_state" not in existing_tables:
        op.create_table(
            "ledger_state",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("owner_identity", sa.String(255), nullable=False),
            sa.Column("initialized_at", sa.DateTime(timezone=False), nullable=False),
            sa.CheckConstraint("id = 1", name="ck_ledger_state_singleton"),
        )

    if "authorized_verifiers" not in existing_tables:
        op.create_table(
            "authorized_verifiers",
            sa.Column("identity", sa.String(255), primary_key=True, nullable=False),
            sa.Column("added_at", sa.DateTime(timezone=False), nullable=False),
            sa.Column("added_by", sa.String(255), nullable=True),
        )

    if "documents" not in existing_tables:
        op.create_table(
            "documents",
            sa.Column("content_hash", sa.String(64), primary_key=True, nullable=False),
            sa.Column("metadata_uri", sa.Text(), nullable=False),
            sa.Column("registrant", sa.String(255), nullable=False),
            sa.Column("status", sa.String(16), nullable=False, server_default="Pending"),
            sa.Column("registered_at", sa.DateTime(timezone=False), nullable=False),
            sa.CheckConstraint("status IN ('Pending','Verified','Rejected')", name="ck_documents_status"),
        )

    if "attestations" not in existing_tables:
        op.create_table(
            "attestations",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("content_hash", sa.String(64), nullable=False),
            sa.Column("verifier", sa.String(255), nullable=False),
            sa.Column("status", sa.String(16), nullable=False),
            sa.Column("attested_at", sa.DateTime(timezone=False), nullable=False),
            sa.ForeignKeyConstraint(["content_hash"], ["documents.content_hash"], ondelete="RESTRICT"),
            sa.UniqueConstraint("content_hash", "verifier", name="uq_attestation_document_verifier"),
            sa.CheckConstraint("status IN ('Pending','Verified','Rejected')", name="ck_attestations_status"),
        )
        op.create_index("idx_attestations_content_hash", "attestations", ["content_hash"])

    if "audit_events" not in existing_tables:
        op.create_table(
            "audit_events",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=False), nullable=False),
            sa.Column("request_id", sa.String(64), nullable=True),
            sa.Column("actor_identity", sa.String(255), nullable=True),
            sa.Column("action", sa.String(128), nullable=False),
            sa.Column("entity_type", sa.String(128), nullable=True),
            sa.Column("entity_id", sa.String(128), nullable=True),
            sa.Column("reason", sa.String(512), nullable=True),
            sa.Column("metadata_json", sa.Text(), nullable=True),
        )
        op.create_index("idx_audit_events_entity", "audit_events", ["entity_type", "entity_id"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("idx_audit_events_entity", table_name="audit_events")
    op.drop_table("audit_events")
    op.drop_index("idx_attestations_content_hash", table_name="attestations")
    op.drop_table("attestations")
    op.drop_table("documents")
    op.drop_table("authorized_verifiers")
    op.drop_table("ledger_state")
