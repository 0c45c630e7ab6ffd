"""Create the webauthn_devices table."""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "20240101_000001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "webauthn_devices",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rpid", sa.String(length=512), nullable=False, server_default=""),
        sa.Column("username", sa.String(length=100), nullable=False),
        sa.Column("description", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("kid", sa.String(length=512), nullable=False),
        sa.Column("public_key", sa.LargeBinary(), nullable=False),
        sa.Column("attestation_type", sa.String(length=32), nullable=False, server_default=""),
        sa.Column("transport", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("aaguid", sa.Uuid(), nullable=True),
        sa.Column("sign_count", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("clone_warning", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.UniqueConstraint("rpid", "username", "kid", name="uq_webauthn_devices_rpid_username_kid"),
    )
    op.create_index("ix_webauthn_devices_username", "webauthn_devices", ["username"])


def downgrade() -> None:
    op.drop_index("ix_webauthn_devices_username", table_name="webauthn_devices")
    op.drop_table("webauthn_devices")
