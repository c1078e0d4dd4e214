"""connections

Revision ID: 5a1f0c2e9b7d
Revises:
Create Date: 2026-09-28 18:42:05.318220

"""

from alembic import op
import sqlalchemy as sa
import sqlmodel

from models import UtcAwareDateTime

# revision identifiers, used by Alembic.
revision = "5a1f0c2e9b7d"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("email", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("username", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("picture", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("join_date", UtcAwareDateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("accounts", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_accounts_email"), ["email"], unique=True)
        batch_op.create_index(
            batch_op.f("ix_accounts_username"), ["username"], unique=True
        )

    op.create_table(
        "connection_requests",
        sa.Column("id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("from_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("to_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("user_low_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("user_high_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                "pending", "accepted", "declined", "cancelled", name="requeststatus"
            ),
            nullable=False,
        ),
        sa.Column("created_at", UtcAwareDateTime(timezone=True), nullable=False),
        sa.CheckConstraint("user_low_id < user_high_id", name="ck_request_order"),
        sa.ForeignKeyConstraint(["from_id"], ["accounts.id"]),
        sa.ForeignKeyConstraint(["to_id"], ["accounts.id"]),
        sa.ForeignKeyConstraint(["user_low_id"], ["accounts.id"]),
        sa.ForeignKeyConstraint(["user_high_id"], ["accounts.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_low_id", "user_high_id", name="uq_request_pair"),
    )
    with op.batch_alter_table("connection_requests", schema=None) as batch_op:
        batch_op.create_index(
            batch_op.f("ix_connection_requests_from_id"), ["from_id"], unique=False
        )
        batch_op.create_index(
            batch_op.f("ix_connection_requests_to_id"), ["to_id"], unique=False
        )

    op.create_table(
        "friend_list_entries",
        sa.Column("owner_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("friend_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("added_at", UtcAwareDateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["owner_id"], ["accounts.id"]),
        sa.ForeignKeyConstraint(["friend_id"], ["accounts.id"]),
        sa.PrimaryKeyConstraint("owner_id", "friend_id"),
    )
    with op.batch_alter_table("friend_list_entries", schema=None) as batch_op:
        batch_op.create_index(
            batch_op.f("ix_friend_list_entries_friend_id"), ["friend_id"], unique=False
        )

    op.create_table(
        "notifications",
        sa.Column("id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("owner_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column(
            "type",
            sa.Enum(
                "friend_request",
                "friend_accepted",
                "friend_declined",
                name="notificationtype",
            ),
            nullable=False,
        ),
        sa.Column("from_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("request_id", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("read", sa.Boolean(), nullable=False),
        sa.Column("created_at", UtcAwareDateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["owner_id"], ["accounts.id"]),
        sa.ForeignKeyConstraint(["from_id"], ["accounts.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("notifications", schema=None) as batch_op:
        batch_op.create_index(
            batch_op.f("ix_notifications_owner_id"), ["owner_id"], unique=False
        )
        batch_op.create_index(
            batch_op.f("ix_notifications_request_id"), ["request_id"], unique=False
        )


def downgrade() -> None:
    with op.batch_alter_table("notifications", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_notifications_request_id"))
        batch_op.drop_index(batch_op.f("ix_notifications_owner_id"))
    op.drop_table("notifications")

    with op.batch_alter_table("friend_list_entries", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_friend_list_entries_friend_id"))
    op.drop_table("friend_list_entries")

    with op.batch_alter_table("connection_requests", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_connection_requests_to_id"))
        batch_op.drop_index(batch_op.f("ix_connection_requests_from_id"))
    op.drop_table("connection_requests")

    with op.batch_alter_table("accounts", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_accounts_username"))
        batch_op.drop_index(batch_op.f("ix_accounts_email"))
    op.drop_table("accounts")
