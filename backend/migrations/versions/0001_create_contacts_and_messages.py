"""Create contacts and messages tables.

Revision ID: 0001_create_contacts_and_messages
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_create_contacts_and_messages"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "contacts",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("name", sa.Text()),
        sa.Column("push_name", sa.Text()),
        sa.Column("phone_number", sa.Text()),
        sa.Column("profile_pic_url", sa.Text()),
        sa.Column("status", sa.Text()),
        sa.Column("is_blocked", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_business", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_group", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("first_interaction", sa.Text()),
        sa.Column("last_interaction", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_contacts"),
    )
    op.create_index("ix_contacts_phone_number", "contacts", ["phone_number"])
    op.create_index("ix_contacts_last_interaction", "contacts", ["last_interaction"])

    op.create_table(
        "messages",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("chat_id", sa.Text(), nullable=False),
        sa.Column("sender", sa.Text(), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("type", sa.Text(), nullable=False, server_default=sa.text("'text'")),
        sa.Column("from_me", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("has_media", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("media_type", sa.Text()),
        sa.Column("media_url", sa.Text()),
        sa.Column("ack", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.Column("is_deleted", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_forwarded", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("forwarding_score", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("reply_to", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id", name="pk_messages"),
    )
    op.create_index("ix_messages_chat_id", "messages", ["chat_id"])
    op.create_index("ix_messages_sender", "messages", ["sender"])
    op.create_index("ix_messages_timestamp", "messages", ["timestamp"])


def downgrade() -> None:
    op.drop_index("ix_messages_timestamp", table_name="messages")
    op.drop_index("ix_messages_sender", table_name="messages")
    op.drop_index("ix_messages_chat_id", table_name="messages")
    op.drop_table("messages")

    op.drop_index("ix_contacts_last_interaction", table_name="contacts")
    op.drop_index("ix_contacts_phone_number", table_name="contacts")
    op.drop_table("contacts")
