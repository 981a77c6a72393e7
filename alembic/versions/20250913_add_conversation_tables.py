"""Add conversation and message tables

Revision ID: 20250913_add_conversation_tables
Revises:
Create Date: 2025-09-13 22:56:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20250913_add_conversation_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "conversation",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=False),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("user_id", sa.Text, nullable=False),
        sa.Column("title", sa.Text, nullable=True),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
    )

    op.create_table(
        "message",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=False),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("conversation_id", postgresql.UUID(as_uuid=False), nullable=False),
        # Insertion order, breaks created_at ties
        sa.Column("seq", sa.BigInteger, sa.Identity(), nullable=False, unique=True),
        sa.Column("role", sa.String(20), nullable=False),  # user, assistant or system
        sa.Column("content", sa.Text, nullable=False),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
    )

    op.create_foreign_key(
        "fk_message_conversation_id",
        "message",
        "conversation",
        ["conversation_id"],
        ["id"],
        ondelete="CASCADE",
    )

    op.create_index("ix_conversation_user_id", "conversation", ["user_id"])
    op.create_index("ix_conversation_created_at", "conversation", ["created_at"])
    op.create_index("ix_message_conversation_id", "message", ["conversation_id"])
    op.create_index(
        "ix_message_conversation_created", "message", ["conversation_id", "created_at", "seq"]
    )


def downgrade() -> None:
    op.drop_index("ix_message_conversation_created", table_name="message")
    op.drop_index("ix_message_conversation_id", table_name="message")
    op.drop_index("ix_conversation_created_at", table_name="conversation")
    op.drop_index("ix_conversation_user_id", table_name="conversation")

    op.drop_constraint("fk_message_conversation_id", "message", type_="foreignkey")

    op.drop_table("message")
    op.drop_table("conversation")
