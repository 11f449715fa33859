"""Initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "groups",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("telegram_id", sa.BigInteger(), nullable=False),
        sa.Column("title", sa.String(), nullable=True),
        sa.Column(
            "status",
            sa.Enum("open", "assigned", name="group_status"),
            nullable=False,
            server_default="open",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_assignment_seed", sa.Integer(), nullable=True),
        sa.Column("revealed_count", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_groups_telegram_id", "groups", ["telegram_id"], unique=True)

    op.create_table(
        "participants",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("group_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("group_id", "name", name="uq_participants_group_name"),
    )
    op.create_index("ix_participants_group_id", "participants", ["group_id"])

    op.create_table(
        "exclusions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("group_id", sa.Integer(), nullable=False),
        sa.Column("participant1_id", sa.String(length=36), nullable=False),
        sa.Column("participant2_id", sa.String(length=36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["participant1_id"], ["participants.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["participant2_id"], ["participants.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_exclusions_group_id", "exclusions", ["group_id"])

    op.create_table(
        "assignments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("group_id", sa.Integer(), nullable=False),
        sa.Column("giver_id", sa.String(length=36), nullable=False),
        sa.Column("receiver_id", sa.String(length=36), nullable=False),
        sa.Column("reveal_position", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["giver_id"], ["participants.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["receiver_id"], ["participants.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("group_id", "giver_id", name="uq_assignments_group_giver"),
        sa.UniqueConstraint("group_id", "reveal_position", name="uq_assignments_group_reveal_position"),
    )


def downgrade() -> None:
    op.drop_table("assignments")
    op.drop_index("ix_exclusions_group_id", table_name="exclusions")
    op.drop_table("exclusions")
    op.drop_index("ix_participants_group_id", table_name="participants")
    op.drop_table("participants")
    op.drop_index("ix_groups_telegram_id", table_name="groups")
    op.drop_table("groups")
    op.execute("DROP TYPE IF EXISTS group_status")
