"""Create interactions_log and reports tables

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19

Adds tables for the session engine:
- interactions_log: audit trail written by the interaction logger
- reports: documents saved by the report tools
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a1b2c3d4e5f6"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create interactions_log and reports tables."""
    interaction_type_enum = sa.Enum(
        "user_message",
        "assistant_response",
        "tool_call",
        "tool_response",
        "audio_input",
        "audio_output",
        "session_start",
        "session_end",
        "error",
        name="interactiontype",
    )

    report_category_enum = sa.Enum(
        "fitness",
        "workout",
        "supplement",
        "health",
        "nutrition",
        "analysis",
        "summary",
        "technical",
        "business",
        "project",
        "other",
        name="reportcategory",
    )

    report_status_enum = sa.Enum(
        "generating",
        "completed",
        "error",
        name="reportstatus",
    )

    op.create_table(
        "interactions_log",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("session_id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=True),
        sa.Column("interaction_type", interaction_type_enum, nullable=False),
        sa.Column("content_json", sa.String(), nullable=False, server_default="{}"),
        sa.Column("metadata_json", sa.String(), nullable=False, server_default="{}"),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_interactions_log_session_id", "interactions_log", ["session_id"])
    op.create_index("ix_interactions_log_user_id", "interactions_log", ["user_id"])
    op.create_index(
        "ix_interactions_log_interaction_type", "interactions_log", ["interaction_type"]
    )
    op.create_index("ix_interactions_log_timestamp", "interactions_log", ["timestamp"])

    op.create_table(
        "reports",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("content", sa.String(), nullable=False),
        sa.Column("category", report_category_enum, nullable=False, server_default="other"),
        sa.Column("tags_json", sa.String(), nullable=False, server_default="[]"),
        sa.Column("status", report_status_enum, nullable=False, server_default="completed"),
        sa.Column("user_id", sa.String(), nullable=True),
        sa.Column("user_info_json", sa.String(), nullable=True),
        sa.Column("word_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("estimated_read_time", sa.Integer(), nullable=False, server_default="1"),
        sa.Column(
            "source", sa.String(length=50), nullable=False, server_default="ai-generated"
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_reports_title", "reports", ["title"])
    op.create_index("ix_reports_category", "reports", ["category"])
    op.create_index("ix_reports_user_id", "reports", ["user_id"])
    op.create_index("ix_reports_created_at", "reports", ["created_at"])


def downgrade() -> None:
    """Drop reports and interactions_log tables."""
    op.drop_index("ix_reports_created_at", table_name="reports")
    op.drop_index("ix_reports_user_id", table_name="reports")
    op.drop_index("ix_reports_category", table_name="reports")
    op.drop_index("ix_reports_title", table_name="reports")
    op.drop_table("reports")

    op.drop_index("ix_interactions_log_timestamp", table_name="interactions_log")
    op.drop_index("ix_interactions_log_interaction_type", table_name="interactions_log")
    op.drop_index("ix_interactions_log_user_id", table_name="interactions_log")
    op.drop_index("ix_interactions_log_session_id", table_name="interactions_log")
    op.drop_table("interactions_log")

    sa.Enum(name="reportstatus").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="reportcategory").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="interactiontype").drop(op.get_bind(), checkfirst=True)
