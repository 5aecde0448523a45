"""Initial schema – users, research_papers and activity_logs

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18

Creates the three core tables with their foreign keys and the indexes the
list endpoints rely on.
"""

from alembic import op
import sqlalchemy as sa

# Alembic revision identifiers
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # -- users ----------------------------------------------------------
    op.create_table(
        "users",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        # NULL once the account is verified
        sa.Column("verification_code", sa.String(6), nullable=True),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("profile_image", sa.String(2048), nullable=True),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("idx_users_email", "users", ["email"])

    # -- research_papers ------------------------------------------------
    op.create_table(
        "research_papers",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("title", sa.String(512), nullable=False),
        sa.Column("abstract", sa.Text(), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=False),
        # account id or an external-source marker – deliberately no FK
        sa.Column("author_id", sa.String(64), nullable=False),
        sa.Column("author_name", sa.String(255), nullable=False),
        sa.Column("file_url", sa.String(2048), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("idx_research_papers_author_id", "research_papers", ["author_id"])
    op.create_index("idx_research_papers_created_at", "research_papers", ["created_at"])

    # -- activity_logs --------------------------------------------------
    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("action", sa.String(64), nullable=False),
        sa.Column(
            "user_id",
            sa.String(32),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("details", sa.Text(), nullable=True),
        sa.Column("request_ip", sa.String(45), nullable=True),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("idx_activity_logs_action", "activity_logs", ["action"])
    op.create_index("idx_activity_logs_user_id", "activity_logs", ["user_id"])
    op.create_index("idx_activity_logs_timestamp", "activity_logs", ["timestamp"])


def downgrade() -> None:
    op.drop_index("idx_activity_logs_timestamp", table_name="activity_logs")
    op.drop_index("idx_activity_logs_user_id", table_name="activity_logs")
    op.drop_index("idx_activity_logs_action", table_name="activity_logs")
    op.drop_table("activity_logs")
    op.drop_index("idx_research_papers_created_at", table_name="research_papers")
    op.drop_index("idx_research_papers_author_id", table_name="research_papers")
    op.drop_table("research_papers")
    op.drop_index("idx_users_email", table_name="users")
    op.drop_table("users")
