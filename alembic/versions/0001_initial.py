"""initial tables

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 00:00:00
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "user",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(50), nullable=False),
        sa.Column("hashed_password", sa.String(), nullable=False),
        sa.Column("is_coach", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_user_username", "user", ["username"], unique=True)

    op.create_table(
        "authsession",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_authsession_user_id", "authsession", ["user_id"])
    op.create_index("ix_authsession_expires_at", "authsession", ["expires_at"])

    op.create_table(
        "contentlink",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("url", sa.String(2048), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("coach_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("platform", sa.String(32), nullable=False),
        sa.Column("thumbnail_url", sa.String(2048), nullable=True),
        sa.Column("description", sa.String(1000), nullable=True),
        sa.Column("views", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_contentlink_category", "contentlink", ["category"])
    op.create_index("ix_contentlink_coach_id", "contentlink", ["coach_id"])

    op.create_table(
        "comment",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("content_id", sa.Integer(), sa.ForeignKey("contentlink.id"), nullable=False),
        sa.Column("content", sa.String(1000), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_comment_user_id", "comment", ["user_id"])
    op.create_index("ix_comment_content_id", "comment", ["content_id"])
    op.create_index("ix_comment_created_at", "comment", ["created_at"])

    op.create_table(
        "commentlike",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("comment_id", sa.Integer(), sa.ForeignKey("comment.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("user_id", "comment_id", name="uq_commentlike_user_comment"),
    )
    op.create_index("ix_commentlike_user_id", "commentlike", ["user_id"])
    op.create_index("ix_commentlike_comment_id", "commentlike", ["comment_id"])

    op.create_table(
        "watchstatus",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("content_id", sa.Integer(), sa.ForeignKey("contentlink.id"), nullable=False),
        sa.Column("watched", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("user_id", "content_id", name="uq_watchstatus_user_content"),
    )
    op.create_index("ix_watchstatus_user_id", "watchstatus", ["user_id"])
    op.create_index("ix_watchstatus_content_id", "watchstatus", ["content_id"])


def downgrade() -> None:
    op.drop_table("watchstatus")
    op.drop_table("commentlike")
    op.drop_table("comment")
    op.drop_table("contentlink")
    op.drop_table("authsession")
    op.drop_table("user")
