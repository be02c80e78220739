"""bilingual content + activity log

Revision ID: 5b2d9c4e7a10
Revises:
Create Date: 2026-10-19 10:12:41.508211

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '5b2d9c4e7a10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# JSONB en Postgres, JSON en el resto
JSONType = sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), "postgresql")


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=160), nullable=False),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "website_content",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("page", sa.String(length=64), nullable=False),
        sa.Column("section", sa.String(length=100), nullable=False),
        sa.Column("section_key", sa.String(length=100), nullable=False),
        # enums como VARCHAR (native_enum=False en el modelo)
        sa.Column("section_type", sa.String(length=13), nullable=False),
        sa.Column("layout", sa.String(length=12), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False),
        sa.Column("title", JSONType, nullable=False),
        sa.Column("content", JSONType, nullable=False),
        sa.Column("subtitle", JSONType, nullable=True),
        sa.Column("button_text", JSONType, nullable=True),
        sa.Column("seo_title", JSONType, nullable=True),
        sa.Column("seo_description", JSONType, nullable=True),
        sa.Column("seo_keywords", JSONType, nullable=True),
        sa.Column("button_url", sa.String(length=500), nullable=True),
        sa.Column("images", JSONType, nullable=False),
        sa.Column("style_preset", sa.String(length=7), nullable=False),
        sa.Column("custom_styles", JSONType, nullable=True),
        sa.Column("metadata", JSONType, nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("is_visible", sa.Boolean(), nullable=False),
        sa.Column("is_required", sa.Boolean(), nullable=False),
        sa.Column("has_tamil_translation", sa.Boolean(), nullable=False),
        sa.Column("publish_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expiration_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_by_id", sa.Integer(), nullable=True),
        sa.Column("updated_by_id", sa.Integer(), nullable=True),
        sa.Column("approved_by_id", sa.Integer(), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_website_content"),
        sa.ForeignKeyConstraint(
            ["created_by_id"], ["users.id"], ondelete="SET NULL",
            name="fk_website_content_created_by_id_users",
        ),
        sa.ForeignKeyConstraint(
            ["updated_by_id"], ["users.id"], ondelete="SET NULL",
            name="fk_website_content_updated_by_id_users",
        ),
        sa.ForeignKeyConstraint(
            ["approved_by_id"], ["users.id"], ondelete="SET NULL",
            name="fk_website_content_approved_by_id_users",
        ),
        sa.UniqueConstraint("page", "section_key", name="uq_website_content_page_section_key"),
    )
    op.create_index("ix_website_content_page", "website_content", ["page"], unique=False)
    op.create_index("ix_website_content_page_section", "website_content", ["page", "section"], unique=False)
    op.create_index("ix_website_content_page_order", "website_content", ["page", "order"], unique=False)
    op.create_index("ix_website_content_active_visible", "website_content", ["is_active", "is_visible"], unique=False)

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("admin_id", sa.Integer(), nullable=True),
        sa.Column("admin_name", sa.String(length=160), nullable=False),
        sa.Column("action", sa.String(length=9), nullable=False),
        sa.Column("target_type", sa.String(length=7), nullable=False),
        # sin FK: el log puede sobrevivir al contenido
        sa.Column("target_id", sa.Integer(), nullable=True),
        sa.Column("page", sa.String(length=64), nullable=False),
        sa.Column("section_key", sa.String(length=100), nullable=True),
        sa.Column("description", sa.String(length=500), nullable=False),
        sa.Column("details", JSONType, nullable=False),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(length=512), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_activity_logs"),
        sa.ForeignKeyConstraint(
            ["admin_id"], ["users.id"], ondelete="SET NULL",
            name="fk_activity_logs_admin_id_users",
        ),
    )
    op.create_index("ix_activity_logs_page_created", "activity_logs", ["page", "created_at"], unique=False)
    op.create_index("ix_activity_logs_admin_created", "activity_logs", ["admin_id", "created_at"], unique=False)
    op.create_index("ix_activity_logs_action_created", "activity_logs", ["action", "created_at"], unique=False)


def downgrade():
    op.drop_index("ix_activity_logs_action_created", table_name="activity_logs")
    op.drop_index("ix_activity_logs_admin_created", table_name="activity_logs")
    op.drop_index("ix_activity_logs_page_created", table_name="activity_logs")
    op.drop_table("activity_logs")

    op.drop_index("ix_website_content_active_visible", table_name="website_content")
    op.drop_index("ix_website_content_page_order", table_name="website_content")
    op.drop_index("ix_website_content_page_section", table_name="website_content")
    op.drop_index("ix_website_content_page", table_name="website_content")
    op.drop_table("website_content")

    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
