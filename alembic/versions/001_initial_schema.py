"""Initial schema: page, section, field, content and content_history tables.

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import context, op

revision: str = "001"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _create_table(existing: set[str], name: str, *columns: sa.schema.SchemaItem) -> None:
    if name in existing:
        return
    op.create_table(name, *columns)


def upgrade() -> None:
    """Upgrade schema, adopting tables the content store already created."""
    existing: set[str] = set()
    if not context.is_offline_mode():
        existing = set(sa.inspect(op.get_bind()).get_table_names())
    _create_table(
        existing,
        "page",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("slug", sa.Text, nullable=False, unique=True),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("source_files", sa.JSON, nullable=False),
        sa.Column("field_count", sa.Integer, nullable=False),
        *_timestamps(),
    )
    _create_table(
        existing,
        "section",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("page_id", sa.String(36), sa.ForeignKey("page.id", ondelete="CASCADE"), nullable=False),
        sa.Column("slug", sa.Text, nullable=False),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("is_repeater", sa.Boolean, nullable=False),
        sa.Column("repeater_config", sa.JSON, nullable=True),
        sa.Column("sort_order", sa.Integer, nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("page_id", "slug", name="uq_section_page_slug"),
    )
    _create_table(
        existing,
        "field",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("section_id", sa.String(36), sa.ForeignKey("section.id", ondelete="CASCADE"), nullable=False),
        sa.Column("path", sa.Text, nullable=False, unique=True),
        sa.Column("type", sa.Text, nullable=False),
        sa.Column("label", sa.Text, nullable=False),
        sa.Column("placeholder", sa.Text, nullable=True),
        sa.Column("required", sa.Boolean, nullable=False),
        sa.Column("validation", sa.Text, nullable=True),
        sa.Column("options", sa.JSON, nullable=True),
        sa.Column("condition", sa.Text, nullable=True),
        sa.Column("config", sa.JSON, nullable=False),
        sa.Column("default_value", sa.Text, nullable=True),
        sa.Column("help", sa.Text, nullable=True),
        sa.Column("element_tag", sa.Text, nullable=True),
        sa.Column("source_files", sa.JSON, nullable=False),
        sa.Column("source_line", sa.Integer, nullable=False),
        sa.Column("source_column", sa.Integer, nullable=False),
        sa.Column("sort_order", sa.Integer, nullable=False),
        *_timestamps(),
    )
    _create_table(
        existing,
        "content",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("field_id", sa.String(36), sa.ForeignKey("field.id", ondelete="CASCADE"), nullable=False),
        sa.Column("locale", sa.Text, nullable=False),
        sa.Column("value", sa.JSON, nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("field_id", "locale", name="uq_content_field_locale"),
    )
    _create_table(
        existing,
        "content_history",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("content_id", sa.String(36), sa.ForeignKey("content.id", ondelete="CASCADE"), nullable=False),
        sa.Column("value", sa.JSON, nullable=True),
        sa.Column("changed_by", sa.Text, nullable=True),
        sa.Column("changed_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("content_history")
    op.drop_table("content")
    op.drop_table("field")
    op.drop_table("section")
    op.drop_table("page")
