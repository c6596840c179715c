import sqlalchemy as sa

metadata = sa.MetaData()

page_table = sa.Table(
    "page",
    metadata,
    sa.Column("id", sa.String(36), primary_key=True),
    sa.Column("slug", sa.Text, nullable=False, unique=True),
    sa.Column("name", sa.Text, nullable=False),
    sa.Column("source_files", sa.JSON, nullable=False),
    sa.Column("field_count", sa.Integer, nullable=False, default=0),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
)

section_table = sa.Table(
    "section",
    metadata,
    sa.Column("id", sa.String(36), primary_key=True),
    sa.Column("page_id", sa.String(36), sa.ForeignKey("page.id", ondelete="CASCADE"), nullable=False),
    sa.Column("slug", sa.Text, nullable=False),
    sa.Column("name", sa.Text, nullable=False),
    sa.Column("is_repeater", sa.Boolean, nullable=False, default=False),
    sa.Column("repeater_config", sa.JSON, nullable=True),
    sa.Column("sort_order", sa.Integer, nullable=False, default=0),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    sa.UniqueConstraint("page_id", "slug", name="uq_section_page_slug"),
)

field_table = sa.Table(
    "field",
    metadata,
    sa.Column("id", sa.String(36), primary_key=True),
    sa.Column("section_id", sa.String(36), sa.ForeignKey("section.id", ondelete="CASCADE"), nullable=False),
    sa.Column("path", sa.Text, nullable=False, unique=True),
    sa.Column("type", sa.Text, nullable=False),
    sa.Column("label", sa.Text, nullable=False),
    sa.Column("placeholder", sa.Text, nullable=True),
    sa.Column("required", sa.Boolean, nullable=False, default=False),
    sa.Column("validation", sa.Text, nullable=True),
    sa.Column("options", sa.JSON, nullable=True),
    sa.Column("condition", sa.Text, nullable=True),
    sa.Column("config", sa.JSON, nullable=False),
    sa.Column("default_value", sa.Text, nullable=True),
    sa.Column("help", sa.Text, nullable=True),
    sa.Column("element_tag", sa.Text, nullable=True),
    sa.Column("source_files", sa.JSON, nullable=False),
    sa.Column("source_line", sa.Integer, nullable=False, default=0),
    sa.Column("source_column", sa.Integer, nullable=False, default=0),
    sa.Column("sort_order", sa.Integer, nullable=False, default=0),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
)

content_table = sa.Table(
    "content",
    metadata,
    sa.Column("id", sa.String(36), primary_key=True),
    sa.Column("field_id", sa.String(36), sa.ForeignKey("field.id", ondelete="CASCADE"), nullable=False),
    sa.Column("locale", sa.Text, nullable=False),
    sa.Column("value", sa.JSON, nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    sa.UniqueConstraint("field_id", "locale", name="uq_content_field_locale"),
)

content_history_table = sa.Table(
    "content_history",
    metadata,
    sa.Column("id", sa.String(36), primary_key=True),
    sa.Column("content_id", sa.String(36), sa.ForeignKey("content.id", ondelete="CASCADE"), nullable=False),
    sa.Column("value", sa.JSON, nullable=True),
    sa.Column("changed_by", sa.Text, nullable=True),
    sa.Column("changed_at", sa.DateTime(timezone=True), nullable=False),
)
