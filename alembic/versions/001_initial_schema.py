"""Initial schema: users, sessions, labels, library items, highlights, integrations.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Tables whose rows are only visible to the user bound by auth_session().
_USER_SCOPED_TABLES = ("labels", "library_items", "highlights", "integrations")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _user_fk() -> sa.Column:
    return sa.Column(
        "user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )


def upgrade() -> None:
    # ── 1. Users ──────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("name", sa.Text, nullable=False, server_default=""),
        sa.Column("username", sa.String(255), unique=True, nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="ACTIVE"),
        *_timestamps(),
    )

    # ── 2. Sessions ───────────────────────────────────────────────
    op.create_table(
        "sessions",
        sa.Column("token", sa.String(64), primary_key=True),
        _user_fk(),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_active_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("user_agent", sa.Text, nullable=True),
    )
    op.create_index("ix_sessions_user_id", "sessions", ["user_id"])

    # ── 3. Labels ─────────────────────────────────────────────────
    op.create_table(
        "labels",
        sa.Column("id", sa.String(36), primary_key=True),
        _user_fk(),
        sa.Column("name", sa.String(64), nullable=False),
        sa.Column("color", sa.String(7), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("position", sa.Integer, nullable=False, server_default="1"),
        sa.Column("internal", sa.Boolean, nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.CheckConstraint("position > 0", name="ck_labels_position_positive"),
    )
    op.create_index("idx_labels_user_position", "labels", ["user_id", "position"])
    op.create_index(
        "uq_labels_user_lower_name",
        "labels",
        ["user_id", sa.text("lower(name)")],
        unique=True,
    )

    # ── 4. Library Items ──────────────────────────────────────────
    op.create_table(
        "library_items",
        sa.Column("id", sa.String(36), primary_key=True),
        _user_fk(),
        sa.Column("original_url", sa.Text, nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("title", sa.Text, nullable=False, server_default=""),
        sa.Column("author", sa.Text, nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("site_name", sa.Text, nullable=True),
        sa.Column("original_content", sa.Text, nullable=True),
        sa.Column("readable_content", sa.Text, nullable=False, server_default=""),
        sa.Column("word_count", sa.Integer, nullable=True),
        sa.Column("state", sa.String(20), nullable=False, server_default="SUCCEEDED"),
        sa.Column("source", sa.String(50), nullable=False, server_default="api"),
        sa.Column("client_request_id", sa.String(255), nullable=True),
        sa.Column("saved_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "uq_library_items_user_url", "library_items", ["user_id", "original_url"], unique=True
    )
    op.create_index("idx_library_items_user_saved", "library_items", ["user_id", "saved_at"])

    # ── 5. Highlights ─────────────────────────────────────────────
    op.create_table(
        "highlights",
        sa.Column("id", sa.String(36), primary_key=True),
        _user_fk(),
        sa.Column(
            "library_item_id",
            sa.String(36),
            sa.ForeignKey("library_items.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("short_id", sa.String(14), nullable=False),
        sa.Column("quote", sa.Text, nullable=True),
        sa.Column("prefix", sa.Text, nullable=True),
        sa.Column("suffix", sa.Text, nullable=True),
        sa.Column("patch", sa.Text, nullable=True),
        sa.Column("annotation", sa.Text, nullable=True),
        sa.Column("color", sa.String(20), nullable=True),
        sa.Column("highlight_position_percent", sa.Float, nullable=True),
        *_timestamps(),
    )
    op.create_index("idx_highlights_item", "highlights", ["library_item_id"])
    op.create_index("idx_highlights_user", "highlights", ["user_id"])

    # ── 6. Entity Labels ──────────────────────────────────────────
    op.create_table(
        "entity_labels",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "label_id", sa.String(36), sa.ForeignKey("labels.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column(
            "library_item_id",
            sa.String(36),
            sa.ForeignKey("library_items.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column(
            "highlight_id",
            sa.String(36),
            sa.ForeignKey("highlights.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("source", sa.String(20), nullable=False, server_default="user"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint(
            "(library_item_id IS NULL) <> (highlight_id IS NULL)",
            name="ck_entity_labels_single_target",
        ),
    )
    op.create_index(
        "uq_entity_labels_item", "entity_labels", ["library_item_id", "label_id"], unique=True
    )
    op.create_index(
        "uq_entity_labels_highlight", "entity_labels", ["highlight_id", "label_id"], unique=True
    )
    op.create_index("idx_entity_labels_label", "entity_labels", ["label_id"])

    # ── 7. Integrations ───────────────────────────────────────────
    op.create_table(
        "integrations",
        sa.Column("id", sa.String(36), primary_key=True),
        _user_fk(),
        sa.Column("name", sa.String(40), nullable=False),
        sa.Column("type", sa.String(10), nullable=False, server_default="EXPORT"),
        sa.Column("token", sa.Text, nullable=False),
        sa.Column("enabled", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("synced_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("settings", JSONB, nullable=False, server_default="{}"),
        sa.Column("import_item_state", sa.String(20), nullable=True),
        *_timestamps(),
    )
    op.create_index("uq_integrations_user_name", "integrations", ["user_id", "name"], unique=True)

    # ── 8. Row-level security ─────────────────────────────────────
    for table in _USER_SCOPED_TABLES:
        op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY")
        op.execute(
            f"""
            CREATE POLICY {table}_owner ON {table}
                USING (user_id = current_setting('pagekeeper.user_id', true))
                WITH CHECK (user_id = current_setting('pagekeeper.user_id', true))
            """
        )


def downgrade() -> None:
    for table in _USER_SCOPED_TABLES:
        op.execute(f"DROP POLICY IF EXISTS {table}_owner ON {table}")
    op.drop_table("integrations")
    op.drop_table("entity_labels")
    op.drop_table("highlights")
    op.drop_table("library_items")
    op.drop_table("labels")
    op.drop_table("sessions")
    op.drop_table("users")
