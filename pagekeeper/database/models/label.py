"""Label model and its association rows."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from ..base import Base, TimestampMixin, UUIDPrimaryKeyMixin, utcnow


class LabelModel(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "labels"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    color: Mapped[str] = mapped_column(String(7), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # Contiguous 1..n per user; maintained by the label service.
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    internal: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("idx_labels_user_position", "user_id", "position"),
        CheckConstraint("position > 0", name="ck_labels_position_positive"),
    )


Index(
    "uq_labels_user_lower_name",
    LabelModel.user_id,
    func.lower(LabelModel.name),
    unique=True,
)


class EntityLabelModel(Base):
    """Association between a label and either a library item or a highlight."""

    __tablename__ = "entity_labels"

    # Autoincrement id doubles as the insertion order of an entity's labels.
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    label_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("labels.id", ondelete="CASCADE"), nullable=False
    )
    library_item_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("library_items.id", ondelete="CASCADE"), nullable=True
    )
    highlight_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("highlights.id", ondelete="CASCADE"), nullable=True
    )
    source: Mapped[str] = mapped_column(String(20), nullable=False, default="user")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        Index("uq_entity_labels_item", "library_item_id", "label_id", unique=True),
        Index("uq_entity_labels_highlight", "highlight_id", "label_id", unique=True),
        Index("idx_entity_labels_label", "label_id"),
        CheckConstraint(
            "(library_item_id IS NULL) <> (highlight_id IS NULL)",
            name="ck_entity_labels_single_target",
        ),
    )
