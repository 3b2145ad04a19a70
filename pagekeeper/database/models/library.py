"""Library item and highlight models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..base import Base, TimestampMixin, UUIDPrimaryKeyMixin, utcnow
from .label import EntityLabelModel, LabelModel


class LibraryItemModel(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "library_items"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    original_url: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    author: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    site_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    original_content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    readable_content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    word_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    state: Mapped[str] = mapped_column(String(20), nullable=False, default="SUCCEEDED")
    source: Mapped[str] = mapped_column(String(50), nullable=False, default="api")
    client_request_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    saved_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    archived_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    labels: Mapped[list[LabelModel]] = relationship(
        LabelModel,
        secondary=EntityLabelModel.__table__,
        primaryjoin=lambda: LibraryItemModel.id == EntityLabelModel.library_item_id,
        secondaryjoin=lambda: LabelModel.id == EntityLabelModel.label_id,
        order_by=lambda: EntityLabelModel.id,
        viewonly=True,
    )
    highlights: Mapped[list[HighlightModel]] = relationship(
        back_populates="library_item",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="HighlightModel.created_at",
    )

    __table_args__ = (
        Index("uq_library_items_user_url", "user_id", "original_url", unique=True),
        Index("idx_library_items_user_saved", "user_id", "saved_at"),
    )


class HighlightModel(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "highlights"

    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    library_item_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("library_items.id", ondelete="CASCADE"), nullable=False
    )
    short_id: Mapped[str] = mapped_column(String(14), nullable=False)
    quote: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    prefix: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    suffix: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    patch: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    annotation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    color: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    highlight_position_percent: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    library_item: Mapped[LibraryItemModel] = relationship(back_populates="highlights")
    labels: Mapped[list[LabelModel]] = relationship(
        LabelModel,
        secondary=EntityLabelModel.__table__,
        primaryjoin=lambda: HighlightModel.id == EntityLabelModel.highlight_id,
        secondaryjoin=lambda: LabelModel.id == EntityLabelModel.label_id,
        order_by=lambda: EntityLabelModel.id,
        viewonly=True,
    )

    __table_args__ = (
        Index("idx_highlights_item", "library_item_id"),
        Index("idx_highlights_user", "user_id"),
    )
