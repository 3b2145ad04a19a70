"""PostgreSQL-backed library item service."""

from __future__ import annotations

import re
import unicodedata
import uuid
from typing import Any, List, Optional, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from .. import logging_manager as log_mgr
from ..database.base import utcnow
from ..database.engine import auth_session
from ..database.models import EntityLabelModel, LabelModel, LibraryItemModel
from .errors import BadRequestError, NotFoundError
from .records import LibraryItemEntry, library_item_entry

logger = log_mgr.get_logger().getChild("services.library_items")

LIBRARY_ITEM_STATES = {"SUCCEEDED", "PROCESSING", "FAILED", "ARCHIVED", "DELETED"}
MAX_SLUG_LENGTH = 64

_UPDATABLE_FIELDS = {
    "title",
    "author",
    "description",
    "site_name",
    "original_content",
    "readable_content",
    "word_count",
    "state",
    "source",
    "client_request_id",
    "slug",
}


def generate_slug(title: str) -> str:
    """Return a URL-safe slug for ``title`` with a random suffix."""

    normalized = unicodedata.normalize("NFKD", title or "")
    ascii_title = normalized.encode("ascii", "ignore").decode("ascii").lower()
    base = re.sub(r"[^a-z0-9]+", "-", ascii_title).strip("-")[:MAX_SLUG_LENGTH].rstrip("-")
    suffix = uuid.uuid4().hex[:10]
    return f"{base}-{suffix}" if base else suffix


class LibraryItemService:
    """Manage a user's saved pages."""

    def create_library_item(
        self,
        user_id: str,
        *,
        original_url: str,
        title: str = "",
        slug: Optional[str] = None,
        original_content: Optional[str] = None,
        readable_content: str = "",
        author: Optional[str] = None,
        description: Optional[str] = None,
        site_name: Optional[str] = None,
        word_count: Optional[int] = None,
        state: str = "SUCCEEDED",
        source: str = "api",
        client_request_id: Optional[str] = None,
        label_ids: Optional[Sequence[str]] = None,
    ) -> LibraryItemEntry:
        if not original_url:
            raise BadRequestError("original_url is required")
        state = self._coerce_state(state)

        with auth_session(user_id) as session:
            model = LibraryItemModel(
                user_id=user_id,
                original_url=original_url,
                slug=slug or generate_slug(title),
                title=title or original_url,
                original_content=original_content,
                readable_content=readable_content or "",
                author=author,
                description=description,
                site_name=site_name,
                word_count=word_count,
                state=state,
                source=source,
                client_request_id=client_request_id,
                saved_at=utcnow(),
                archived_at=utcnow() if state == "ARCHIVED" else None,
            )
            session.add(model)
            session.flush()
            if label_ids:
                self._attach_labels(session, model.id, label_ids, user_id)
            entry = library_item_entry(model)

        logger.info(
            "Library item created",
            extra={"event": "library_items.create", "user_id": user_id, "library_item_id": entry.id},
        )
        return entry

    def find_library_item(self, library_item_id: str, user_id: str) -> Optional[LibraryItemEntry]:
        with auth_session(user_id) as session:
            model = self._find_model(session, library_item_id, user_id)
            if model is None:
                return None
            return library_item_entry(model, with_highlights=True)

    def get_library_item(self, library_item_id: str, user_id: str) -> LibraryItemEntry:
        entry = self.find_library_item(library_item_id, user_id)
        if entry is None:
            raise NotFoundError("library item", library_item_id)
        return entry

    def find_library_item_by_url(self, original_url: str, user_id: str) -> Optional[LibraryItemEntry]:
        with auth_session(user_id) as session:
            model = session.execute(
                select(LibraryItemModel).where(
                    LibraryItemModel.user_id == user_id,
                    LibraryItemModel.original_url == original_url,
                )
            ).scalar_one_or_none()
            return library_item_entry(model) if model is not None else None

    def search_library_items(
        self,
        user_id: str,
        *,
        label_names: Optional[Sequence[str]] = None,
        state: Optional[str] = None,
        limit: Optional[int] = None,
        with_highlights: bool = False,
    ) -> List[LibraryItemEntry]:
        """Return the user's items, newest first, optionally filtered."""

        query = select(LibraryItemModel).where(LibraryItemModel.user_id == user_id)
        if state:
            query = query.where(LibraryItemModel.state == self._coerce_state(state))
        else:
            query = query.where(LibraryItemModel.state != "DELETED")
        if label_names:
            lowered = [name.strip().lower() for name in label_names if name and name.strip()]
            labelled = (
                select(EntityLabelModel.library_item_id)
                .join(LabelModel, LabelModel.id == EntityLabelModel.label_id)
                .where(
                    LabelModel.user_id == user_id,
                    func.lower(LabelModel.name).in_(lowered),
                )
            )
            query = query.where(LibraryItemModel.id.in_(labelled))
        query = query.order_by(LibraryItemModel.saved_at.desc())
        if limit:
            query = query.limit(limit)

        with auth_session(user_id) as session:
            models = session.execute(query).scalars().all()
            return [
                library_item_entry(model, with_highlights=with_highlights) for model in models
            ]

    def update_library_item(self, library_item_id: str, user_id: str, **fields: Any) -> LibraryItemEntry:
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise BadRequestError(f"Unsupported library item fields: {', '.join(sorted(unknown))}")

        with auth_session(user_id) as session:
            model = self._find_model(session, library_item_id, user_id)
            if model is None:
                raise NotFoundError("library item", library_item_id)
            for key, value in fields.items():
                if key == "state":
                    value = self._coerce_state(value)
                    model.archived_at = utcnow() if value == "ARCHIVED" else None
                setattr(model, key, value)
            session.flush()
            return library_item_entry(model)

    def delete_library_item(self, library_item_id: str, user_id: str) -> bool:
        with auth_session(user_id) as session:
            result = session.execute(
                delete(LibraryItemModel).where(
                    LibraryItemModel.id == library_item_id,
                    LibraryItemModel.user_id == user_id,
                )
            )
            deleted = result.rowcount > 0

        if deleted:
            logger.info(
                "Library item deleted",
                extra={
                    "event": "library_items.delete",
                    "user_id": user_id,
                    "library_item_id": library_item_id,
                },
            )
        return deleted

    @staticmethod
    def _find_model(session: Session, library_item_id: str, user_id: str) -> Optional[LibraryItemModel]:
        return session.execute(
            select(LibraryItemModel).where(
                LibraryItemModel.id == library_item_id,
                LibraryItemModel.user_id == user_id,
            )
        ).scalar_one_or_none()

    @staticmethod
    def _attach_labels(
        session: Session, library_item_id: str, label_ids: Sequence[str], user_id: str
    ) -> None:
        ordered: List[str] = []
        for label_id in label_ids:
            if label_id not in ordered:
                ordered.append(label_id)
        found = set(
            session.execute(
                select(LabelModel.id).where(
                    LabelModel.id.in_(ordered),
                    LabelModel.user_id == user_id,
                )
            ).scalars()
        )
        missing = [label_id for label_id in ordered if label_id not in found]
        if missing:
            raise NotFoundError("label", ", ".join(missing))
        for label_id in ordered:
            session.add(EntityLabelModel(label_id=label_id, library_item_id=library_item_id))
        session.flush()

    @staticmethod
    def _coerce_state(value: Any) -> str:
        candidate = str(value or "").strip().upper()
        if candidate not in LIBRARY_ITEM_STATES:
            raise BadRequestError(f"Invalid library item state: {value}")
        return candidate


__all__ = ["LibraryItemService", "LIBRARY_ITEM_STATES", "generate_slug"]
