"""Highlight persistence."""

from __future__ import annotations

import secrets
import string
from typing import Any, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from .. import logging_manager as log_mgr
from ..database.engine import auth_session
from ..database.models import HighlightModel, LibraryItemModel
from .errors import BadRequestError, NotFoundError
from .label_service import LabelService
from .records import HighlightEntry, highlight_entry

logger = log_mgr.get_logger().getChild("services.highlights")

_SHORT_ID_ALPHABET = string.ascii_letters + string.digits
_UPDATABLE_FIELDS = {
    "quote",
    "prefix",
    "suffix",
    "patch",
    "annotation",
    "color",
    "highlight_position_percent",
}


def generate_short_id(length: int = 8) -> str:
    return "".join(secrets.choice(_SHORT_ID_ALPHABET) for _ in range(length))


class HighlightService:
    """Manage highlights anchored in a user's library items."""

    def __init__(self, *, label_service: Optional[LabelService] = None) -> None:
        self._label_service = label_service or LabelService()

    def create_highlight(
        self,
        library_item_id: str,
        user_id: str,
        *,
        highlight_id: Optional[str] = None,
        short_id: Optional[str] = None,
        quote: Optional[str] = None,
        prefix: Optional[str] = None,
        suffix: Optional[str] = None,
        patch: Optional[str] = None,
        annotation: Optional[str] = None,
        color: Optional[str] = None,
        highlight_position_percent: Optional[float] = None,
        label_ids: Optional[Sequence[str]] = None,
    ) -> HighlightEntry:
        with auth_session(user_id) as session:
            item = session.execute(
                select(LibraryItemModel).where(
                    LibraryItemModel.id == library_item_id,
                    LibraryItemModel.user_id == user_id,
                )
            ).scalar_one_or_none()
            if item is None:
                raise NotFoundError("library item", library_item_id)

            model = HighlightModel(
                user_id=user_id,
                library_item_id=library_item_id,
                short_id=short_id or generate_short_id(),
                quote=quote,
                prefix=prefix,
                suffix=suffix,
                patch=patch,
                annotation=annotation,
                color=color,
                highlight_position_percent=highlight_position_percent,
            )
            if highlight_id:
                model.id = highlight_id
            session.add(model)
            session.flush()

            if label_ids:
                labels = self._label_service._require_labels(session, label_ids, user_id)
                self._label_service._attach_to_highlight(session, model.id, labels, replace=False)
                session.expire(model, ["labels"])
            entry = highlight_entry(model)

        logger.info(
            "Highlight created",
            extra={
                "event": "highlights.create",
                "user_id": user_id,
                "highlight_id": entry.id,
                "library_item_id": library_item_id,
            },
        )
        return entry

    def find_highlight(self, highlight_id: str, user_id: str) -> Optional[HighlightEntry]:
        with auth_session(user_id) as session:
            model = self._find_model(session, highlight_id, user_id)
            return highlight_entry(model) if model is not None else None

    def list_highlights(self, library_item_id: str, user_id: str) -> List[HighlightEntry]:
        with auth_session(user_id) as session:
            models = (
                session.execute(
                    select(HighlightModel)
                    .where(
                        HighlightModel.library_item_id == library_item_id,
                        HighlightModel.user_id == user_id,
                    )
                    .order_by(HighlightModel.created_at.asc())
                )
                .scalars()
                .all()
            )
            return [highlight_entry(model) for model in models]

    def update_highlight(self, highlight_id: str, user_id: str, **fields: Any) -> HighlightEntry:
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise BadRequestError(f"Unsupported highlight fields: {', '.join(sorted(unknown))}")

        with auth_session(user_id) as session:
            model = self._find_model(session, highlight_id, user_id)
            if model is None:
                raise NotFoundError("highlight", highlight_id)
            for key, value in fields.items():
                setattr(model, key, value)
            session.flush()
            return highlight_entry(model)

    def delete_highlight(self, highlight_id: str, user_id: str) -> HighlightEntry:
        with auth_session(user_id) as session:
            model = self._find_model(session, highlight_id, user_id)
            if model is None:
                raise NotFoundError("highlight", highlight_id)
            entry = highlight_entry(model)
            session.delete(model)

        logger.info(
            "Highlight deleted",
            extra={"event": "highlights.delete", "user_id": user_id, "highlight_id": highlight_id},
        )
        return entry

    @staticmethod
    def _find_model(session: Session, highlight_id: str, user_id: str) -> Optional[HighlightModel]:
        return session.execute(
            select(HighlightModel).where(
                HighlightModel.id == highlight_id,
                HighlightModel.user_id == user_id,
            )
        ).scalar_one_or_none()


__all__ = ["HighlightService", "generate_short_id"]
