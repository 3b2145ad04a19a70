"""Label persistence, ordering and label-to-entity associations."""

from __future__ import annotations

import random
import re
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import logging_manager as log_mgr
from ..database.engine import auth_session, lock_user
from ..database.models import EntityLabelModel, HighlightModel, LabelModel, LibraryItemModel
from .errors import BadRequestError, LabelAlreadyExistsError, NotFoundError
from .records import LabelEntry, label_entry

logger = log_mgr.get_logger().getChild("services.labels")

MAX_LABEL_NAME_LENGTH = 64
_COLOR_PATTERN = re.compile(r"^#(?:[0-9a-fA-F]{3}){1,2}$")


def generate_random_color() -> str:
    return "#{:06x}".format(random.randint(0, 0xFFFFFF))


def normalize_label_name(name: Optional[str]) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise BadRequestError("Label name must not be empty")
    if len(cleaned) > MAX_LABEL_NAME_LENGTH:
        raise BadRequestError(
            f"Label name must be at most {MAX_LABEL_NAME_LENGTH} characters"
        )
    return cleaned


def normalize_label_color(color: Optional[str]) -> Optional[str]:
    if color is None:
        return None
    cleaned = color.strip()
    if not cleaned:
        return None
    if not _COLOR_PATTERN.match(cleaned):
        raise BadRequestError(f"Invalid label color: {color}")
    return cleaned.lower()


def normalize_label_names(names: Optional[Iterable[Optional[str]]]) -> List[str]:
    """Validate label names, dropping blanks and exact duplicates."""

    return _dedupe(normalize_label_name(name) for name in names or () if (name or "").strip())


def _dedupe(values: Iterable[str]) -> List[str]:
    seen: set[str] = set()
    ordered: List[str] = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        ordered.append(value)
    return ordered


class LabelService:
    """Manage a user's labels and the labels attached to items and highlights."""

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def list_labels(self, user_id: str) -> List[LabelEntry]:
        with auth_session(user_id) as session:
            models = (
                session.execute(
                    select(LabelModel)
                    .where(LabelModel.user_id == user_id)
                    .order_by(LabelModel.position.asc(), LabelModel.created_at.asc())
                )
                .scalars()
                .all()
            )
            return [label_entry(model) for model in models]

    def find_label(self, label_id: str, user_id: str) -> Optional[LabelEntry]:
        with auth_session(user_id) as session:
            model = self._find_label_model(session, label_id, user_id)
            return label_entry(model) if model is not None else None

    def find_labels_by_ids(self, label_ids: Sequence[str], user_id: str) -> List[LabelEntry]:
        with auth_session(user_id) as session:
            models = self._find_label_models(session, label_ids, user_id)
            return [label_entry(model) for model in models]

    def labels_for_library_item(self, library_item_id: str, user_id: str) -> List[LabelEntry]:
        with auth_session(user_id) as session:
            item = self._require_library_item(session, library_item_id, user_id)
            return [label_entry(model) for model in item.labels]

    def labels_for_highlight(self, highlight_id: str, user_id: str) -> List[LabelEntry]:
        with auth_session(user_id) as session:
            highlight = self._require_highlight(session, highlight_id, user_id)
            return [label_entry(model) for model in highlight.labels]

    # ------------------------------------------------------------------
    # Label CRUD
    # ------------------------------------------------------------------
    def create_label(
        self,
        user_id: str,
        name: str,
        color: Optional[str] = None,
        description: Optional[str] = None,
        *,
        internal: bool = False,
    ) -> LabelEntry:
        normalized_name = normalize_label_name(name)
        normalized_color = normalize_label_color(color) or generate_random_color()

        with auth_session(user_id) as session:
            model = self._insert_label(
                session,
                user_id,
                normalized_name,
                normalized_color,
                description,
                internal=internal,
            )
            entry = label_entry(model)

        logger.info(
            "Label created",
            extra={"event": "labels.create", "user_id": user_id, "label_id": entry.id},
        )
        return entry

    def find_or_create_labels(self, user_id: str, names: Iterable[str]) -> List[LabelEntry]:
        """Return labels matching ``names`` (case-insensitive), creating missing ones."""

        cleaned = normalize_label_names(names)
        if not cleaned:
            return []

        with auth_session(user_id) as session:
            models = self._find_or_create_label_models(session, user_id, cleaned)
            return [label_entry(model) for model in models]

    def update_label(
        self,
        label_id: str,
        user_id: str,
        *,
        name: Optional[str] = None,
        color: Optional[str] = None,
        description: Optional[str] = None,
    ) -> LabelEntry:
        with auth_session(user_id) as session:
            model = self._require_label(session, label_id, user_id)
            if name is not None:
                normalized_name = normalize_label_name(name)
                existing = self._find_label_by_name(session, normalized_name, user_id)
                if existing is not None and existing.id != model.id:
                    raise LabelAlreadyExistsError(normalized_name)
                model.name = normalized_name
            normalized_color = normalize_label_color(color)
            if normalized_color is not None:
                model.color = normalized_color
            if description is not None:
                model.description = description
            try:
                session.flush()
            except IntegrityError as exc:
                raise LabelAlreadyExistsError(model.name) from exc
            entry = label_entry(model)

        logger.info(
            "Label updated",
            extra={"event": "labels.update", "user_id": user_id, "label_id": label_id},
        )
        return entry

    def delete_label(self, label_id: str, user_id: str) -> LabelEntry:
        """Delete a label, detaching it from items and highlights."""

        with auth_session(user_id) as session:
            lock_user(session, user_id)
            model = self._require_label(session, label_id, user_id)
            entry = label_entry(model)
            self._delete_label_models(session, [model], user_id)

        logger.info(
            "Label deleted",
            extra={"event": "labels.delete", "user_id": user_id, "label_id": label_id},
        )
        return entry

    def delete_labels(
        self,
        user_id: str,
        *,
        label_ids: Optional[Sequence[str]] = None,
        name: Optional[str] = None,
    ) -> int:
        """Delete labels by id or by name; returns the number removed."""

        if label_ids is None and name is None:
            raise BadRequestError("Either label ids or a label name is required")

        with auth_session(user_id) as session:
            lock_user(session, user_id)
            models: List[LabelModel] = []
            if label_ids is not None:
                models.extend(self._find_label_models(session, label_ids, user_id))
            if name is not None:
                model = self._find_label_by_name(session, name.strip(), user_id)
                if model is not None and model not in models:
                    models.append(model)
            self._delete_label_models(session, models, user_id)
            return len(models)

    def move_label(
        self,
        label_id: str,
        user_id: str,
        after_label_id: Optional[str] = None,
    ) -> LabelEntry:
        """Place a label directly after ``after_label_id`` or at the top.

        Positions stay contiguous: the labels between the old and the new
        slot shift by one towards the vacated position.
        """

        with auth_session(user_id) as session:
            lock_user(session, user_id)
            model = self._require_label(session, label_id, user_id)
            if after_label_id == label_id:
                return label_entry(model)

            old_position = model.position
            if after_label_id:
                after = self._require_label(session, after_label_id, user_id)
                if after.position > old_position:
                    new_position = after.position
                else:
                    new_position = after.position + 1
            else:
                new_position = 1

            if new_position == old_position:
                return label_entry(model)

            if new_position > old_position:
                window = and_(
                    LabelModel.position > old_position,
                    LabelModel.position <= new_position,
                )
                shift = -1
            else:
                window = and_(
                    LabelModel.position >= new_position,
                    LabelModel.position < old_position,
                )
                shift = 1

            session.execute(
                update(LabelModel)
                .where(
                    LabelModel.user_id == user_id,
                    LabelModel.id != label_id,
                    window,
                )
                .values(position=LabelModel.position + shift)
                .execution_options(synchronize_session=False)
            )
            model.position = new_position
            session.flush()
            entry = label_entry(model)

        logger.info(
            "Label moved",
            extra={
                "event": "labels.move",
                "user_id": user_id,
                "label_id": label_id,
                "from_position": old_position,
                "to_position": new_position,
            },
        )
        return entry

    # ------------------------------------------------------------------
    # Associations
    # ------------------------------------------------------------------
    def set_labels_for_library_item(
        self,
        library_item_id: str,
        user_id: str,
        label_ids: Sequence[str],
        *,
        source: str = "user",
    ) -> List[LabelEntry]:
        """Replace the labels of a library item, keeping the given order."""

        with auth_session(user_id) as session:
            self._require_library_item(session, library_item_id, user_id)
            labels = self._require_labels(session, label_ids, user_id)
            session.execute(
                delete(EntityLabelModel).where(
                    EntityLabelModel.library_item_id == library_item_id
                )
            )
            for label in labels:
                session.add(
                    EntityLabelModel(
                        label_id=label.id,
                        library_item_id=library_item_id,
                        source=source,
                    )
                )
            session.flush()
            entries = [label_entry(label) for label in labels]

        logger.info(
            "Library item labels set",
            extra={
                "event": "labels.set_for_item",
                "user_id": user_id,
                "library_item_id": library_item_id,
                "label_count": len(entries),
            },
        )
        return entries

    def add_labels_to_library_item(
        self,
        library_item_id: str,
        user_id: str,
        label_ids: Sequence[str],
        *,
        source: str = "user",
    ) -> List[LabelEntry]:
        """Attach labels to a library item without removing existing ones."""

        with auth_session(user_id) as session:
            item = self._require_library_item(session, library_item_id, user_id)
            labels = self._require_labels(session, label_ids, user_id)
            self._add_to_library_item(session, item, labels, source=source)
            return [label_entry(label) for label in item.labels]

    def set_labels_for_highlight(
        self,
        highlight_id: str,
        user_id: str,
        label_ids: Sequence[str],
    ) -> List[LabelEntry]:
        """Replace the labels of a highlight, keeping the given order."""

        with auth_session(user_id) as session:
            self._require_highlight(session, highlight_id, user_id)
            labels = self._require_labels(session, label_ids, user_id)
            self._attach_to_highlight(session, highlight_id, labels, replace=True)
            entries = [label_entry(label) for label in labels]

        logger.info(
            "Highlight labels set",
            extra={
                "event": "labels.set_for_highlight",
                "user_id": user_id,
                "highlight_id": highlight_id,
                "label_count": len(entries),
            },
        )
        return entries

    # ------------------------------------------------------------------
    # Session-level helpers shared with other services
    # ------------------------------------------------------------------
    def _find_or_create_label_models(
        self, session: Session, user_id: str, names: Sequence[str]
    ) -> List[LabelModel]:
        """Resolve already normalized ``names`` inside the caller's transaction."""

        lock_user(session, user_id)
        models: List[LabelModel] = []
        for name in names:
            model = self._find_label_by_name(session, name, user_id)
            if model is None:
                model = self._insert_label(session, user_id, name, generate_random_color(), None)
            if model not in models:
                models.append(model)
        return models

    @staticmethod
    def _add_to_library_item(
        session: Session,
        item: LibraryItemModel,
        labels: Sequence[LabelModel],
        *,
        source: str,
    ) -> None:
        attached = {label.id for label in item.labels}
        for label in labels:
            if label.id in attached:
                continue
            session.add(
                EntityLabelModel(label_id=label.id, library_item_id=item.id, source=source)
            )
        session.flush()
        session.expire(item, ["labels"])

    @staticmethod
    def _attach_to_highlight(
        session: Session,
        highlight_id: str,
        labels: Sequence[LabelModel],
        *,
        replace: bool,
    ) -> None:
        if replace:
            session.execute(
                delete(EntityLabelModel).where(EntityLabelModel.highlight_id == highlight_id)
            )
        for label in labels:
            session.add(
                EntityLabelModel(label_id=label.id, highlight_id=highlight_id, source="user")
            )
        session.flush()

    @staticmethod
    def _find_label_model(session: Session, label_id: str, user_id: str) -> Optional[LabelModel]:
        return session.execute(
            select(LabelModel).where(
                LabelModel.id == label_id,
                LabelModel.user_id == user_id,
            )
        ).scalar_one_or_none()

    def _require_label(self, session: Session, label_id: str, user_id: str) -> LabelModel:
        model = self._find_label_model(session, label_id, user_id)
        if model is None:
            raise NotFoundError("label", label_id)
        return model

    @staticmethod
    def _find_label_models(
        session: Session, label_ids: Sequence[str], user_id: str
    ) -> List[LabelModel]:
        ordered_ids = _dedupe(label_ids)
        if not ordered_ids:
            return []
        models = (
            session.execute(
                select(LabelModel).where(
                    LabelModel.id.in_(ordered_ids),
                    LabelModel.user_id == user_id,
                )
            )
            .scalars()
            .all()
        )
        by_id = {model.id: model for model in models}
        return [by_id[label_id] for label_id in ordered_ids if label_id in by_id]

    def _require_labels(
        self, session: Session, label_ids: Sequence[str], user_id: str
    ) -> List[LabelModel]:
        ordered_ids = _dedupe(label_ids)
        models = self._find_label_models(session, ordered_ids, user_id)
        if len(models) != len(ordered_ids):
            found = {model.id for model in models}
            missing = [label_id for label_id in ordered_ids if label_id not in found]
            raise NotFoundError("label", ", ".join(missing))
        return models

    @staticmethod
    def _find_label_by_name(session: Session, name: str, user_id: str) -> Optional[LabelModel]:
        return session.execute(
            select(LabelModel).where(
                LabelModel.user_id == user_id,
                func.lower(LabelModel.name) == func.lower(name),
            )
        ).scalar_one_or_none()

    def _insert_label(
        self,
        session: Session,
        user_id: str,
        name: str,
        color: str,
        description: Optional[str],
        *,
        internal: bool = False,
    ) -> LabelModel:
        lock_user(session, user_id)
        if self._find_label_by_name(session, name, user_id) is not None:
            raise LabelAlreadyExistsError(name)

        max_position = session.execute(
            select(func.coalesce(func.max(LabelModel.position), 0)).where(
                LabelModel.user_id == user_id
            )
        ).scalar_one()
        model = LabelModel(
            user_id=user_id,
            name=name,
            color=color,
            description=description,
            position=max_position + 1,
            internal=internal,
        )
        session.add(model)
        try:
            session.flush()
        except IntegrityError as exc:
            raise LabelAlreadyExistsError(name) from exc
        return model

    @staticmethod
    def _delete_label_models(session: Session, models: Sequence[LabelModel], user_id: str) -> None:
        # Highest positions first so each compaction only touches labels that
        # are still present.
        for model in sorted(models, key=lambda label: label.position, reverse=True):
            position = model.position
            session.execute(
                delete(EntityLabelModel).where(EntityLabelModel.label_id == model.id)
            )
            session.delete(model)
            session.flush()
            session.execute(
                update(LabelModel)
                .where(LabelModel.user_id == user_id, LabelModel.position > position)
                .values(position=LabelModel.position - 1)
                .execution_options(synchronize_session=False)
            )

    @staticmethod
    def _require_library_item(
        session: Session, library_item_id: str, user_id: str
    ) -> LibraryItemModel:
        item = session.execute(
            select(LibraryItemModel).where(
                LibraryItemModel.id == library_item_id,
                LibraryItemModel.user_id == user_id,
            )
        ).scalar_one_or_none()
        if item is None:
            raise NotFoundError("library item", library_item_id)
        return item

    @staticmethod
    def _require_highlight(session: Session, highlight_id: str, user_id: str) -> HighlightModel:
        highlight = session.execute(
            select(HighlightModel).where(
                HighlightModel.id == highlight_id,
                HighlightModel.user_id == user_id,
            )
        ).scalar_one_or_none()
        if highlight is None:
            raise NotFoundError("highlight", highlight_id)
        return highlight


__all__ = [
    "LabelService",
    "MAX_LABEL_NAME_LENGTH",
    "generate_random_color",
    "normalize_label_color",
    "normalize_label_name",
]
