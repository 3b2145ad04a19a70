"""Immutable records returned by the service layer.

Services never hand ORM instances to callers: sessions are closed when a
service call returns, so every result is copied into one of these records
while the owning session is still open.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..database.models import (
    HighlightModel,
    IntegrationModel,
    LabelModel,
    LibraryItemModel,
    UserModel,
)


@dataclass(frozen=True)
class UserEntry:
    id: str
    email: str
    name: str
    username: str
    status: str
    created_at: Optional[datetime]


@dataclass(frozen=True)
class LabelEntry:
    id: str
    name: str
    color: str
    description: Optional[str]
    position: int
    internal: bool
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


@dataclass(frozen=True)
class HighlightEntry:
    id: str
    library_item_id: str
    short_id: str
    quote: Optional[str]
    prefix: Optional[str]
    suffix: Optional[str]
    patch: Optional[str]
    annotation: Optional[str]
    color: Optional[str]
    highlight_position_percent: Optional[float]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    labels: List[LabelEntry] = field(default_factory=list)


@dataclass(frozen=True)
class LibraryItemEntry:
    id: str
    original_url: str
    slug: str
    title: str
    author: Optional[str]
    description: Optional[str]
    site_name: Optional[str]
    readable_content: str
    word_count: Optional[int]
    state: str
    source: str
    client_request_id: Optional[str]
    saved_at: Optional[datetime]
    archived_at: Optional[datetime]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    labels: List[LabelEntry] = field(default_factory=list)
    highlights: List[HighlightEntry] = field(default_factory=list)


@dataclass(frozen=True)
class IntegrationEntry:
    id: str
    name: str
    type: str
    token: str
    enabled: bool
    synced_at: Optional[datetime]
    settings: Dict[str, Any]
    import_item_state: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


def user_entry(model: UserModel) -> UserEntry:
    return UserEntry(
        id=model.id,
        email=model.email,
        name=model.name,
        username=model.username,
        status=model.status,
        created_at=model.created_at,
    )


def label_entry(model: LabelModel) -> LabelEntry:
    return LabelEntry(
        id=model.id,
        name=model.name,
        color=model.color,
        description=model.description,
        position=model.position,
        internal=model.internal,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def highlight_entry(model: HighlightModel, *, with_labels: bool = True) -> HighlightEntry:
    return HighlightEntry(
        id=model.id,
        library_item_id=model.library_item_id,
        short_id=model.short_id,
        quote=model.quote,
        prefix=model.prefix,
        suffix=model.suffix,
        patch=model.patch,
        annotation=model.annotation,
        color=model.color,
        highlight_position_percent=model.highlight_position_percent,
        created_at=model.created_at,
        updated_at=model.updated_at,
        labels=[label_entry(label) for label in model.labels] if with_labels else [],
    )


def library_item_entry(
    model: LibraryItemModel,
    *,
    with_labels: bool = True,
    with_highlights: bool = False,
) -> LibraryItemEntry:
    return LibraryItemEntry(
        id=model.id,
        original_url=model.original_url,
        slug=model.slug,
        title=model.title,
        author=model.author,
        description=model.description,
        site_name=model.site_name,
        readable_content=model.readable_content,
        word_count=model.word_count,
        state=model.state,
        source=model.source,
        client_request_id=model.client_request_id,
        saved_at=model.saved_at,
        archived_at=model.archived_at,
        created_at=model.created_at,
        updated_at=model.updated_at,
        labels=[label_entry(label) for label in model.labels] if with_labels else [],
        highlights=(
            [highlight_entry(highlight) for highlight in model.highlights]
            if with_highlights
            else []
        ),
    )


def integration_entry(model: IntegrationModel) -> IntegrationEntry:
    return IntegrationEntry(
        id=model.id,
        name=model.name,
        type=model.type,
        token=model.token,
        enabled=model.enabled,
        synced_at=model.synced_at,
        settings=dict(model.settings or {}),
        import_item_state=model.import_item_state,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


__all__ = [
    "UserEntry",
    "LabelEntry",
    "HighlightEntry",
    "LibraryItemEntry",
    "IntegrationEntry",
    "user_entry",
    "label_entry",
    "highlight_entry",
    "library_item_entry",
    "integration_entry",
]
