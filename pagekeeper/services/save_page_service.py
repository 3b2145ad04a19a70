"""Save a page (URL plus optional captured HTML) into a user's library."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Sequence
from urllib.parse import urlparse

from bs4 import BeautifulSoup
from sqlalchemy import select

from .. import config_manager as cfg
from .. import logging_manager as log_mgr
from ..database.base import utcnow
from ..database.engine import auth_session, lock_user
from ..database.models import LibraryItemModel, UserModel
from .errors import BadRequestError, UnauthorizedError
from .label_service import LabelService, normalize_label_names
from .library_item_service import LIBRARY_ITEM_STATES, generate_slug
from .records import LibraryItemEntry, library_item_entry

logger = log_mgr.get_logger().getChild("services.save_page")

_WHITESPACE = re.compile(r"\s+")
_STRIPPED_TAGS = ("script", "style", "noscript", "template", "iframe", "svg")


@dataclass(frozen=True)
class PageMetadata:
    title: Optional[str]
    author: Optional[str]
    description: Optional[str]
    site_name: Optional[str]
    readable_content: str
    word_count: int


@dataclass(frozen=True)
class SavedPage:
    item: LibraryItemEntry
    url: str
    client_request_id: Optional[str]


def validate_page_url(url: Optional[str]) -> str:
    candidate = (url or "").strip()
    parsed = urlparse(candidate)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise BadRequestError(f"Invalid URL: {url!r}")
    return candidate


def title_from_url(url: str) -> str:
    """Fallback title for pages saved without one: host plus path."""

    parsed = urlparse(url)
    host = parsed.hostname or parsed.netloc
    if host.startswith("www."):
        host = host[4:]
    path = parsed.path.rstrip("/")
    return f"{host}{path}" if path else host


def _meta_content(soup: BeautifulSoup, *keys: str) -> Optional[str]:
    for key in keys:
        tag = soup.find("meta", attrs={"property": key}) or soup.find("meta", attrs={"name": key})
        if tag is not None:
            content = (tag.get("content") or "").strip()
            if content:
                return content
    return None


def extract_page_metadata(html: Optional[str]) -> PageMetadata:
    """Pull title, byline and readable text out of captured HTML."""

    if not html or not html.strip():
        return PageMetadata(None, None, None, None, "", 0)

    soup = BeautifulSoup(html, "html.parser")
    title = _meta_content(soup, "og:title", "twitter:title")
    if title is None and soup.title is not None and soup.title.string:
        title = soup.title.string.strip() or None
    author = _meta_content(soup, "author", "article:author")
    description = _meta_content(soup, "og:description", "description", "twitter:description")
    site_name = _meta_content(soup, "og:site_name", "application-name")

    for tag in soup(list(_STRIPPED_TAGS)):
        tag.decompose()
    body = soup.find("article") or soup.body or soup
    paragraphs = []
    for block in body.find_all(["h1", "h2", "h3", "h4", "p", "li", "blockquote", "pre"]):
        text = _WHITESPACE.sub(" ", block.get_text(" ", strip=True)).strip()
        if text:
            paragraphs.append(text)
    if not paragraphs:
        text = _WHITESPACE.sub(" ", body.get_text(" ", strip=True)).strip()
        if text:
            paragraphs.append(text)
    readable = "\n\n".join(paragraphs)
    word_count = len(readable.split())
    return PageMetadata(title, author, description, site_name, readable, word_count)


class SavePageService:
    """Create or refresh a library item from a page capture."""

    def __init__(self, *, label_service: Optional[LabelService] = None) -> None:
        self._label_service = label_service or LabelService()

    def save_page(
        self,
        user_id: str,
        url: str,
        *,
        original_content: Optional[str] = None,
        title: Optional[str] = None,
        source: str = "api",
        client_request_id: Optional[str] = None,
        labels: Optional[Sequence[str]] = None,
        state: Optional[str] = None,
    ) -> SavedPage:
        if not user_id:
            raise UnauthorizedError("A user is required to save pages")
        page_url = validate_page_url(url)
        label_names = normalize_label_names(labels)
        metadata = extract_page_metadata(original_content)
        resolved_title = (title or "").strip() or metadata.title or title_from_url(page_url)
        state = (state or "SUCCEEDED").upper()
        if state not in LIBRARY_ITEM_STATES:
            raise BadRequestError(f"Unsupported library item state: {state!r}")
        archived = state == "ARCHIVED"
        now = utcnow()

        with auth_session(user_id) as session:
            if label_names:
                lock_user(session, user_id)
            user = session.get(UserModel, user_id)
            if user is None or user.status != "ACTIVE":
                raise UnauthorizedError("Unknown or inactive user")

            model = session.execute(
                select(LibraryItemModel).where(
                    LibraryItemModel.user_id == user_id,
                    LibraryItemModel.original_url == page_url,
                )
            ).scalar_one_or_none()
            created = model is None
            if model is None:
                model = LibraryItemModel(
                    user_id=user_id,
                    original_url=page_url,
                    slug=generate_slug(resolved_title),
                )
                session.add(model)

            model.title = resolved_title
            model.author = metadata.author or model.author
            model.description = metadata.description or model.description
            model.site_name = metadata.site_name or model.site_name
            if original_content is not None:
                model.original_content = original_content
                model.readable_content = metadata.readable_content
                model.word_count = metadata.word_count
            elif model.readable_content is None:
                model.readable_content = ""
            model.state = state
            model.archived_at = now if archived else None
            model.source = source
            model.client_request_id = client_request_id
            model.saved_at = now
            session.flush()

            if label_names:
                label_models = self._label_service._find_or_create_label_models(
                    session, user_id, label_names
                )
                self._label_service._add_to_library_item(
                    session, model, label_models, source="saved"
                )

            item_id = model.id
            username = user.username
            slug = model.slug
            entry = library_item_entry(model)

        logger.info(
            "Page saved",
            extra={
                "event": "save_page.saved",
                "user_id": user_id,
                "library_item_id": item_id,
                "created": created,
                "source": source,
                "client_request_id": client_request_id,
            },
        )
        return SavedPage(
            item=entry,
            url=f"{cfg.get_client_url()}/{username}/{slug}",
            client_request_id=client_request_id,
        )


__all__ = [
    "PageMetadata",
    "SavePageService",
    "SavedPage",
    "extract_page_metadata",
    "title_from_url",
    "validate_page_url",
]
