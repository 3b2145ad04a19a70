"""Persistence and sync flows for third-party integrations."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from .. import logging_manager as log_mgr
from ..database.base import utcnow
from ..database.engine import auth_session
from ..database.models import IntegrationModel
from .errors import BadRequestError, IntegrationError, NotFoundError
from .integrations import (
    SUPPORTED_INTEGRATIONS,
    IntegrationClient,
    RetrieveRequest,
    get_integration_client,
)
from .library_item_service import LibraryItemService
from .records import IntegrationEntry, LibraryItemEntry, integration_entry
from .save_page_service import SavePageService

logger = log_mgr.get_logger().getChild("services.integrations")

INTEGRATION_TYPES = {"EXPORT", "IMPORT"}
IMPORT_ITEM_STATES = {"UNREAD", "UNARCHIVED", "ARCHIVED", "ALL"}
MAX_IMPORT_PAGES = 50

ClientFactory = Callable[..., IntegrationClient]


class InvalidTokenError(IntegrationError):
    """Raised when the remote service rejects an integration token."""

    code = "INVALID_TOKEN"


def _normalize_name(name: Optional[str]) -> str:
    candidate = (name or "").strip().upper()
    if candidate not in SUPPORTED_INTEGRATIONS:
        raise BadRequestError(f"Unsupported integration: {name!r}")
    return candidate


def _normalize_choice(value: Optional[str], allowed: set[str], kind: str) -> Optional[str]:
    if value is None:
        return None
    candidate = value.strip().upper()
    if candidate not in allowed:
        raise BadRequestError(f"Invalid {kind}: {value!r}")
    return candidate


class IntegrationService:
    """Store integration settings and run import/export syncs."""

    def __init__(
        self,
        *,
        client_factory: Optional[ClientFactory] = None,
        save_page_service: Optional[SavePageService] = None,
        library_item_service: Optional[LibraryItemService] = None,
    ) -> None:
        self._client_factory = client_factory or get_integration_client
        self._save_page_service = save_page_service or SavePageService()
        self._library_item_service = library_item_service or LibraryItemService()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def find_integration(
        self,
        user_id: str,
        *,
        integration_id: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Optional[IntegrationEntry]:
        if integration_id is None and name is None:
            raise BadRequestError("An integration id or name is required")
        with auth_session(user_id) as session:
            model = self._find_model(session, user_id, integration_id=integration_id, name=name)
            return integration_entry(model) if model is not None else None

    def get_integration(self, integration_id: str, user_id: str) -> IntegrationEntry:
        entry = self.find_integration(user_id, integration_id=integration_id)
        if entry is None:
            raise NotFoundError("integration", integration_id)
        return entry

    def find_integrations(self, user_id: str) -> List[IntegrationEntry]:
        with auth_session(user_id) as session:
            models = session.execute(
                select(IntegrationModel)
                .where(IntegrationModel.user_id == user_id)
                .order_by(IntegrationModel.created_at, IntegrationModel.name)
            ).scalars().all()
            return [integration_entry(model) for model in models]

    def save_integration(
        self,
        user_id: str,
        name: str,
        token: str,
        *,
        type: Optional[str] = None,
        settings: Optional[Dict[str, Any]] = None,
        enabled: bool = True,
        import_item_state: Optional[str] = None,
        validate: bool = True,
    ) -> IntegrationEntry:
        """Create or replace the user's integration called ``name``.

        When ``validate`` is set the token is checked (or exchanged) with the
        remote service first; a rejected token raises :class:`InvalidTokenError`.
        """

        resolved_name = _normalize_name(name)
        resolved_type = _normalize_choice(type, INTEGRATION_TYPES, "integration type") or (
            "IMPORT" if resolved_name == "POCKET" else "EXPORT"
        )
        resolved_state = _normalize_choice(import_item_state, IMPORT_ITEM_STATES, "import item state")
        if not token or not token.strip():
            raise BadRequestError("Integration token is required")
        token = token.strip()

        if validate:
            client = self._client_factory(resolved_name, token)
            try:
                access_token = client.access_token(token)
            finally:
                client.close()
            if not access_token:
                raise InvalidTokenError(f"{resolved_name} rejected the token")
            token = access_token

        with auth_session(user_id) as session:
            model = self._find_model(session, user_id, name=resolved_name)
            created = model is None
            if model is None:
                model = IntegrationModel(user_id=user_id, name=resolved_name)
                session.add(model)
            model.type = resolved_type
            model.token = token
            model.enabled = enabled
            model.settings = dict(settings or {})
            if resolved_state is not None or created:
                model.import_item_state = resolved_state or (
                    "UNARCHIVED" if resolved_type == "IMPORT" else None
                )
            session.flush()
            entry = integration_entry(model)

        logger.info(
            "Integration saved",
            extra={
                "event": "integrations.save",
                "user_id": user_id,
                "integration": resolved_name,
                "created": created,
            },
        )
        return entry

    def update_integration(self, integration_id: str, user_id: str, **fields: Any) -> IntegrationEntry:
        allowed = {"enabled", "settings", "token", "import_item_state", "synced_at", "type"}
        unknown = set(fields) - allowed
        if unknown:
            raise BadRequestError(f"Unsupported integration fields: {', '.join(sorted(unknown))}")
        if "type" in fields:
            fields["type"] = _normalize_choice(fields["type"], INTEGRATION_TYPES, "integration type")
        if "import_item_state" in fields:
            fields["import_item_state"] = _normalize_choice(
                fields["import_item_state"], IMPORT_ITEM_STATES, "import item state"
            )

        with auth_session(user_id) as session:
            model = self._require_model(session, integration_id, user_id)
            for key, value in fields.items():
                setattr(model, key, value)
            session.flush()
            return integration_entry(model)

    def delete_integration(self, integration_id: str, user_id: str) -> IntegrationEntry:
        with auth_session(user_id) as session:
            model = self._require_model(session, integration_id, user_id)
            entry = integration_entry(model)
            session.delete(model)

        logger.info(
            "Integration deleted",
            extra={"event": "integrations.delete", "user_id": user_id, "integration": entry.name},
        )
        return entry

    def delete_integrations(self, user_id: str, integration_ids: Sequence[str]) -> int:
        if not integration_ids:
            return 0
        with auth_session(user_id) as session:
            result = session.execute(
                delete(IntegrationModel).where(
                    IntegrationModel.user_id == user_id,
                    IntegrationModel.id.in_(list(integration_ids)),
                )
            )
            return result.rowcount

    # ------------------------------------------------------------------
    # Sync flows
    # ------------------------------------------------------------------
    def import_from_integration(self, integration_id: str, user_id: str) -> int:
        """Save every page retrieved since the last sync; return the count."""

        integration = self.get_integration(integration_id, user_id)
        if integration.type != "IMPORT":
            raise BadRequestError(f"{integration.name} is not an import integration")
        if not integration.enabled:
            raise BadRequestError(f"{integration.name} integration is disabled")

        started_at = utcnow()
        imported = 0
        client = self._client_factory(integration.name, integration.token, integration)
        try:
            offset = 0
            for _ in range(MAX_IMPORT_PAGES):
                result = client.retrieve(
                    RetrieveRequest(
                        since=integration.synced_at,
                        offset=offset,
                        state=integration.import_item_state,
                    )
                )
                for item in result.items:
                    self._save_page_service.save_page(
                        user_id,
                        item.url,
                        title=item.title,
                        source=integration.name.lower(),
                        labels=item.labels,
                        state=item.state,
                    )
                    imported += 1
                if not result.has_more or not result.items:
                    break
                offset += len(result.items)
        finally:
            client.close()

        self.update_integration(integration_id, user_id, synced_at=started_at)
        logger.info(
            "Integration import finished",
            extra={
                "event": "integrations.import",
                "user_id": user_id,
                "integration": integration.name,
                "count": imported,
            },
        )
        return imported

    def export_to_integration(
        self,
        integration_id: str,
        user_id: str,
        item_ids: Optional[Sequence[str]] = None,
    ) -> bool:
        integration = self.get_integration(integration_id, user_id)
        if integration.type != "EXPORT":
            raise BadRequestError(f"{integration.name} is not an export integration")
        if not integration.enabled:
            raise BadRequestError(f"{integration.name} integration is disabled")

        items: List[LibraryItemEntry]
        if item_ids is not None:
            items = [self._library_item_service.get_library_item(item_id, user_id) for item_id in item_ids]
        else:
            items = self._library_item_service.search_library_items(user_id, with_highlights=True)

        client = self._client_factory(integration.name, integration.token, integration)
        try:
            exported = client.export(items)
        finally:
            client.close()

        if exported:
            self.update_integration(integration_id, user_id, synced_at=utcnow())
        logger.info(
            "Integration export finished",
            extra={
                "event": "integrations.export",
                "user_id": user_id,
                "integration": integration.name,
                "count": len(items),
                "status": "ok" if exported else "failed",
            },
        )
        return exported

    @staticmethod
    def _find_model(
        session: Session,
        user_id: str,
        *,
        integration_id: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Optional[IntegrationModel]:
        query = select(IntegrationModel).where(IntegrationModel.user_id == user_id)
        if integration_id is not None:
            query = query.where(IntegrationModel.id == integration_id)
        if name is not None:
            query = query.where(IntegrationModel.name == name.strip().upper())
        return session.execute(query).scalar_one_or_none()

    def _require_model(self, session: Session, integration_id: str, user_id: str) -> IntegrationModel:
        model = self._find_model(session, user_id, integration_id=integration_id)
        if model is None:
            raise NotFoundError("integration", integration_id)
        return model


__all__ = ["IntegrationService", "InvalidTokenError", "INTEGRATION_TYPES", "IMPORT_ITEM_STATES"]
