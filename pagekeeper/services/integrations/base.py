"""Base class for third-party integration clients."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence

import requests

from ... import config_manager as cfg
from ... import logging_manager as log_mgr
from ..errors import IntegrationError
from ..records import LibraryItemEntry


@dataclass(frozen=True)
class RetrieveRequest:
    """Parameters for pulling saved pages out of a remote service."""

    since: Optional[datetime] = None
    count: int = 100
    offset: int = 0
    state: Optional[str] = None


@dataclass(frozen=True)
class RetrievedItem:
    url: str
    title: Optional[str] = None
    labels: List[str] = field(default_factory=list)
    state: str = "SUCCEEDED"


@dataclass(frozen=True)
class RetrievedResult:
    items: List[RetrievedItem]
    has_more: bool = False
    since: Optional[datetime] = None


class IntegrationClient(ABC):
    """Abstract base class for integration clients.

    Each remote service implements token validation plus whichever side of
    the sync it supports. Transport and HTTP failures surface as
    :class:`IntegrationError`.
    """

    # Subclasses must set these class attributes
    name: str
    api_url: str

    def __init__(
        self,
        token: Optional[str] = None,
        *,
        session: Optional[requests.Session] = None,
        timeout_seconds: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._token = token
        self._session = session or requests.Session()
        self._owns_session = session is None
        if timeout_seconds is None:
            timeout_seconds = cfg.get_settings().integration_timeout_seconds
        self._timeout = timeout_seconds
        self._logger = logger or log_mgr.get_logger().getChild(
            f"integrations.{self.name.lower()}"
        )

    @property
    def token(self) -> Optional[str]:
        return self._token

    @abstractmethod
    def access_token(self, token: Optional[str] = None) -> Optional[str]:
        """Validate (or exchange) ``token`` and return the usable access token.

        Returns ``None`` when the remote service rejects the token.
        """
        ...

    def auth(self, state: str) -> str:
        """Return the URL a user visits to authorize this integration."""
        raise IntegrationError(f"{self.name} does not support authorization redirects")

    def retrieve(self, request: RetrieveRequest) -> RetrievedResult:
        raise IntegrationError(f"{self.name} does not support importing")

    def export(self, items: Sequence[LibraryItemEntry]) -> bool:
        raise IntegrationError(f"{self.name} does not support exporting")

    def close(self) -> None:
        """Release resources."""
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> "IntegrationClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Any] = None,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        expected: Sequence[int] = (200,),
    ) -> requests.Response:
        url = f"{self.api_url}{path}"
        resolved_headers: Dict[str, str] = {"Accept": "application/json"}
        if headers:
            resolved_headers.update({str(k): str(v) for k, v in headers.items()})

        self._logger.debug(
            "Dispatching %s request",
            self.name,
            extra={
                "event": f"integrations.{self.name.lower()}.request",
                "attributes": {"method": method, "url": url},
            },
        )
        try:
            response = self._session.request(
                method,
                url,
                json=json,
                params=params,
                headers=resolved_headers,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            self._logger.error(
                "%s request failed",
                self.name,
                extra={
                    "event": f"integrations.{self.name.lower()}.transport_error",
                    "attributes": {"method": method, "url": url},
                },
                exc_info=True,
            )
            raise IntegrationError(f"{self.name} request failed") from exc

        if response.status_code not in expected:
            self._logger.error(
                "%s returned HTTP %s",
                self.name,
                response.status_code,
                extra={
                    "event": f"integrations.{self.name.lower()}.error_response",
                    "attributes": {
                        "method": method,
                        "url": url,
                        "status_code": response.status_code,
                        "body": response.text,
                    },
                },
            )
            raise IntegrationError(
                f"{self.name} responded with status {response.status_code}",
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _json(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise IntegrationError("Integration returned an invalid JSON payload") from exc


__all__ = [
    "IntegrationClient",
    "RetrieveRequest",
    "RetrievedItem",
    "RetrievedResult",
]
