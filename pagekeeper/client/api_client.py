"""HTTP client that saves captured pages through the GraphQL API."""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Any, Mapping, MutableMapping, Optional
from uuid import uuid4

import requests

from .. import logging_manager as log_mgr
from ..config_manager.constants import DEFAULT_GRAPHQL_PATH

SAVE_PAGE_SOURCE = "ios-page"

SAVE_PAGE_MUTATION = """
mutation SavePage($input: SavePageInput!) {
  savePage(input: $input) {
    __typename
    ... on SaveSuccess {
      url
      clientRequestId
    }
    ... on SaveError {
      errorCodes
      message
    }
  }
}
""".strip()


class SaveErrorKind(str, enum.Enum):
    NETWORK = "network"
    UNAUTHORIZED = "unauthorized"
    UNKNOWN = "unknown"


class SaveArticleError(RuntimeError):
    """Raised when a page could not be saved."""

    def __init__(self, kind: SaveErrorKind, description: Optional[str] = None) -> None:
        self.kind = kind
        self.description = description
        message = kind.value if not description else f"{kind.value}: {description}"
        super().__init__(message)


@dataclass(frozen=True)
class SaveResult:
    request_id: str
    url: str


class PageKeeperClient:
    """Lightweight helper for issuing savePage mutations."""

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
        graphql_path: str = DEFAULT_GRAPHQL_PATH,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if not base_url:
            raise ValueError("base_url must be a non-empty string")
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._session = session or requests.Session()
        self._owns_session = session is None
        self._timeout = timeout
        self._graphql_url = f"{self._base_url}/{graphql_path.strip('/')}"
        self._logger = logger or log_mgr.get_logger().getChild("client")

    @property
    def graphql_url(self) -> str:
        return self._graphql_url

    def default_headers(self) -> MutableMapping[str, str]:
        return {
            "accept": "application/json",
            "content-type": "application/json",
            "authorization": f"Bearer {self._token}",
        }

    def save_page(
        self,
        url: str,
        html: str,
        *,
        title: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> SaveResult:
        """Send a savePage mutation and return the saved page's reader URL."""

        request_id = request_id or str(uuid4())
        variables: MutableMapping[str, Any] = {
            "input": {
                "url": url,
                "source": SAVE_PAGE_SOURCE,
                "clientRequestId": request_id,
                "originalContent": html,
            }
        }
        if title is not None:
            variables["input"]["title"] = title

        payload = self._post({"query": SAVE_PAGE_MUTATION, "variables": variables}, request_id)

        errors = payload.get("errors")
        if errors:
            description = _describe_graphql_error(errors)
            self._logger.warning(
                "savePage returned GraphQL errors",
                extra={
                    "event": "client.save_page.graphql_error",
                    "correlation_id": request_id,
                    "attributes": {"description": description},
                },
            )
            raise SaveArticleError(SaveErrorKind.UNKNOWN, description)

        data = payload.get("data")
        result = data.get("savePage") if isinstance(data, Mapping) else None
        if not isinstance(result, Mapping):
            raise SaveArticleError(SaveErrorKind.UNKNOWN, "Response is missing savePage data")

        if result.get("__typename") == "SaveError" or "errorCodes" in result:
            codes = result.get("errorCodes") or []
            code = str(codes[0]) if codes else "UNKNOWN"
            self._logger.warning(
                "savePage rejected with %s",
                code,
                extra={
                    "event": "client.save_page.rejected",
                    "correlation_id": request_id,
                    "status": code,
                },
            )
            if code == "UNAUTHORIZED":
                raise SaveArticleError(SaveErrorKind.UNAUTHORIZED)
            raise SaveArticleError(SaveErrorKind.UNKNOWN, code)

        self._logger.info(
            "Page saved",
            extra={"event": "client.save_page.success", "correlation_id": request_id},
        )
        return SaveResult(request_id=request_id, url=str(result.get("url") or ""))

    async def asave_page(
        self,
        url: str,
        html: str,
        *,
        title: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> SaveResult:
        """Run :meth:`save_page` in a worker thread for asyncio callers."""

        return await asyncio.to_thread(
            self.save_page,
            url,
            html,
            title=title,
            request_id=request_id,
        )

    def close(self) -> None:
        """Release resources."""
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> "PageKeeperClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _post(self, body: Mapping[str, Any], request_id: str) -> Mapping[str, Any]:
        headers = self.default_headers()
        headers["x-correlation-id"] = request_id
        try:
            response = self._session.post(
                self._graphql_url,
                json=body,
                headers=headers,
                timeout=self._timeout,
            )
        except (requests.ConnectionError, requests.Timeout) as exc:
            self._logger.error(
                "savePage request failed",
                extra={
                    "event": "client.save_page.transport_error",
                    "correlation_id": request_id,
                    "attributes": {"url": self._graphql_url},
                },
                exc_info=True,
            )
            raise SaveArticleError(SaveErrorKind.NETWORK, str(exc)) from exc
        except requests.RequestException as exc:
            # Malformed URLs, unsupported schemes and the like.
            raise SaveArticleError(SaveErrorKind.UNKNOWN, str(exc)) from exc

        if response.status_code >= 400:
            self._logger.error(
                "savePage returned HTTP %s",
                response.status_code,
                extra={
                    "event": "client.save_page.error_response",
                    "correlation_id": request_id,
                    "attributes": {"status_code": response.status_code, "body": response.text},
                },
            )
            raise SaveArticleError(
                SaveErrorKind.UNKNOWN,
                f"API responded with status {response.status_code}",
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise SaveArticleError(SaveErrorKind.UNKNOWN, "Invalid JSON payload") from exc
        if not isinstance(payload, Mapping):
            raise SaveArticleError(SaveErrorKind.UNKNOWN, "Invalid JSON payload")
        return payload


def _describe_graphql_error(errors: Any) -> str:
    if isinstance(errors, list) and errors:
        first = errors[0]
        if isinstance(first, Mapping) and first.get("message"):
            return str(first["message"])
        return str(first)
    return str(errors)


__all__ = [
    "PageKeeperClient",
    "SAVE_PAGE_MUTATION",
    "SAVE_PAGE_SOURCE",
    "SaveArticleError",
    "SaveErrorKind",
    "SaveResult",
]
