"""Per-request context handed to GraphQL resolvers."""

from typing import Optional
from uuid import uuid4

from fastapi import Depends, Request
from strawberry.fastapi import BaseContext

from .. import logging_manager as log_mgr
from ..services import IntegrationService, LabelService, SavePageService
from ..webapi.dependencies import (
    RequestUserContext,
    get_integration_service,
    get_label_service,
    get_request_user,
    get_save_page_service,
)


class PageKeeperContext(BaseContext):
    """Request identity plus the services resolvers delegate to."""

    def __init__(
        self,
        user: RequestUserContext,
        *,
        labels: LabelService,
        save_page: SavePageService,
        integrations: IntegrationService,
        correlation_id: Optional[str] = None,
    ) -> None:
        super().__init__()
        self.user = user
        self.labels = labels
        self.save_page = save_page
        self.integrations = integrations
        self.correlation_id = correlation_id


def resolve_correlation_id(request: Request) -> str:
    return (
        request.headers.get("x-request-id")
        or request.headers.get("x-correlation-id")
        or str(uuid4())
    )


async def get_graphql_context(
    request: Request,
    user: RequestUserContext = Depends(get_request_user),
    labels: LabelService = Depends(get_label_service),
    save_page: SavePageService = Depends(get_save_page_service),
    integrations: IntegrationService = Depends(get_integration_service),
) -> PageKeeperContext:
    """Build the resolver context and tag the request's logs.

    Async so the log context is set in the task that runs the resolvers;
    each request task starts from a copy of the server's empty context.
    """

    correlation_id = resolve_correlation_id(request)
    log_mgr.push_log_context(correlation_id=correlation_id, user_id=user.user_id)
    return PageKeeperContext(
        user,
        labels=labels,
        save_page=save_page,
        integrations=integrations,
        correlation_id=correlation_id,
    )


__all__ = ["PageKeeperContext", "get_graphql_context", "resolve_correlation_id"]
