"""The savePage mutation."""

from sqlalchemy.exc import SQLAlchemyError
from strawberry.types import Info

from ...services.errors import ServiceError
from ..types import SaveError, SaveErrorCode, SavePageInput, SaveResult, SaveSuccess
from .common import current_user_id, error_codes, log_failure, logger


def save_page(info: Info, input: SavePageInput) -> SaveResult:
    user_id = current_user_id(info)
    if user_id is None:
        return SaveError(
            error_codes=[SaveErrorCode.UNAUTHORIZED],
            message="Authentication required",
        )

    client_request_id = str(input.client_request_id)
    try:
        saved = info.context.save_page.save_page(
            user_id,
            input.url,
            original_content=input.original_content,
            title=input.title,
            source=input.source,
            client_request_id=client_request_id,
            labels=input.labels,
        )
    except ServiceError as exc:
        log_failure("savePage", info, exc)
        return SaveError(
            error_codes=error_codes(exc, SaveErrorCode, fallback="UNKNOWN"),
            message=str(exc),
        )
    except SQLAlchemyError:
        logger.exception(
            "Failed to persist saved page",
            extra={
                "event": "graphql.savePage.failed",
                "operation": "savePage",
                "user_id": user_id,
                "correlation_id": client_request_id,
            },
        )
        return SaveError(error_codes=[SaveErrorCode.UNKNOWN], message="Failed to save page")

    return SaveSuccess(url=saved.url, client_request_id=client_request_id)


__all__ = ["save_page"]
