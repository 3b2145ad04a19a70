"""Helpers shared by the GraphQL resolvers."""

from enum import Enum
from typing import List, Optional, Type, TypeVar

from strawberry.types import Info

from ... import logging_manager as log_mgr
from ...services.errors import ServiceError

logger = log_mgr.get_logger().getChild("graphql")

CodeT = TypeVar("CodeT", bound=Enum)


def current_user_id(info: Info) -> Optional[str]:
    return info.context.user.user_id


def error_codes(
    exc: ServiceError,
    codes: Type[CodeT],
    fallback: str = "BAD_REQUEST",
) -> List[CodeT]:
    """Map a service exception onto the operation's error-code enum."""

    member = codes.__members__.get(exc.code)
    if member is None:
        member = codes[fallback]
    return [member]


def log_failure(operation: str, info: Info, exc: ServiceError) -> None:
    logger.info(
        "%s rejected: %s",
        operation,
        exc,
        extra={
            "event": f"graphql.{operation}.error",
            "operation": operation,
            "user_id": current_user_id(info),
            "status": exc.code,
        },
    )


def optional_id(value: Optional[str]) -> Optional[str]:
    """Treat an empty id as absent."""

    if value is None:
        return None
    value = str(value).strip()
    return value or None


__all__ = ["current_user_id", "error_codes", "log_failure", "logger", "optional_id"]
