"""Exception hierarchy raised by the service layer."""

from __future__ import annotations

from typing import Optional


class ServiceError(RuntimeError):
    """Base exception raised by pagekeeper services."""

    code = "BAD_REQUEST"


class NotFoundError(ServiceError):
    """Raised when a requested entity does not exist for the caller."""

    code = "NOT_FOUND"

    def __init__(self, entity: str, identifier: object | None = None) -> None:
        self.entity = entity
        self.identifier = identifier
        detail = f" {identifier}" if identifier is not None else ""
        super().__init__(f"{entity}{detail} not found")


class AlreadyExistsError(ServiceError):
    """Raised when a uniqueness rule would be violated."""

    code = "ALREADY_EXISTS"


class LabelAlreadyExistsError(AlreadyExistsError):
    code = "LABEL_ALREADY_EXISTS"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Label '{name}' already exists")


class BadRequestError(ServiceError):
    """Raised when caller-supplied values are invalid."""

    code = "BAD_REQUEST"


class UnauthorizedError(ServiceError):
    """Raised when the caller is not allowed to perform the operation."""

    code = "UNAUTHORIZED"


class IntegrationError(ServiceError):
    """Raised when a third-party integration request fails."""

    code = "BAD_REQUEST"

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


__all__ = [
    "ServiceError",
    "NotFoundError",
    "AlreadyExistsError",
    "LabelAlreadyExistsError",
    "BadRequestError",
    "UnauthorizedError",
    "IntegrationError",
]
