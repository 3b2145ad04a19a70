"""Domain services backing the GraphQL API."""

from .errors import (
    AlreadyExistsError,
    BadRequestError,
    IntegrationError,
    LabelAlreadyExistsError,
    NotFoundError,
    ServiceError,
    UnauthorizedError,
)
from .highlight_service import HighlightService
from .integration_service import IntegrationService, InvalidTokenError
from .label_service import LabelService
from .library_item_service import LibraryItemService
from .save_page_service import SavedPage, SavePageService
from .user_service import UserService

__all__ = [
    "AlreadyExistsError",
    "BadRequestError",
    "HighlightService",
    "IntegrationError",
    "IntegrationService",
    "InvalidTokenError",
    "LabelAlreadyExistsError",
    "LabelService",
    "LibraryItemService",
    "NotFoundError",
    "SavePageService",
    "SavedPage",
    "ServiceError",
    "UnauthorizedError",
    "UserService",
]
