"""SQLAlchemy models; importing this package registers them with Base.metadata."""

from .user import UserModel, SessionModel
from .label import LabelModel, EntityLabelModel
from .library import LibraryItemModel, HighlightModel
from .integration import IntegrationModel

__all__ = [
    "UserModel",
    "SessionModel",
    "LabelModel",
    "EntityLabelModel",
    "LibraryItemModel",
    "HighlightModel",
    "IntegrationModel",
]
