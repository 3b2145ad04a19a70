"""Strawberry object, input and result types exposed by the API."""

from datetime import datetime
from enum import Enum
from typing import Annotated, List, Optional, Union

import strawberry
from strawberry.scalars import JSON

from ..services.records import IntegrationEntry, LabelEntry


# =============================================================================
# OBJECT TYPES
# =============================================================================

@strawberry.type
class Label:
    id: strawberry.ID
    name: str
    color: str
    description: Optional[str]
    position: int
    internal: bool
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    @classmethod
    def from_entry(cls, entry: LabelEntry) -> "Label":
        return cls(
            id=strawberry.ID(entry.id),
            name=entry.name,
            color=entry.color,
            description=entry.description,
            position=entry.position,
            internal=entry.internal,
            created_at=entry.created_at,
            updated_at=entry.updated_at,
        )


@strawberry.enum
class IntegrationType(Enum):
    EXPORT = "EXPORT"
    IMPORT = "IMPORT"


@strawberry.enum
class ImportItemState(Enum):
    UNREAD = "UNREAD"
    UNARCHIVED = "UNARCHIVED"
    ARCHIVED = "ARCHIVED"
    ALL = "ALL"


@strawberry.type
class Integration:
    id: strawberry.ID
    name: str
    type: IntegrationType
    token: str
    enabled: bool
    settings: Optional[JSON]
    import_item_state: Optional[ImportItemState]
    synced_at: Optional[datetime]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    @classmethod
    def from_entry(cls, entry: IntegrationEntry) -> "Integration":
        return cls(
            id=strawberry.ID(entry.id),
            name=entry.name,
            type=IntegrationType(entry.type),
            token=entry.token,
            enabled=entry.enabled,
            settings=entry.settings or None,
            import_item_state=(
                ImportItemState(entry.import_item_state) if entry.import_item_state else None
            ),
            synced_at=entry.synced_at,
            created_at=entry.created_at,
            updated_at=entry.updated_at,
        )


# =============================================================================
# INPUT TYPES
# =============================================================================

@strawberry.input
class CreateLabelInput:
    name: str
    color: Optional[str] = None
    description: Optional[str] = None


@strawberry.input
class UpdateLabelInput:
    label_id: strawberry.ID
    name: Optional[str] = None
    color: Optional[str] = None
    description: Optional[str] = None


@strawberry.input
class SetLabelsInput:
    page_id: strawberry.ID
    label_ids: List[strawberry.ID]


@strawberry.input
class SetLabelsForHighlightInput:
    highlight_id: strawberry.ID
    label_ids: List[strawberry.ID]


@strawberry.input
class MoveLabelInput:
    label_id: strawberry.ID
    after_label_id: Optional[strawberry.ID] = None


@strawberry.input
class SavePageInput:
    url: str
    source: str
    client_request_id: strawberry.ID
    original_content: str
    title: Optional[str] = None
    labels: Optional[List[str]] = None


@strawberry.input
class SetIntegrationInput:
    name: str
    token: str
    type: Optional[IntegrationType] = None
    enabled: bool = True
    settings: Optional[JSON] = None
    import_item_state: Optional[ImportItemState] = None


# =============================================================================
# ERROR CODES
# =============================================================================

@strawberry.enum
class LabelsErrorCode(Enum):
    UNAUTHORIZED = "UNAUTHORIZED"
    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"


@strawberry.enum
class CreateLabelErrorCode(Enum):
    UNAUTHORIZED = "UNAUTHORIZED"
    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"
    LABEL_ALREADY_EXISTS = "LABEL_ALREADY_EXISTS"


@strawberry.enum
class DeleteLabelErrorCode(Enum):
    UNAUTHORIZED = "UNAUTHORIZED"
    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"


@strawberry.enum
class UpdateLabelErrorCode(Enum):
    UNAUTHORIZED = "UNAUTHORIZED"
    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"
    LABEL_ALREADY_EXISTS = "LABEL_ALREADY_EXISTS"


@strawberry.enum
class SetLabelsErrorCode(Enum):
    UNAUTHORIZED = "UNAUTHORIZED"
    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"


@strawberry.enum
class MoveLabelErrorCode(Enum):
    UNAUTHORIZED = "UNAUTHORIZED"
    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"


@strawberry.enum
class SaveErrorCode(Enum):
    UNKNOWN = "UNKNOWN"
    UNAUTHORIZED = "UNAUTHORIZED"
    BAD_REQUEST = "BAD_REQUEST"


@strawberry.enum
class IntegrationsErrorCode(Enum):
    UNAUTHORIZED = "UNAUTHORIZED"
    BAD_REQUEST = "BAD_REQUEST"


@strawberry.enum
class SetIntegrationErrorCode(Enum):
    UNAUTHORIZED = "UNAUTHORIZED"
    BAD_REQUEST = "BAD_REQUEST"
    INVALID_TOKEN = "INVALID_TOKEN"
    NOT_FOUND = "NOT_FOUND"


@strawberry.enum
class DeleteIntegrationErrorCode(Enum):
    UNAUTHORIZED = "UNAUTHORIZED"
    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"


@strawberry.enum
class ImportFromIntegrationErrorCode(Enum):
    UNAUTHORIZED = "UNAUTHORIZED"
    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"


@strawberry.enum
class ExportToIntegrationErrorCode(Enum):
    UNAUTHORIZED = "UNAUTHORIZED"
    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"


# =============================================================================
# RESULTS
# =============================================================================

@strawberry.type
class LabelsSuccess:
    labels: List[Label]


@strawberry.type
class LabelsError:
    error_codes: List[LabelsErrorCode]


@strawberry.type
class CreateLabelSuccess:
    label: Label


@strawberry.type
class CreateLabelError:
    error_codes: List[CreateLabelErrorCode]


@strawberry.type
class DeleteLabelSuccess:
    label: Label


@strawberry.type
class DeleteLabelError:
    error_codes: List[DeleteLabelErrorCode]


@strawberry.type
class UpdateLabelSuccess:
    label: Label


@strawberry.type
class UpdateLabelError:
    error_codes: List[UpdateLabelErrorCode]


@strawberry.type
class SetLabelsSuccess:
    labels: List[Label]


@strawberry.type
class SetLabelsError:
    error_codes: List[SetLabelsErrorCode]


@strawberry.type
class MoveLabelSuccess:
    label: Label


@strawberry.type
class MoveLabelError:
    error_codes: List[MoveLabelErrorCode]


@strawberry.type
class SaveSuccess:
    url: str
    client_request_id: strawberry.ID


@strawberry.type
class SaveError:
    error_codes: List[SaveErrorCode]
    message: Optional[str] = None


@strawberry.type
class IntegrationsSuccess:
    integrations: List[Integration]


@strawberry.type
class IntegrationsError:
    error_codes: List[IntegrationsErrorCode]


@strawberry.type
class SetIntegrationSuccess:
    integration: Integration


@strawberry.type
class SetIntegrationError:
    error_codes: List[SetIntegrationErrorCode]


@strawberry.type
class DeleteIntegrationSuccess:
    integration: Integration


@strawberry.type
class DeleteIntegrationError:
    error_codes: List[DeleteIntegrationErrorCode]


@strawberry.type
class ImportFromIntegrationSuccess:
    count: int


@strawberry.type
class ImportFromIntegrationError:
    error_codes: List[ImportFromIntegrationErrorCode]


@strawberry.type
class ExportToIntegrationSuccess:
    exported: bool


@strawberry.type
class ExportToIntegrationError:
    error_codes: List[ExportToIntegrationErrorCode]


LabelsResult = Annotated[Union[LabelsSuccess, LabelsError], strawberry.union("LabelsResult")]
CreateLabelResult = Annotated[
    Union[CreateLabelSuccess, CreateLabelError], strawberry.union("CreateLabelResult")
]
DeleteLabelResult = Annotated[
    Union[DeleteLabelSuccess, DeleteLabelError], strawberry.union("DeleteLabelResult")
]
UpdateLabelResult = Annotated[
    Union[UpdateLabelSuccess, UpdateLabelError], strawberry.union("UpdateLabelResult")
]
SetLabelsResult = Annotated[
    Union[SetLabelsSuccess, SetLabelsError], strawberry.union("SetLabelsResult")
]
MoveLabelResult = Annotated[
    Union[MoveLabelSuccess, MoveLabelError], strawberry.union("MoveLabelResult")
]
SaveResult = Annotated[Union[SaveSuccess, SaveError], strawberry.union("SaveResult")]
IntegrationsResult = Annotated[
    Union[IntegrationsSuccess, IntegrationsError], strawberry.union("IntegrationsResult")
]
SetIntegrationResult = Annotated[
    Union[SetIntegrationSuccess, SetIntegrationError], strawberry.union("SetIntegrationResult")
]
DeleteIntegrationResult = Annotated[
    Union[DeleteIntegrationSuccess, DeleteIntegrationError],
    strawberry.union("DeleteIntegrationResult"),
]
ImportFromIntegrationResult = Annotated[
    Union[ImportFromIntegrationSuccess, ImportFromIntegrationError],
    strawberry.union("ImportFromIntegrationResult"),
]
ExportToIntegrationResult = Annotated[
    Union[ExportToIntegrationSuccess, ExportToIntegrationError],
    strawberry.union("ExportToIntegrationResult"),
]
