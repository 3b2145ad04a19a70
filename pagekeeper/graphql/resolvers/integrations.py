"""Integration queries and mutations."""

import strawberry
from strawberry.types import Info

from ...services.errors import ServiceError
from ..types import (
    DeleteIntegrationError,
    DeleteIntegrationErrorCode,
    DeleteIntegrationResult,
    DeleteIntegrationSuccess,
    ExportToIntegrationError,
    ExportToIntegrationErrorCode,
    ExportToIntegrationResult,
    ExportToIntegrationSuccess,
    ImportFromIntegrationError,
    ImportFromIntegrationErrorCode,
    ImportFromIntegrationResult,
    ImportFromIntegrationSuccess,
    Integration,
    IntegrationsError,
    IntegrationsErrorCode,
    IntegrationsResult,
    IntegrationsSuccess,
    SetIntegrationError,
    SetIntegrationErrorCode,
    SetIntegrationInput,
    SetIntegrationResult,
    SetIntegrationSuccess,
)
from .common import current_user_id, error_codes, log_failure


def resolve_integrations(info: Info) -> IntegrationsResult:
    user_id = current_user_id(info)
    if user_id is None:
        return IntegrationsError(error_codes=[IntegrationsErrorCode.UNAUTHORIZED])
    try:
        entries = info.context.integrations.find_integrations(user_id)
    except ServiceError as exc:
        log_failure("integrations", info, exc)
        return IntegrationsError(error_codes=error_codes(exc, IntegrationsErrorCode))
    return IntegrationsSuccess(integrations=[Integration.from_entry(entry) for entry in entries])


def set_integration(info: Info, input: SetIntegrationInput) -> SetIntegrationResult:
    user_id = current_user_id(info)
    if user_id is None:
        return SetIntegrationError(error_codes=[SetIntegrationErrorCode.UNAUTHORIZED])
    try:
        entry = info.context.integrations.save_integration(
            user_id,
            input.name,
            input.token,
            type=input.type.value if input.type else None,
            settings=input.settings,
            enabled=input.enabled,
            import_item_state=input.import_item_state.value if input.import_item_state else None,
        )
    except ServiceError as exc:
        log_failure("setIntegration", info, exc)
        return SetIntegrationError(error_codes=error_codes(exc, SetIntegrationErrorCode))
    return SetIntegrationSuccess(integration=Integration.from_entry(entry))


def delete_integration(info: Info, id: strawberry.ID) -> DeleteIntegrationResult:
    user_id = current_user_id(info)
    if user_id is None:
        return DeleteIntegrationError(error_codes=[DeleteIntegrationErrorCode.UNAUTHORIZED])
    try:
        entry = info.context.integrations.delete_integration(str(id), user_id)
    except ServiceError as exc:
        log_failure("deleteIntegration", info, exc)
        return DeleteIntegrationError(error_codes=error_codes(exc, DeleteIntegrationErrorCode))
    return DeleteIntegrationSuccess(integration=Integration.from_entry(entry))


def import_from_integration(info: Info, integration_id: strawberry.ID) -> ImportFromIntegrationResult:
    user_id = current_user_id(info)
    if user_id is None:
        return ImportFromIntegrationError(
            error_codes=[ImportFromIntegrationErrorCode.UNAUTHORIZED]
        )
    try:
        count = info.context.integrations.import_from_integration(str(integration_id), user_id)
    except ServiceError as exc:
        log_failure("importFromIntegration", info, exc)
        return ImportFromIntegrationError(
            error_codes=error_codes(exc, ImportFromIntegrationErrorCode)
        )
    return ImportFromIntegrationSuccess(count=count)


def export_to_integration(info: Info, integration_id: strawberry.ID) -> ExportToIntegrationResult:
    user_id = current_user_id(info)
    if user_id is None:
        return ExportToIntegrationError(error_codes=[ExportToIntegrationErrorCode.UNAUTHORIZED])
    try:
        exported = info.context.integrations.export_to_integration(str(integration_id), user_id)
    except ServiceError as exc:
        log_failure("exportToIntegration", info, exc)
        return ExportToIntegrationError(
            error_codes=error_codes(exc, ExportToIntegrationErrorCode)
        )
    return ExportToIntegrationSuccess(exported=exported)


__all__ = [
    "delete_integration",
    "export_to_integration",
    "import_from_integration",
    "resolve_integrations",
    "set_integration",
]
