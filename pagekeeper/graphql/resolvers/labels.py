"""Label queries and mutations."""

import strawberry
from strawberry.types import Info

from ...services.errors import ServiceError
from ..types import (
    CreateLabelError,
    CreateLabelErrorCode,
    CreateLabelInput,
    CreateLabelResult,
    CreateLabelSuccess,
    DeleteLabelError,
    DeleteLabelErrorCode,
    DeleteLabelResult,
    DeleteLabelSuccess,
    Label,
    LabelsError,
    LabelsErrorCode,
    LabelsResult,
    LabelsSuccess,
    MoveLabelError,
    MoveLabelErrorCode,
    MoveLabelInput,
    MoveLabelResult,
    MoveLabelSuccess,
    SetLabelsError,
    SetLabelsErrorCode,
    SetLabelsForHighlightInput,
    SetLabelsInput,
    SetLabelsResult,
    SetLabelsSuccess,
    UpdateLabelError,
    UpdateLabelErrorCode,
    UpdateLabelInput,
    UpdateLabelResult,
    UpdateLabelSuccess,
)
from .common import current_user_id, error_codes, log_failure, optional_id


def resolve_labels(info: Info) -> LabelsResult:
    user_id = current_user_id(info)
    if user_id is None:
        return LabelsError(error_codes=[LabelsErrorCode.UNAUTHORIZED])
    try:
        entries = info.context.labels.list_labels(user_id)
    except ServiceError as exc:
        log_failure("labels", info, exc)
        return LabelsError(error_codes=error_codes(exc, LabelsErrorCode))
    return LabelsSuccess(labels=[Label.from_entry(entry) for entry in entries])


def create_label(info: Info, input: CreateLabelInput) -> CreateLabelResult:
    user_id = current_user_id(info)
    if user_id is None:
        return CreateLabelError(error_codes=[CreateLabelErrorCode.UNAUTHORIZED])
    try:
        entry = info.context.labels.create_label(
            user_id,
            input.name,
            input.color,
            input.description,
        )
    except ServiceError as exc:
        log_failure("createLabel", info, exc)
        return CreateLabelError(error_codes=error_codes(exc, CreateLabelErrorCode))
    return CreateLabelSuccess(label=Label.from_entry(entry))


def delete_label(info: Info, id: strawberry.ID) -> DeleteLabelResult:
    user_id = current_user_id(info)
    if user_id is None:
        return DeleteLabelError(error_codes=[DeleteLabelErrorCode.UNAUTHORIZED])
    try:
        entry = info.context.labels.delete_label(str(id), user_id)
    except ServiceError as exc:
        log_failure("deleteLabel", info, exc)
        return DeleteLabelError(error_codes=error_codes(exc, DeleteLabelErrorCode))
    return DeleteLabelSuccess(label=Label.from_entry(entry))


def update_label(info: Info, input: UpdateLabelInput) -> UpdateLabelResult:
    user_id = current_user_id(info)
    if user_id is None:
        return UpdateLabelError(error_codes=[UpdateLabelErrorCode.UNAUTHORIZED])
    try:
        entry = info.context.labels.update_label(
            str(input.label_id),
            user_id,
            name=input.name,
            color=input.color,
            description=input.description,
        )
    except ServiceError as exc:
        log_failure("updateLabel", info, exc)
        return UpdateLabelError(error_codes=error_codes(exc, UpdateLabelErrorCode))
    return UpdateLabelSuccess(label=Label.from_entry(entry))


def set_labels(info: Info, input: SetLabelsInput) -> SetLabelsResult:
    user_id = current_user_id(info)
    if user_id is None:
        return SetLabelsError(error_codes=[SetLabelsErrorCode.UNAUTHORIZED])
    try:
        entries = info.context.labels.set_labels_for_library_item(
            str(input.page_id),
            user_id,
            [str(label_id) for label_id in input.label_ids],
        )
    except ServiceError as exc:
        log_failure("setLabels", info, exc)
        return SetLabelsError(error_codes=error_codes(exc, SetLabelsErrorCode))
    return SetLabelsSuccess(labels=[Label.from_entry(entry) for entry in entries])


def set_labels_for_highlight(info: Info, input: SetLabelsForHighlightInput) -> SetLabelsResult:
    user_id = current_user_id(info)
    if user_id is None:
        return SetLabelsError(error_codes=[SetLabelsErrorCode.UNAUTHORIZED])
    try:
        entries = info.context.labels.set_labels_for_highlight(
            str(input.highlight_id),
            user_id,
            [str(label_id) for label_id in input.label_ids],
        )
    except ServiceError as exc:
        log_failure("setLabelsForHighlight", info, exc)
        return SetLabelsError(error_codes=error_codes(exc, SetLabelsErrorCode))
    return SetLabelsSuccess(labels=[Label.from_entry(entry) for entry in entries])


def move_label(info: Info, input: MoveLabelInput) -> MoveLabelResult:
    user_id = current_user_id(info)
    if user_id is None:
        return MoveLabelError(error_codes=[MoveLabelErrorCode.UNAUTHORIZED])
    try:
        entry = info.context.labels.move_label(
            str(input.label_id),
            user_id,
            optional_id(input.after_label_id),
        )
    except ServiceError as exc:
        log_failure("moveLabel", info, exc)
        return MoveLabelError(error_codes=error_codes(exc, MoveLabelErrorCode))
    return MoveLabelSuccess(label=Label.from_entry(entry))


__all__ = [
    "create_label",
    "delete_label",
    "move_label",
    "resolve_labels",
    "set_labels",
    "set_labels_for_highlight",
    "update_label",
]
