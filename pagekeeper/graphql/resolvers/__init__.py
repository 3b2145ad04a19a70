"""GraphQL resolvers; each one delegates to a service."""

from .integrations import (
    delete_integration,
    export_to_integration,
    import_from_integration,
    resolve_integrations,
    set_integration,
)
from .labels import (
    create_label,
    delete_label,
    move_label,
    resolve_labels,
    set_labels,
    set_labels_for_highlight,
    update_label,
)
from .save_page import save_page

__all__ = [
    "create_label",
    "delete_integration",
    "delete_label",
    "export_to_integration",
    "import_from_integration",
    "move_label",
    "resolve_integrations",
    "resolve_labels",
    "save_page",
    "set_integration",
    "set_labels",
    "set_labels_for_highlight",
    "update_label",
]
