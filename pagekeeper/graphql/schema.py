"""GraphQL schema and the FastAPI router that serves it."""

import strawberry
from strawberry.fastapi import GraphQLRouter

from . import resolvers
from .context import get_graphql_context
from .types import (
    CreateLabelResult,
    DeleteIntegrationResult,
    DeleteLabelResult,
    ExportToIntegrationResult,
    ImportFromIntegrationResult,
    IntegrationsResult,
    LabelsResult,
    MoveLabelResult,
    SaveResult,
    SetIntegrationResult,
    SetLabelsResult,
    UpdateLabelResult,
)


@strawberry.type
class Query:
    labels: LabelsResult = strawberry.field(resolver=resolvers.resolve_labels)
    integrations: IntegrationsResult = strawberry.field(resolver=resolvers.resolve_integrations)


@strawberry.type
class Mutation:
    create_label: CreateLabelResult = strawberry.mutation(resolver=resolvers.create_label)
    delete_label: DeleteLabelResult = strawberry.mutation(resolver=resolvers.delete_label)
    update_label: UpdateLabelResult = strawberry.mutation(resolver=resolvers.update_label)
    set_labels: SetLabelsResult = strawberry.mutation(resolver=resolvers.set_labels)
    set_labels_for_highlight: SetLabelsResult = strawberry.mutation(
        resolver=resolvers.set_labels_for_highlight
    )
    move_label: MoveLabelResult = strawberry.mutation(resolver=resolvers.move_label)
    save_page: SaveResult = strawberry.mutation(resolver=resolvers.save_page)
    set_integration: SetIntegrationResult = strawberry.mutation(
        resolver=resolvers.set_integration
    )
    delete_integration: DeleteIntegrationResult = strawberry.mutation(
        resolver=resolvers.delete_integration
    )
    import_from_integration: ImportFromIntegrationResult = strawberry.mutation(
        resolver=resolvers.import_from_integration
    )
    export_to_integration: ExportToIntegrationResult = strawberry.mutation(
        resolver=resolvers.export_to_integration
    )


schema = strawberry.Schema(query=Query, mutation=Mutation)


def create_graphql_router(*, graphiql: bool = False) -> GraphQLRouter:
    """Build the router to mount in the FastAPI application."""

    return GraphQLRouter(
        schema,
        context_getter=get_graphql_context,
        graphql_ide="graphiql" if graphiql else None,
    )


__all__ = ["Mutation", "Query", "create_graphql_router", "schema"]
