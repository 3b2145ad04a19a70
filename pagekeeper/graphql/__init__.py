"""GraphQL API for labels, saved pages and integrations."""

from .schema import create_graphql_router, schema

__all__ = ["create_graphql_router", "schema"]
