"""
GraphQL schema for the results service.
Defines the complete GraphQL schema using Strawberry.
"""

import strawberry
from graphql.validation import NoSchemaIntrospectionCustomRule
from strawberry.extensions import AddValidationRules
from strawberry.fastapi import GraphQLRouter

from ...core.ports.availability_service import AvailabilityService
from ...core.ports.tenant_resolver import TenantResolver
from .resolvers import create_graphql_query


def create_graphql_schema(
    availability_service: AvailabilityService,
    tenant_resolver: TenantResolver,
    introspection_enabled: bool = True
):
    """
    Create the complete GraphQL schema with dependency injection.

    Args:
        availability_service: Implementation of the AvailabilityService port
        tenant_resolver: Maps the x-api-key header to a tenant
        introspection_enabled: Whether to allow introspection queries

    Returns:
        Strawberry GraphQL schema
    """
    query = create_graphql_query(availability_service, tenant_resolver)
    extensions = [] if introspection_enabled else [AddValidationRules([NoSchemaIntrospectionCustomRule])]
    return strawberry.Schema(query=query, extensions=extensions)


def create_graphql_router(
    availability_service: AvailabilityService,
    tenant_resolver: TenantResolver,
    playground_enabled: bool = False,
    introspection_enabled: bool = True
) -> GraphQLRouter:
    """
    Create GraphQL router with FastAPI integration and playground support.

    Args:
        availability_service: Implementation of the AvailabilityService port
        tenant_resolver: Maps the x-api-key header to a tenant
        playground_enabled: Whether to enable the GraphiQL playground
        introspection_enabled: Whether to enable GraphQL introspection

    Returns:
        GraphQL router for FastAPI integration
    """
    schema = create_graphql_schema(availability_service, tenant_resolver, introspection_enabled)

    return GraphQLRouter(
        schema,
        graphiql=playground_enabled
    )
