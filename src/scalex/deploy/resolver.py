"""Resolve declared events to gateway routes and integrations."""

from __future__ import annotations

from dataclasses import dataclass

from scalex.lib.errors import ResolutionError
from scalex.models.gateway import ApiSnapshot, Integration, Route
from scalex.models.policy import DeclaredEvent


@dataclass(frozen=True)
class ResolvedRoute:
    """A route and the integration it currently targets."""

    route: Route
    integration: Integration


def resolve_route(snapshot: ApiSnapshot, declared: DeclaredEvent) -> ResolvedRoute:
    """Find the route of a declared event and the integration it targets.

    The compute deployment creates one route and one compute integration per
    event before ScaleX runs, so a missing route or integration is drift and
    never skipped.

    Args:
        snapshot: Gateway snapshot
        declared: Declared ``httpApi`` event

    Returns:
        The resolved route/integration pair

    Raises:
        ResolutionError: If the route or its integration cannot be found
    """
    route_key = declared.event.route_key
    route = snapshot.find_route(route_key)
    if route is None:
        raise ResolutionError(
            declared.function_name,
            f"no matched route found for '{route_key}'",
        )

    integration_id = route.integration_id
    if integration_id is None:
        raise ResolutionError(
            declared.function_name,
            f"route '{route_key}' has no integration target ({route.target!r})",
        )

    integration = snapshot.find_integration(integration_id)
    if integration is None:
        raise ResolutionError(
            declared.function_name,
            f"no matched integration found for '{route_key}' "
            f"(integration '{integration_id}')",
        )

    return ResolvedRoute(route=route, integration=integration)
