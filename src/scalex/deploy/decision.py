"""Per-route scaling decisions.

Every declared event is in one of four states, the product of the
integration type its route currently targets and whether its scaling policy
covers the target region:

==============  ===========  ==========================================
integration     in region    action
==============  ===========  ==========================================
AWS_PROXY       no           nothing
HTTP_PROXY      yes          update URI, or sync the authorizer
HTTP_PROXY      no           scale down: rebind to compute, delete HTTP
AWS_PROXY       yes          scale up: create HTTP, rebind
==============  ===========  ==========================================

Decisions are computed from the immutable snapshot without side effects and
applied by ``MutationExecutor``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from scalex.deploy.resolver import ResolvedRoute
from scalex.lib.errors import ConfigError, ResolutionError
from scalex.models.gateway import (
    ApiSnapshot,
    AuthorizerBinding,
    Integration,
    Route,
)
from scalex.models.policy import DeclaredEvent


class ScaleAction(str, Enum):
    """Action decided for one route."""

    NOOP = "noop"
    UPDATE_URI = "update_uri"
    SYNC_AUTHORIZER = "sync_authorizer"
    IN_SYNC = "in_sync"
    SCALE_UP = "scale_up"
    SCALE_DOWN = "scale_down"


_OWNS_CURRENT_INTEGRATION = {
    ScaleAction.UPDATE_URI,
    ScaleAction.SYNC_AUTHORIZER,
    ScaleAction.IN_SYNC,
}


@dataclass(frozen=True)
class RouteDecision:
    """The mutation required to bring one route in line with its policy.

    Attributes:
        declared: Declared event the decision is for
        route: Current route
        integration: Integration the route currently targets
        action: Decided action
        http_url: Backend URL for UPDATE_URI and SCALE_UP
        compute_integration_id: Rebind target for SCALE_DOWN
        authorizer: Authorizer change applied with the route update, if any
    """

    declared: DeclaredEvent
    route: Route
    integration: Integration
    action: ScaleAction
    http_url: str | None = None
    compute_integration_id: str | None = None
    authorizer: AuthorizerBinding | None = None

    @property
    def function_name(self) -> str:
        return self.declared.function_name

    @property
    def route_key(self) -> str:
        return self.route.route_key

    @property
    def method(self) -> str:
        return self.declared.event.http_method

    @property
    def owned_integration_id(self) -> str | None:
        """Existing integration this route keeps owning.

        SCALE_UP owns an integration too, but its ID is only known once the
        executor has created it.
        """
        if self.action in _OWNS_CURRENT_INTEGRATION:
            return self.integration.integration_id
        return None

    @property
    def is_mutation(self) -> bool:
        return self.action not in (ScaleAction.NOOP, ScaleAction.IN_SYNC)

    def describe(self) -> str:
        """One-line summary used for dry runs and logs."""
        prefix = f"function '{self.function_name}' [{self.route_key}]"
        integration_id = self.integration.integration_id
        match self.action:
            case ScaleAction.NOOP:
                return f"{prefix}: no change"
            case ScaleAction.IN_SYNC:
                return f"{prefix}: scale status already in-sync"
            case ScaleAction.UPDATE_URI:
                return (
                    f"{prefix}: update integration '{integration_id}' "
                    f"uri to {self.http_url}"
                )
            case ScaleAction.SYNC_AUTHORIZER:
                return f"{prefix}: set authorizer to {self.authorizer}"
            case ScaleAction.SCALE_UP:
                return (
                    f"{prefix}: scale UP to HTTP_PROXY {self.http_url} "
                    f"(authorizer: {self.authorizer})"
                )
            case ScaleAction.SCALE_DOWN:
                return (
                    f"{prefix}: scale DOWN to AWS_PROXY "
                    f"'{self.compute_integration_id}', delete '{integration_id}' "
                    f"(authorizer: {self.authorizer})"
                )
        return prefix


def sync_authorizer(declared: DeclaredEvent, route: Route) -> AuthorizerBinding | None:
    """Return the authorizer change an in-sync scaled route needs, if any."""
    event = declared.event
    policy = event.scale
    keep = policy is not None and policy.keep_authorizer

    if event.authorizer is not None and event.authorizer.id and keep:
        if not route.has_authorizer or route.authorizer_id != event.authorizer.id:
            return AuthorizerBinding.attach(
                event.authorizer.id, event.authorizer.authorization_type
            )
        return None

    if route.has_authorizer:
        return AuthorizerBinding.remove()
    return None


def _declared_authorizer(declared: DeclaredEvent) -> AuthorizerBinding:
    authorizer = declared.event.authorizer
    if authorizer is not None and authorizer.id:
        return AuthorizerBinding.attach(authorizer.id, authorizer.authorization_type)
    return AuthorizerBinding.remove()


def _require_http_url(declared: DeclaredEvent) -> str:
    policy = declared.policy
    if policy is None or not policy.http_url:
        field = f"{declared.config_path}.scale.httpUrl"
        raise ConfigError(field, f"Missing required serverless parameter at {field}")
    return policy.http_url


def decide(
    declared: DeclaredEvent,
    resolved: ResolvedRoute,
    snapshot: ApiSnapshot,
    region: str,
) -> RouteDecision:
    """Decide the mutation for one declared event.

    Args:
        declared: Declared event with its scaling policy
        resolved: Route and integration resolved from the snapshot
        snapshot: Gateway snapshot, used to find the compute integration
        region: Target region of this run

    Returns:
        RouteDecision describing the required mutation

    Raises:
        ResolutionError: If a scale-down has no compute integration to return to
        ConfigError: If a scaled route has no HTTP backend URL
    """
    route, integration = resolved.route, resolved.integration
    policy = declared.policy
    is_scale = policy is not None and policy.targets(region)

    if integration.is_http_proxy and is_scale:
        http_url = _require_http_url(declared)
        if integration.integration_uri != http_url:
            return RouteDecision(
                declared, route, integration, ScaleAction.UPDATE_URI, http_url=http_url
            )

        authorizer = sync_authorizer(declared, route)
        if authorizer is not None:
            return RouteDecision(
                declared,
                route,
                integration,
                ScaleAction.SYNC_AUTHORIZER,
                authorizer=authorizer,
            )
        return RouteDecision(declared, route, integration, ScaleAction.IN_SYNC)

    if integration.is_http_proxy:
        compute = snapshot.find_compute_integration(declared.deployed_name)
        if compute is None:
            raise ResolutionError(
                declared.function_name,
                f"no AWS_PROXY integration found for function "
                f"'{declared.deployed_name}' to scale down to",
            )
        return RouteDecision(
            declared,
            route,
            integration,
            ScaleAction.SCALE_DOWN,
            compute_integration_id=compute.integration_id,
            authorizer=_declared_authorizer(declared),
        )

    if integration.is_compute_proxy and is_scale:
        keep = policy is not None and policy.keep_authorizer
        authorizer = (
            _declared_authorizer(declared) if keep else AuthorizerBinding.remove()
        )
        return RouteDecision(
            declared,
            route,
            integration,
            ScaleAction.SCALE_UP,
            http_url=_require_http_url(declared),
            authorizer=authorizer,
        )

    return RouteDecision(declared, route, integration, ScaleAction.NOOP)
