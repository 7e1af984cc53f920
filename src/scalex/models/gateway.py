"""Pydantic models for API gateway objects.

These models are immutable views of the routes and integrations of one HTTP
API, captured once per run in an ``ApiSnapshot``.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

TARGET_PREFIX = "integrations/"


class IntegrationType(str, Enum):
    """Integration types the engine acts upon."""

    AWS_PROXY = "AWS_PROXY"
    HTTP_PROXY = "HTTP_PROXY"


class AuthorizationType(str, Enum):
    """Route authorization types."""

    NONE = "NONE"
    JWT = "JWT"
    CUSTOM = "CUSTOM"
    AWS_IAM = "AWS_IAM"


def format_target(integration_id: str) -> str:
    """Return the route target string for an integration ID."""
    return f"{TARGET_PREFIX}{integration_id}"


def parse_target(target: str | None) -> str | None:
    """Return the integration ID referenced by a route target, if any."""
    if not target or not target.startswith(TARGET_PREFIX):
        return None
    integration_id = target[len(TARGET_PREFIX) :]
    return integration_id or None


class Route(BaseModel):
    """A gateway route binding.

    Attributes:
        route_id: Gateway-assigned route identifier
        route_key: Method and path, e.g. ``GET /users``
        target: Integration reference in ``integrations/{id}`` form
        authorizer_id: Attached authorizer, if any
        authorization_type: Authorization type of the route
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    route_id: str = Field(..., description="Route identifier")
    route_key: str = Field(..., description="Route key (METHOD /path)")
    target: str | None = Field(default=None, description="Route target")
    authorizer_id: str | None = Field(default=None, description="Authorizer ID")
    authorization_type: str = Field(
        default=AuthorizationType.NONE.value, description="Authorization type"
    )

    @property
    def integration_id(self) -> str | None:
        """Integration ID parsed from the route target."""
        return parse_target(self.target)

    @property
    def has_authorizer(self) -> bool:
        """Whether an authorizer is currently attached to the route.

        A route set to ``NONE`` may still report its previous authorizer ID.
        """
        return (
            bool(self.authorizer_id)
            and self.authorization_type != AuthorizationType.NONE.value
        )


class Integration(BaseModel):
    """A gateway backend integration.

    ``integration_type`` is kept as a plain string so integration types the
    engine does not manage (``HTTP``, ``MOCK``, ...) still load.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    integration_id: str = Field(..., description="Integration identifier")
    integration_type: str = Field(..., description="Integration type")
    integration_uri: str | None = Field(default=None, description="Backing URI")
    integration_method: str | None = Field(default=None, description="HTTP method")

    @property
    def is_compute_proxy(self) -> bool:
        return self.integration_type == IntegrationType.AWS_PROXY.value

    @property
    def is_http_proxy(self) -> bool:
        return self.integration_type == IntegrationType.HTTP_PROXY.value

    def invokes_function(self, function_name: str) -> bool:
        """Return True if this is a compute integration for ``function_name``."""
        if not self.is_compute_proxy or not self.integration_uri:
            return False
        return self.integration_uri.endswith(f"function:{function_name}")


class ApiSnapshot(BaseModel):
    """Point-in-time view of all routes and integrations of one API."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    api_id: str = Field(..., description="API identifier")
    routes: tuple[Route, ...] = Field(default=(), description="Routes of the API")
    integrations: tuple[Integration, ...] = Field(
        default=(), description="Integrations of the API"
    )

    def find_route(self, route_key: str) -> Route | None:
        return next((r for r in self.routes if r.route_key == route_key), None)

    def find_integration(self, integration_id: str) -> Integration | None:
        return next(
            (i for i in self.integrations if i.integration_id == integration_id),
            None,
        )

    def find_compute_integration(self, function_name: str) -> Integration | None:
        """Return the compute-proxy integration backing ``function_name``."""
        return next(
            (i for i in self.integrations if i.invokes_function(function_name)),
            None,
        )


class AuthorizerBinding(BaseModel):
    """Authorizer to apply when a route is updated.

    A binding either attaches a concrete authorizer or removes authorization
    from the route (``authorizer_id`` is None and the type is ``NONE``).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    authorizer_id: str | None = None
    authorization_type: AuthorizationType = AuthorizationType.NONE

    @classmethod
    def remove(cls) -> AuthorizerBinding:
        return cls()

    @classmethod
    def attach(
        cls,
        authorizer_id: str,
        authorization_type: AuthorizationType = AuthorizationType.JWT,
    ) -> AuthorizerBinding:
        return cls(authorizer_id=authorizer_id, authorization_type=authorization_type)

    @property
    def is_removal(self) -> bool:
        return self.authorizer_id is None

    def __str__(self) -> str:
        if self.is_removal:
            return "remove"
        return f"{self.authorizer_id} ({self.authorization_type.value})"
