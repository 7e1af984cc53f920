"""Pydantic models for the service configuration consumed by ScaleX.

The service file follows the layout of a serverless framework
``serverless.yml``. Only the keys ScaleX needs are modelled; everything else
is ignored.

Example:
    service: orders
    provider:
      stage: prod
      region: ap-southeast-1
    custom:
      scalex:
        bucketName: my-state-bucket
    functions:
      list:
        handler: handler.list
        events:
          - httpApi:
              method: get
              path: /orders
              scale:
                region: [ap-southeast-1]
                httpUrl: https://orders.internal/orders
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from scalex.models.gateway import AuthorizationType

DEFAULT_MAX_CONCURRENCY = 8

_AUTHORIZER_TYPES = {
    "jwt": AuthorizationType.JWT,
    "request": AuthorizationType.CUSTOM,
    "lambda": AuthorizationType.CUSTOM,
    "custom": AuthorizationType.CUSTOM,
    "aws_iam": AuthorizationType.AWS_IAM,
    "iam": AuthorizationType.AWS_IAM,
}


class ScalingPolicy(BaseModel):
    """Declared scaling policy for one route.

    Attributes:
        region: Regions in which the route is served by the HTTP backend
        http_url: HTTP backend URL used while scaled
        keep_authorizer: Keep the declared authorizer on the scaled route
    """

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    region: tuple[str, ...] = Field(
        ..., min_length=1, description="Regions where the route is scaled"
    )
    http_url: str | None = Field(
        default=None, alias="httpUrl", description="HTTP backend URL"
    )
    keep_authorizer: bool = Field(
        default=False,
        alias="keepAuthorizer",
        description="Keep the declared authorizer when scaled",
    )

    @field_validator("region", mode="before")
    @classmethod
    def validate_region_is_list(cls, v: Any) -> Any:
        """Reject a bare string where a list of regions is expected."""
        if isinstance(v, str):
            raise ValueError("region must be a list of region names")
        return v

    @field_validator("region")
    @classmethod
    def validate_region_names(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        if any(not name.strip() for name in v):
            raise ValueError("region names must not be empty")
        return v

    def targets(self, region: str) -> bool:
        """Return True if ``region`` is one of the scaled regions."""
        return region in self.region


class AuthorizerConfig(BaseModel):
    """Authorizer declared on an ``httpApi`` event."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str | None = Field(default=None, description="Authorizer identifier")
    name: str | None = Field(default=None, description="Authorizer name")
    type: str | None = Field(default=None, description="Authorizer type")

    @property
    def authorization_type(self) -> AuthorizationType:
        """Gateway authorization type for this authorizer (JWT by default)."""
        if not self.type:
            return AuthorizationType.JWT
        return _AUTHORIZER_TYPES.get(self.type.lower(), AuthorizationType.JWT)


class HttpApiEvent(BaseModel):
    """An ``httpApi`` event of a function.

    Accepts both the mapping form and the ``"GET /path"`` shorthand.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    method: str = Field(..., description="HTTP method ('*' for any)")
    path: str = Field(..., description="Route path")
    authorizer: AuthorizerConfig | None = Field(
        default=None, description="Declared authorizer"
    )
    scale: ScalingPolicy | None = Field(default=None, description="Scaling policy")

    @model_validator(mode="before")
    @classmethod
    def parse_shorthand(cls, data: Any) -> Any:
        """Expand the ``"METHOD /path"`` shorthand into a mapping."""
        if isinstance(data, str):
            parts = data.split(None, 1)
            if len(parts) != 2:
                raise ValueError(
                    f"Invalid httpApi shorthand: {data!r}. Expected 'METHOD /path'"
                )
            return {"method": parts[0], "path": parts[1]}
        return data

    @property
    def http_method(self) -> str:
        """Upper-cased method, with ``*`` mapped to the gateway's ``ANY``."""
        method = self.method.upper()
        return "ANY" if method == "*" else method

    @property
    def route_key(self) -> str:
        """Gateway route key for this event."""
        return f"{self.http_method} {self.path}"

    @property
    def authorizer_id(self) -> str | None:
        return self.authorizer.id if self.authorizer else None


class FunctionEvent(BaseModel):
    """A single entry of a function's ``events`` list."""

    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    http_api: HttpApiEvent | None = Field(default=None, alias="httpApi")


class FunctionConfig(BaseModel):
    """Function definition; only the deployed name and events are used."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str | None = Field(default=None, description="Deployed function name")
    events: tuple[FunctionEvent, ...] = Field(default=(), description="Events")


class HttpApiProviderConfig(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str | None = Field(default=None, description="Existing HTTP API ID")


class ProviderConfig(BaseModel):
    """Provider section of the service file."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    name: str = Field(default="aws", description="Cloud provider name")
    stage: str = Field(default="dev", description="Deployment stage")
    region: str = Field(default="us-east-1", description="Target region")
    http_api: HttpApiProviderConfig | None = Field(default=None, alias="httpApi")

    @field_validator("name")
    @classmethod
    def validate_provider_name(cls, v: str) -> str:
        if v != "aws":
            raise ValueError(f"Unsupported provider: {v}. Only 'aws' is supported")
        return v


class ScalexSettings(BaseModel):
    """The ``custom.scalex`` section."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    bucket_name: str = Field(
        ..., min_length=1, alias="bucketName", description="State bucket name"
    )
    max_concurrency: int = Field(
        default=DEFAULT_MAX_CONCURRENCY,
        ge=1,
        le=64,
        alias="maxConcurrency",
        description="Maximum concurrent gateway mutations",
    )


class CustomConfig(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    scalex: ScalexSettings


@dataclass(frozen=True)
class DeclaredEvent:
    """An ``httpApi`` event together with the function that declares it.

    Attributes:
        function_name: Function key in the service file
        deployed_name: Deployed compute function name
        index: Position of the event in the function's events list
        event: The event definition
    """

    function_name: str
    deployed_name: str
    index: int
    event: HttpApiEvent

    @property
    def policy(self) -> ScalingPolicy | None:
        return self.event.scale

    @property
    def config_path(self) -> str:
        return f"functions.{self.function_name}.events[{self.index}].httpApi"


class ServiceConfig(BaseModel):
    """Validated service configuration."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    service: str = Field(..., min_length=1, description="Service name")
    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    custom: CustomConfig
    functions: dict[str, FunctionConfig] = Field(default_factory=dict)

    @property
    def stage(self) -> str:
        return self.provider.stage

    @property
    def region(self) -> str:
        return self.provider.region

    @property
    def bucket_name(self) -> str:
        return self.custom.scalex.bucket_name

    @property
    def max_concurrency(self) -> int:
        return self.custom.scalex.max_concurrency

    @property
    def api_name(self) -> str:
        """Name the framework gives the HTTP API when none is configured."""
        return f"{self.stage}-{self.service}"

    def deployed_function_name(self, function_name: str) -> str:
        """Return the deployed name of a function.

        Uses the explicit ``name`` when set, otherwise the framework default
        ``{service}-{stage}-{function}``.
        """
        function = self.functions[function_name]
        return function.name or f"{self.service}-{self.stage}-{function_name}"

    def http_events(self) -> Iterator[DeclaredEvent]:
        """Yield every ``httpApi`` event declared by the service's functions."""
        for function_name, function in self.functions.items():
            deployed_name = self.deployed_function_name(function_name)
            for index, function_event in enumerate(function.events):
                if function_event.http_api is None:
                    continue
                yield DeclaredEvent(
                    function_name=function_name,
                    deployed_name=deployed_name,
                    index=index,
                    event=function_event.http_api,
                )
