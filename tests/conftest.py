"""Pytest configuration and shared fixtures for ScaleX tests."""

from __future__ import annotations

import itertools
import logging
import os
from collections.abc import Callable, Generator
from typing import Any

import pytest

from scalex.config.loader import ConfigLoader
from scalex.deploy.clients.base import GatewayClient, ObjectStore
from scalex.lib.errors import StateNotFoundError, StateStoreError
from scalex.lib.logging_config import LOGGER_NAME
from scalex.models.gateway import (
    AuthorizationType,
    AuthorizerBinding,
    Integration,
    IntegrationType,
    Route,
    format_target,
)
from scalex.models.policy import ServiceConfig

SERVICE = "svc"
STAGE = "dev"
REGION = "us-east-1"
API_ID = "api-1"
BUCKET = "state-bucket"
STATE_KEY = f"{STAGE}-{SERVICE}-{REGION}-scalex-state.txt"

MUTATING_CALLS = {
    "create_integration",
    "update_integration",
    "delete_integration",
    "update_route",
}


def lambda_uri(function_name: str) -> str:
    return f"arn:aws:lambda:{REGION}:123456789012:function:{function_name}"


class FakeGatewayClient(GatewayClient):
    """In-memory HTTP API that records every call in order.

    Mutations change the stored routes and integrations, so a second run
    against the same instance observes the first run's effects.
    """

    def __init__(self, api_id: str = API_ID, api_name: str = f"{STAGE}-{SERVICE}"):
        self.apis = {api_name: api_id}
        self.routes: dict[str, Route] = {}
        self.integrations: dict[str, Integration] = {}
        self.calls: list[tuple[Any, ...]] = []
        self.failures: dict[str, Exception] = {}
        self._ids = itertools.count(1)

    def add_compute_route(
        self,
        route_id: str,
        route_key: str,
        function_name: str,
        *,
        authorizer_id: str | None = None,
    ) -> Route:
        integration_id = f"lambda-{route_id}"
        self.integrations[integration_id] = Integration(
            integration_id=integration_id,
            integration_type=IntegrationType.AWS_PROXY.value,
            integration_uri=lambda_uri(function_name),
        )
        return self._add_route(route_id, route_key, integration_id, authorizer_id)

    def add_http_route(
        self,
        route_id: str,
        route_key: str,
        uri: str,
        *,
        integration_id: str,
        function_name: str | None = None,
        authorizer_id: str | None = None,
    ) -> Route:
        """Add a route that is already scaled to an HTTP backend.

        When ``function_name`` is given, the compute integration the route
        was originally deployed with is kept alongside.
        """
        if function_name is not None:
            compute_id = f"lambda-{route_id}"
            self.integrations[compute_id] = Integration(
                integration_id=compute_id,
                integration_type=IntegrationType.AWS_PROXY.value,
                integration_uri=lambda_uri(function_name),
            )
        self.integrations[integration_id] = Integration(
            integration_id=integration_id,
            integration_type=IntegrationType.HTTP_PROXY.value,
            integration_uri=uri,
            integration_method="GET",
        )
        return self._add_route(route_id, route_key, integration_id, authorizer_id)

    def _add_route(
        self,
        route_id: str,
        route_key: str,
        integration_id: str,
        authorizer_id: str | None,
    ) -> Route:
        route = Route(
            route_id=route_id,
            route_key=route_key,
            target=format_target(integration_id),
            authorizer_id=authorizer_id,
            authorization_type=(
                AuthorizationType.JWT.value
                if authorizer_id
                else AuthorizationType.NONE.value
            ),
        )
        self.routes[route_id] = route
        return route

    @property
    def mutations(self) -> list[tuple[Any, ...]]:
        return [call for call in self.calls if call[0] in MUTATING_CALLS]

    def calls_named(self, name: str) -> list[tuple[Any, ...]]:
        return [call for call in self.calls if call[0] == name]

    def _record(self, *call: Any) -> None:
        self.calls.append(call)
        if call[0] in self.failures:
            raise self.failures[call[0]]

    def find_api_id(self, api_name: str) -> str | None:
        self._record("find_api_id", api_name)
        return self.apis.get(api_name)

    def list_routes(self, api_id: str) -> list[Route]:
        self._record("list_routes", api_id)
        return list(self.routes.values())

    def list_integrations(self, api_id: str) -> list[Integration]:
        self._record("list_integrations", api_id)
        return list(self.integrations.values())

    def create_integration(self, api_id: str, method: str, uri: str) -> str:
        self._record("create_integration", api_id, method, uri)
        integration_id = f"http-{next(self._ids)}"
        self.integrations[integration_id] = Integration(
            integration_id=integration_id,
            integration_type=IntegrationType.HTTP_PROXY.value,
            integration_uri=uri,
            integration_method=method,
        )
        return integration_id

    def update_integration(self, api_id: str, integration_id: str, uri: str) -> None:
        self._record("update_integration", api_id, integration_id, uri)
        current = self.integrations[integration_id]
        self.integrations[integration_id] = current.model_copy(
            update={"integration_uri": uri}
        )

    def delete_integration(self, api_id: str, integration_id: str) -> None:
        self._record("delete_integration", api_id, integration_id)
        self.integrations.pop(integration_id, None)

    def update_route(
        self,
        api_id: str,
        route_id: str,
        *,
        target: str | None = None,
        authorizer: AuthorizerBinding | None = None,
    ) -> None:
        self._record("update_route", api_id, route_id, target, authorizer)
        update: dict[str, Any] = {}
        if target is not None:
            update["target"] = target
        if authorizer is not None:
            update["authorizer_id"] = authorizer.authorizer_id
            update["authorization_type"] = authorizer.authorization_type.value
        self.routes[route_id] = self.routes[route_id].model_copy(update=update)


class FakeObjectStore(ObjectStore):
    """In-memory object store that records every call in order."""

    def __init__(self, buckets: tuple[str, ...] = (BUCKET,)) -> None:
        self.buckets = set(buckets)
        self.objects: dict[tuple[str, str], bytes] = {}
        self.calls: list[tuple[str, ...]] = []

    def check_bucket(self, bucket: str) -> None:
        self.calls.append(("check_bucket", bucket))
        if bucket not in self.buckets:
            raise StateStoreError(f"Error retrieving s3 bucket info for '{bucket}'")

    def get(self, bucket: str, key: str) -> bytes:
        self.calls.append(("get", bucket, key))
        try:
            return self.objects[(bucket, key)]
        except KeyError:
            raise StateNotFoundError(bucket, key) from None

    def put(self, bucket: str, key: str, body: bytes) -> None:
        self.calls.append(("put", bucket, key))
        self.objects[(bucket, key)] = body

    def delete(self, bucket: str, key: str) -> None:
        self.calls.append(("delete", bucket, key))
        self.objects.pop((bucket, key), None)

    def read_record(self, key: str = STATE_KEY) -> str | None:
        body = self.objects.get((BUCKET, key))
        return body.decode("utf-8") if body is not None else None

    def write_record(self, record: str, key: str = STATE_KEY) -> None:
        self.objects[(BUCKET, key)] = record.encode("utf-8")


@pytest.fixture
def gateway() -> FakeGatewayClient:
    """Create an empty in-memory gateway."""
    return FakeGatewayClient()


@pytest.fixture
def object_store() -> FakeObjectStore:
    """Create an in-memory object store holding the state bucket."""
    return FakeObjectStore()


@pytest.fixture
def make_config() -> Callable[..., ServiceConfig]:
    """Return a factory building validated service configurations.

    The factory takes the ``functions`` mapping as written in a service file.
    """

    def _make(
        functions: dict[str, Any],
        *,
        region: str = REGION,
        http_api_id: str | None = None,
        max_concurrency: int = 4,
    ) -> ServiceConfig:
        provider: dict[str, Any] = {"name": "aws", "stage": STAGE, "region": region}
        if http_api_id is not None:
            provider["httpApi"] = {"id": http_api_id}
        raw = {
            "service": SERVICE,
            "provider": provider,
            "custom": {
                "scalex": {"bucketName": BUCKET, "maxConcurrency": max_concurrency}
            },
            "functions": functions,
        }
        return ConfigLoader().validate(raw)

    return _make


@pytest.fixture
def isolated_env() -> Generator[dict[str, str], None, None]:
    """Provide isolated environment variables for testing.

    Saves current environment and restores after test.
    """
    original_env = os.environ.copy()
    yield original_env
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture(autouse=True)
def reset_scalex_logger() -> Generator[None, None, None]:
    """Undo handler and propagation changes made by ``setup_logging``."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
