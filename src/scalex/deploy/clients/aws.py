"""AWS implementations of the gateway and object store clients."""

from __future__ import annotations

from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from scalex.deploy.clients.base import GatewayClient, ObjectStore
from scalex.lib.errors import DeploymentError, StateNotFoundError, StateStoreError
from scalex.lib.logging_config import get_logger
from scalex.models.gateway import (
    AuthorizationType,
    AuthorizerBinding,
    Integration,
    IntegrationType,
    Route,
)

logger = get_logger(__name__)

PAYLOAD_FORMAT_VERSION = "1.0"
_INTEGRATION_NOT_FOUND_MESSAGE = "Invalid Integration identifier specified"
_S3_NOT_FOUND_CODES = {"NoSuchKey", "404", "NotFound"}


def _error_code(exc: Exception) -> str:
    if isinstance(exc, ClientError):
        return str(exc.response.get("Error", {}).get("Code", ""))
    return ""


def _route_from_item(item: dict[str, Any]) -> Route:
    return Route(
        route_id=item["RouteId"],
        route_key=item["RouteKey"],
        target=item.get("Target"),
        authorizer_id=item.get("AuthorizerId") or None,
        authorization_type=(
            item.get("AuthorizationType") or AuthorizationType.NONE.value
        ),
    )


def _integration_from_item(item: dict[str, Any]) -> Integration:
    return Integration(
        integration_id=item["IntegrationId"],
        integration_type=item.get("IntegrationType", ""),
        integration_uri=item.get("IntegrationUri"),
        integration_method=item.get("IntegrationMethod"),
    )


class ApiGatewayV2Client(GatewayClient):
    """Gateway client for API Gateway v2 HTTP APIs."""

    def __init__(
        self,
        region: str,
        *,
        profile: str | None = None,
        client: Any | None = None,
    ) -> None:
        """Initialize the API Gateway v2 client.

        Args:
            region: AWS region of the API
            profile: Optional named AWS profile
            client: Preconfigured boto3 ``apigatewayv2`` client
        """
        self._region = region
        if client is None:
            session = boto3.session.Session(profile_name=profile, region_name=region)
            client = session.client("apigatewayv2")
        self._client = client

    def _paginate(self, operation: str, **params: Any) -> list[dict[str, Any]]:
        paginator = self._client.get_paginator(operation)
        items: list[dict[str, Any]] = []
        for page in paginator.paginate(**params):
            items.extend(page.get("Items", []))
        return items

    def find_api_id(self, api_name: str) -> str | None:
        try:
            apis = self._paginate("get_apis")
        except (BotoCoreError, ClientError) as exc:
            raise DeploymentError(
                operation="get_apis",
                message=f"Error retrieving api gateway id: {exc}",
            ) from exc

        for api in apis:
            if api.get("Name") == api_name:
                return str(api["ApiId"])
        return None

    def list_routes(self, api_id: str) -> list[Route]:
        try:
            items = self._paginate("get_routes", ApiId=api_id)
        except (BotoCoreError, ClientError) as exc:
            raise DeploymentError(
                operation="get_routes",
                message=f"Error listing api gateway routes: {exc}",
            ) from exc
        return [_route_from_item(item) for item in items]

    def list_integrations(self, api_id: str) -> list[Integration]:
        try:
            items = self._paginate("get_integrations", ApiId=api_id)
        except (BotoCoreError, ClientError) as exc:
            raise DeploymentError(
                operation="get_integrations",
                message=f"Error listing api gateway integrations: {exc}",
            ) from exc
        return [_integration_from_item(item) for item in items]

    def create_integration(self, api_id: str, method: str, uri: str) -> str:
        try:
            response = self._client.create_integration(
                ApiId=api_id,
                IntegrationType=IntegrationType.HTTP_PROXY.value,
                PayloadFormatVersion=PAYLOAD_FORMAT_VERSION,
                IntegrationMethod=method.upper(),
                IntegrationUri=uri,
            )
        except (BotoCoreError, ClientError) as exc:
            raise DeploymentError(
                operation="create_integration",
                message=f"Error creating http integration: {exc}",
            ) from exc
        return str(response["IntegrationId"])

    def update_integration(self, api_id: str, integration_id: str, uri: str) -> None:
        try:
            self._client.update_integration(
                ApiId=api_id,
                IntegrationId=integration_id,
                IntegrationUri=uri,
            )
        except (BotoCoreError, ClientError) as exc:
            raise DeploymentError(
                operation="update_integration",
                message=f"Error updating http integration '{integration_id}': {exc}",
            ) from exc

    def delete_integration(self, api_id: str, integration_id: str) -> None:
        try:
            self._client.delete_integration(ApiId=api_id, IntegrationId=integration_id)
        except ClientError as exc:
            if (
                _error_code(exc) == "NotFoundException"
                or _INTEGRATION_NOT_FOUND_MESSAGE in str(exc)
            ):
                logger.debug(f"Integration '{integration_id}' already deleted")
                return
            raise DeploymentError(
                operation="delete_integration",
                message=f"Error deleting http integration '{integration_id}': {exc}",
            ) from exc
        except BotoCoreError as exc:
            raise DeploymentError(
                operation="delete_integration",
                message=f"Error deleting http integration '{integration_id}': {exc}",
            ) from exc

    def update_route(
        self,
        api_id: str,
        route_id: str,
        *,
        target: str | None = None,
        authorizer: AuthorizerBinding | None = None,
    ) -> None:
        params: dict[str, Any] = {"ApiId": api_id, "RouteId": route_id}
        if target is not None:
            params["Target"] = target
        if authorizer is not None:
            params["AuthorizationType"] = authorizer.authorization_type.value
            if not authorizer.is_removal:
                params["AuthorizerId"] = authorizer.authorizer_id

        try:
            self._client.update_route(**params)
        except (BotoCoreError, ClientError) as exc:
            raise DeploymentError(
                operation="update_route",
                message=f"Error updating route '{route_id}': {exc}",
            ) from exc


class S3ObjectStore(ObjectStore):
    """Object store backed by Amazon S3."""

    def __init__(
        self,
        region: str,
        *,
        profile: str | None = None,
        client: Any | None = None,
    ) -> None:
        """Initialize the S3 object store.

        Args:
            region: AWS region used for the S3 client
            profile: Optional named AWS profile
            client: Preconfigured boto3 ``s3`` client
        """
        if client is None:
            session = boto3.session.Session(profile_name=profile, region_name=region)
            client = session.client("s3")
        self._client = client

    def check_bucket(self, bucket: str) -> None:
        try:
            self._client.head_bucket(Bucket=bucket)
        except (BotoCoreError, ClientError) as exc:
            raise StateStoreError(
                f"Error retrieving s3 bucket info for '{bucket}': {exc}"
            ) from exc

    def get(self, bucket: str, key: str) -> bytes:
        try:
            response = self._client.get_object(Bucket=bucket, Key=key)
            return bytes(response["Body"].read())
        except ClientError as exc:
            if _error_code(exc) in _S3_NOT_FOUND_CODES:
                raise StateNotFoundError(bucket, key) from exc
            raise StateStoreError(f"Error reading scalex state file: {exc}") from exc
        except BotoCoreError as exc:
            raise StateStoreError(f"Error reading scalex state file: {exc}") from exc

    def put(self, bucket: str, key: str, body: bytes) -> None:
        try:
            self._client.put_object(Bucket=bucket, Key=key, Body=body)
        except (BotoCoreError, ClientError) as exc:
            raise StateStoreError(
                f"Error setting new state to scalex state file: {exc}"
            ) from exc

    def delete(self, bucket: str, key: str) -> None:
        try:
            self._client.delete_object(Bucket=bucket, Key=key)
        except (BotoCoreError, ClientError) as exc:
            raise StateStoreError(f"Error deleting scalex state file: {exc}") from exc
