"""Base interfaces for the remote services ScaleX talks to."""

from __future__ import annotations

from abc import ABC, abstractmethod

from scalex.models.gateway import AuthorizerBinding, Integration, Route


class GatewayClient(ABC):
    """Abstract base class for HTTP API gateway clients."""

    @abstractmethod
    def find_api_id(self, api_name: str) -> str | None:
        """Return the ID of the API named ``api_name``, or None if absent.

        Raises:
            DeploymentError: If the API listing fails.
        """

    @abstractmethod
    def list_routes(self, api_id: str) -> list[Route]:
        """Return every route of an API, following pagination.

        Raises:
            DeploymentError: If the listing fails.
        """

    @abstractmethod
    def list_integrations(self, api_id: str) -> list[Integration]:
        """Return every integration of an API, following pagination.

        Raises:
            DeploymentError: If the listing fails.
        """

    @abstractmethod
    def create_integration(self, api_id: str, method: str, uri: str) -> str:
        """Create an HTTP proxy integration.

        Args:
            api_id: API identifier.
            method: HTTP method forwarded to the backend.
            uri: Backend URL.

        Returns:
            The new integration ID.

        Raises:
            DeploymentError: If creation fails.
        """

    @abstractmethod
    def update_integration(self, api_id: str, integration_id: str, uri: str) -> None:
        """Point an existing integration at a new backend URI.

        Raises:
            DeploymentError: If the update fails.
        """

    @abstractmethod
    def delete_integration(self, api_id: str, integration_id: str) -> None:
        """Delete an integration.

        Deleting an integration that no longer exists is not an error.

        Raises:
            DeploymentError: If deletion fails for any other reason.
        """

    @abstractmethod
    def update_route(
        self,
        api_id: str,
        route_id: str,
        *,
        target: str | None = None,
        authorizer: AuthorizerBinding | None = None,
    ) -> None:
        """Update a route's target and/or authorizer.

        Args:
            api_id: API identifier.
            route_id: Route identifier.
            target: New target in ``integrations/{id}`` form, if changing.
            authorizer: Authorizer to attach or the removal binding, if changing.

        Raises:
            DeploymentError: If the update fails.
        """


class ObjectStore(ABC):
    """Abstract base class for the object store holding state records."""

    @abstractmethod
    def check_bucket(self, bucket: str) -> None:
        """Verify the bucket exists and is reachable.

        Raises:
            StateStoreError: If the bucket is missing or inaccessible.
        """

    @abstractmethod
    def get(self, bucket: str, key: str) -> bytes:
        """Return the object body.

        Raises:
            StateNotFoundError: If the object does not exist.
            StateStoreError: If the read fails for any other reason.
        """

    @abstractmethod
    def put(self, bucket: str, key: str, body: bytes) -> None:
        """Write an object, overwriting any existing one.

        Raises:
            StateStoreError: If the write fails.
        """

    @abstractmethod
    def delete(self, bucket: str, key: str) -> None:
        """Delete an object.

        Raises:
            StateStoreError: If the delete fails.
        """
