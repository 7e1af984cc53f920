"""Deployment state record helpers."""

from __future__ import annotations

from scalex.deploy.clients.base import ObjectStore
from scalex.lib.errors import StateNotFoundError, StateStoreError
from scalex.lib.logging_config import get_logger
from scalex.models.state import DeploymentState

logger = get_logger(__name__)

STATE_KEY_SUFFIX = "scalex-state.txt"


def get_state_key(stage: str, service: str, region: str) -> str:
    """Return the state record key for a deployment identity."""
    return f"{stage}-{service}-{region}-{STATE_KEY_SUFFIX}"


class StateStore:
    """Reads and writes the state record of one deployment identity.

    Concurrent runs against the same identity are not serialized; the last
    successful write wins.
    """

    def __init__(self, object_store: ObjectStore, bucket: str, key: str) -> None:
        self._object_store = object_store
        self.bucket = bucket
        self.key = key

    @property
    def location(self) -> str:
        return f"s3://{self.bucket}/{self.key}"

    def check_bucket(self) -> None:
        """Verify the state bucket is reachable.

        Raises:
            StateStoreError: If the bucket is missing or inaccessible.
        """
        self._object_store.check_bucket(self.bucket)
        logger.info(f"[scalex event] state bucket '{self.bucket}' is valid")

    def load(self) -> DeploymentState | None:
        """Load the persisted state.

        Returns:
            The persisted state, or None when no record exists.

        Raises:
            StateStoreError: If the record cannot be read or decoded.
        """
        try:
            body = self._object_store.get(self.bucket, self.key)
        except StateNotFoundError:
            logger.debug(f"No state record at {self.location}")
            return None

        try:
            content = body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise StateStoreError(
                f"Invalid state record format in {self.location}: {exc}"
            ) from exc

        return DeploymentState.from_record(content)

    def save(self, state: DeploymentState) -> None:
        """Persist the state, overwriting any existing record.

        Raises:
            StateStoreError: If the write fails.
        """
        self._object_store.put(self.bucket, self.key, state.to_record().encode("utf-8"))

    def delete(self) -> None:
        """Delete the state record.

        Raises:
            StateStoreError: If the delete fails.
        """
        self._object_store.delete(self.bucket, self.key)
