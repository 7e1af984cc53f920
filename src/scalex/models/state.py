"""Deployment state models for persisted integration ownership."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

STATE_SEPARATOR = "__"


class StateAction(str, Enum):
    """Outcome of comparing the current run with the persisted state."""

    NEW = "new"
    SYNC = "sync"
    UPDATE = "update"


class DeploymentState(BaseModel):
    """Integration IDs owned by one deployment identity.

    The persisted record is the IDs joined with ``__``; an empty record is
    the empty string. The format is shared with records written by earlier
    releases and must not change.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    integration_ids: tuple[str, ...] = Field(
        default=(), description="Owned integration IDs in insertion order"
    )

    @classmethod
    def from_ids(cls, integration_ids: Iterable[str]) -> DeploymentState:
        return cls(integration_ids=tuple(integration_ids))

    @classmethod
    def from_record(cls, record: str) -> DeploymentState:
        """Parse a persisted state record."""
        ids = [part for part in record.strip().split(STATE_SEPARATOR) if part]
        return cls(integration_ids=tuple(ids))

    def to_record(self) -> str:
        """Serialize to the persisted record format."""
        return STATE_SEPARATOR.join(self.integration_ids)

    def __contains__(self, integration_id: object) -> bool:
        return integration_id in self.integration_ids

    @property
    def is_empty(self) -> bool:
        return not self.integration_ids
