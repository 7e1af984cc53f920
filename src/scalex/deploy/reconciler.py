"""Reconcile owned integrations against the persisted deployment state."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass

from scalex.deploy.executor import MutationExecutor
from scalex.deploy.state import StateStore
from scalex.lib.concurrency import gather_bounded
from scalex.lib.logging_config import get_logger
from scalex.models.state import DeploymentState, StateAction

logger = get_logger(__name__)


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of a state reconciliation.

    Attributes:
        action: Whether the record was created, rewritten or left untouched
        state: State describing the current run
        orphaned: Persisted integrations that were deleted
    """

    action: StateAction
    state: DeploymentState
    orphaned: tuple[str, ...]


def find_orphans(
    previous: DeploymentState | None, current: DeploymentState
) -> tuple[str, ...]:
    """Return persisted IDs the current run no longer owns (exact match)."""
    if previous is None:
        return ()
    owned = set(current.integration_ids)
    return tuple(i for i in previous.integration_ids if i not in owned)


def classify_state(
    previous: DeploymentState | None,
    current: DeploymentState,
    orphans_deleted: bool,
) -> StateAction:
    """Decide whether the persisted record must be written.

    An empty persisted record is treated like a missing one, except that an
    empty record matching an empty run stays untouched.
    """
    if previous is None:
        return StateAction.NEW
    if previous.is_empty:
        return StateAction.SYNC if current.is_empty else StateAction.NEW
    if (
        len(previous.integration_ids) == len(current.integration_ids)
        and not orphans_deleted
    ):
        return StateAction.SYNC
    return StateAction.UPDATE


async def delete_integrations(
    executor: MutationExecutor,
    integration_ids: Sequence[str],
    *,
    max_concurrency: int,
    operation: str,
) -> None:
    """Delete integrations concurrently.

    Raises:
        ReconciliationError: If any deletion fails; all deletions are attempted
    """

    async def _delete(integration_id: str) -> None:
        await executor.delete_integration(integration_id)
        logger.info(
            f"[scalex event] HTTP_PROXY integration '{integration_id}' removed"
        )

    await gather_bounded(
        _delete,
        integration_ids,
        max_concurrency=max_concurrency,
        operation=operation,
    )


async def reconcile_state(
    owned_ids: Sequence[str],
    store: StateStore,
    executor: MutationExecutor,
    *,
    max_concurrency: int,
) -> ReconcileResult:
    """Reconcile this run's owned integrations with the persisted state.

    1. Load the persisted state (missing record means nothing is owned).
    2. Delete persisted integrations the run no longer owns.
    3. Classify the outcome as new, sync or update.
    4. Write the owned IDs on new/update.

    Args:
        owned_ids: Integration IDs owned after this run's mutations
        store: State record adapter
        executor: Executor used for orphan deletion
        max_concurrency: Maximum concurrent deletions

    Returns:
        ReconcileResult describing what happened

    Raises:
        StateStoreError: If the state record cannot be read or written
        ReconciliationError: If an orphan cannot be deleted
    """
    current = DeploymentState.from_ids(owned_ids)
    previous = await asyncio.to_thread(store.load)

    orphaned = find_orphans(previous, current)
    await delete_integrations(
        executor, orphaned, max_concurrency=max_concurrency, operation="reconcile"
    )

    action = classify_state(previous, current, orphans_deleted=bool(orphaned))

    if action is StateAction.SYNC:
        logger.info(
            "[scalex event] state file is in-sync with current deployment state"
        )
    else:
        await asyncio.to_thread(store.save, current)
        if action is StateAction.NEW:
            logger.info(
                "[scalex event] new state file created using deployment state"
            )
        else:
            logger.info(
                "[scalex event] current deployment state updated to state file"
            )

    return ReconcileResult(action=action, state=current, orphaned=orphaned)
