"""Remove every integration owned by a deployment."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from scalex.deploy.executor import MutationExecutor
from scalex.deploy.reconciler import delete_integrations
from scalex.deploy.state import StateStore
from scalex.lib.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TeardownResult:
    """Outcome of a teardown.

    Attributes:
        state_found: Whether a state record existed
        removed: Integration IDs that were deleted
    """

    state_found: bool
    removed: tuple[str, ...] = ()


async def teardown(
    store: StateStore,
    get_executor: Callable[[], Awaitable[MutationExecutor]],
    *,
    max_concurrency: int,
) -> TeardownResult:
    """Delete the integrations recorded in the state record, then the record.

    Without a state record nothing was ever scaled and no call is made to
    the gateway; ``get_executor`` is only awaited once a record was found.

    Args:
        store: State record adapter
        get_executor: Factory for the executor of the deployment's API
        max_concurrency: Maximum concurrent deletions

    Returns:
        TeardownResult describing what was removed

    Raises:
        StateStoreError: If the record cannot be read or deleted
        ReconciliationError: If an integration cannot be deleted
    """
    state = await asyncio.to_thread(store.load)
    if state is None:
        logger.info("[scalex event] no scalex state file found, nothing to remove")
        return TeardownResult(state_found=False)

    if not state.is_empty:
        executor = await get_executor()
        await delete_integrations(
            executor,
            state.integration_ids,
            max_concurrency=max_concurrency,
            operation="remove",
        )
        logger.info("[scalex event] all deployed HTTP_PROXY integration removed")

    await asyncio.to_thread(store.delete)
    logger.info("[scalex event] scalex state file deleted")
    return TeardownResult(state_found=True, removed=state.integration_ids)
