"""Gateway snapshot retrieval."""

from __future__ import annotations

import asyncio

from scalex.deploy.clients.base import GatewayClient
from scalex.lib.logging_config import get_logger
from scalex.models.gateway import ApiSnapshot

logger = get_logger(__name__)


async def fetch_snapshot(client: GatewayClient, api_id: str) -> ApiSnapshot:
    """Fetch every route and integration of an API.

    Both listings are requested concurrently. The returned snapshot is
    immutable and shared read-only by every route reconciliation of the run.

    Args:
        client: Gateway client
        api_id: API identifier

    Returns:
        ApiSnapshot of the API

    Raises:
        DeploymentError: If either listing fails
    """
    routes, integrations = await asyncio.gather(
        asyncio.to_thread(client.list_routes, api_id),
        asyncio.to_thread(client.list_integrations, api_id),
    )
    logger.debug(
        f"Fetched snapshot of api '{api_id}': {len(routes)} routes, "
        f"{len(integrations)} integrations"
    )
    return ApiSnapshot(
        api_id=api_id,
        routes=tuple(routes),
        integrations=tuple(integrations),
    )
