"""Apply route decisions to the gateway."""

from __future__ import annotations

import asyncio

from scalex.deploy.clients.base import GatewayClient
from scalex.deploy.decision import RouteDecision, ScaleAction
from scalex.lib.errors import DeploymentError
from scalex.lib.logging_config import get_logger
from scalex.models.gateway import format_target

logger = get_logger(__name__)


def _required(decision: RouteDecision, value: str | None, name: str) -> str:
    """Return a decision field the action depends on."""
    if value is None:
        raise DeploymentError(
            operation="apply",
            message=f"{decision.action.value} decision is missing its {name}",
        )
    return value


class MutationExecutor:
    """Performs gateway mutations for one API.

    This is the only component with write access to the gateway. Blocking
    client calls run in worker threads so routes can be processed
    concurrently.

    Attributes:
        api_id: API the mutations are applied to
    """

    def __init__(self, client: GatewayClient, api_id: str) -> None:
        self._client = client
        self.api_id = api_id

    async def apply(self, decision: RouteDecision) -> str | None:
        """Apply a decision.

        Args:
            decision: Decision computed for one route

        Returns:
            The integration ID the route owns after the mutation, or None when
            the route is not served by a ScaleX integration

        Raises:
            DeploymentError: If a gateway call fails; the message names the
                function, route and operation
        """
        try:
            return await self._apply(decision)
        except DeploymentError as exc:
            raise DeploymentError(
                operation=exc.operation,
                message=(
                    f"function '{decision.function_name}' "
                    f"route '{decision.route_key}': {exc.message}"
                ),
            ) from exc

    async def _apply(self, decision: RouteDecision) -> str | None:
        fn = decision.function_name
        route_id = decision.route.route_id
        integration_id = decision.integration.integration_id

        match decision.action:
            case ScaleAction.NOOP:
                return None

            case ScaleAction.IN_SYNC:
                logger.info(
                    f"[scalex event] function '{fn}' scale status already in-sync"
                )
                return integration_id

            case ScaleAction.UPDATE_URI:
                http_url = _required(decision, decision.http_url, "httpUrl")
                await asyncio.to_thread(
                    self._client.update_integration,
                    self.api_id,
                    integration_id,
                    http_url,
                )
                logger.info(f"[scalex event] function '{fn}' integration uri updated")
                return integration_id

            case ScaleAction.SYNC_AUTHORIZER:
                await asyncio.to_thread(
                    self._client.update_route,
                    self.api_id,
                    route_id,
                    authorizer=decision.authorizer,
                )
                logger.info(
                    f"[scalex event] function '{fn}' authorizer integration update"
                )
                return integration_id

            case ScaleAction.SCALE_DOWN:
                compute_integration_id = _required(
                    decision, decision.compute_integration_id, "compute integration"
                )
                # Rebind first so the route never targets a deleted integration
                await asyncio.to_thread(
                    self._client.update_route,
                    self.api_id,
                    route_id,
                    target=format_target(compute_integration_id),
                    authorizer=decision.authorizer,
                )
                await self.delete_integration(integration_id)
                logger.info(f"[scalex event] function '{fn}' scaled DOWN to AWS_PROXY")
                return None

            case ScaleAction.SCALE_UP:
                http_url = _required(decision, decision.http_url, "httpUrl")
                new_integration_id = await asyncio.to_thread(
                    self._client.create_integration,
                    self.api_id,
                    decision.method,
                    http_url,
                )
                try:
                    await asyncio.to_thread(
                        self._client.update_route,
                        self.api_id,
                        route_id,
                        target=format_target(new_integration_id),
                        authorizer=decision.authorizer,
                    )
                except DeploymentError:
                    # The new integration is not yet recorded as owned
                    logger.warning(
                        f"[scalex event] function '{fn}' rebind failed, "
                        f"removing integration {new_integration_id}"
                    )
                    await self.delete_integration(new_integration_id)
                    raise
                logger.info(f"[scalex event] function '{fn}' scaled UP to HTTP_PROXY")
                return new_integration_id

        raise DeploymentError(
            operation="apply",
            message=f"Unsupported scale action: {decision.action}",
        )

    async def delete_integration(self, integration_id: str) -> None:
        """Delete an integration; a missing integration counts as deleted.

        Raises:
            DeploymentError: If deletion fails for another reason
        """
        await asyncio.to_thread(
            self._client.delete_integration, self.api_id, integration_id
        )
