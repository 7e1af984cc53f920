"""Deployment orchestration for ScaleX.

A deploy run fetches one gateway snapshot, plans a decision for every
declared ``httpApi`` event, applies the decisions concurrently and then
reconciles the persisted state. Planning touches nothing remote, so drift
and configuration problems abort the run before any mutation is issued.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from scalex.config.loader import validate_scaling
from scalex.deploy.clients.base import GatewayClient, ObjectStore
from scalex.deploy.decision import RouteDecision, decide
from scalex.deploy.executor import MutationExecutor
from scalex.deploy.reconciler import ReconcileResult, reconcile_state
from scalex.deploy.resolver import resolve_route
from scalex.deploy.snapshot import fetch_snapshot
from scalex.deploy.state import StateStore, get_state_key
from scalex.deploy.teardown import TeardownResult, teardown
from scalex.lib.concurrency import gather_bounded
from scalex.lib.errors import (
    ConfigError,
    ReconciliationError,
    ResolutionError,
    ScalexError,
)
from scalex.lib.logging_config import get_logger
from scalex.models.gateway import ApiSnapshot
from scalex.models.policy import ServiceConfig

logger = get_logger(__name__)


@dataclass(frozen=True)
class DeployReport:
    """Result of a deploy run.

    Attributes:
        api_id: API the run targeted
        decisions: Decision taken for each declared event
        owned_ids: Integration IDs owned after the run
        reconcile: State reconciliation outcome (None for dry runs)
    """

    api_id: str
    decisions: tuple[RouteDecision, ...]
    owned_ids: tuple[str, ...] = ()
    reconcile: ReconcileResult | None = None

    @property
    def dry_run(self) -> bool:
        return self.reconcile is None


class ScaleEngine:
    """Reconciles one deployment identity (stage, service, region)."""

    def __init__(
        self,
        config: ServiceConfig,
        gateway: GatewayClient,
        object_store: ObjectStore,
    ) -> None:
        """Initialize the engine.

        Args:
            config: Validated service configuration
            gateway: Gateway client for the target region
            object_store: Object store holding the state record
        """
        self.config = config
        self._gateway = gateway
        self.state_store = StateStore(
            object_store,
            config.bucket_name,
            get_state_key(config.stage, config.service, config.region),
        )

    @property
    def region(self) -> str:
        return self.config.region

    def validate(self) -> None:
        """Run pre-deploy configuration checks.

        Raises:
            ConfigError: If a scaled route in the target region lacks an httpUrl
        """
        validate_scaling(self.config)

    async def resolve_api_id(self) -> str:
        """Return the configured API ID or look the API up by name.

        Raises:
            ResolutionError: If no API with the expected name exists
        """
        http_api = self.config.provider.http_api
        if http_api is not None and http_api.id:
            return http_api.id

        api_name = self.config.api_name
        api_id = await asyncio.to_thread(self._gateway.find_api_id, api_name)
        if api_id is None:
            raise ResolutionError(api_name, "no matched api gateway found")
        return api_id

    def plan(self, snapshot: ApiSnapshot) -> list[RouteDecision]:
        """Compute a decision for every declared ``httpApi`` event.

        All events are planned before failing so every problem is reported.

        Raises:
            ResolutionError: If a single event could not be resolved
            ConfigError: If a single event has an unusable policy
            ReconciliationError: If several events failed
        """
        decisions: list[RouteDecision] = []
        errors: list[ScalexError] = []

        for declared in self.config.http_events():
            try:
                resolved = resolve_route(snapshot, declared)
                decisions.append(decide(declared, resolved, snapshot, self.region))
            except (ResolutionError, ConfigError) as exc:
                errors.append(exc)

        if len(errors) == 1:
            raise errors[0]
        if errors:
            raise ReconciliationError("plan", errors)
        return decisions

    async def deploy(self, *, dry_run: bool = False) -> DeployReport:
        """Reconcile every declared route and the persisted state.

        Args:
            dry_run: Plan only; do not mutate the gateway or the state record

        Returns:
            DeployReport describing the run

        Raises:
            ScalexError: On any precondition, mutation or state failure
        """
        self.validate()
        await asyncio.to_thread(self.state_store.check_bucket)

        api_id = await self.resolve_api_id()
        snapshot = await fetch_snapshot(self._gateway, api_id)
        decisions = self.plan(snapshot)

        if dry_run:
            for decision in decisions:
                logger.info(f"[scalex event] (dry run) {decision.describe()}")
            return DeployReport(api_id=api_id, decisions=tuple(decisions))

        executor = MutationExecutor(self._gateway, api_id)
        results = await gather_bounded(
            executor.apply,
            decisions,
            max_concurrency=self.config.max_concurrency,
            operation="deploy",
        )
        owned_ids = tuple(r for r in results if r is not None)

        reconcile = await reconcile_state(
            owned_ids,
            self.state_store,
            executor,
            max_concurrency=self.config.max_concurrency,
        )
        return DeployReport(
            api_id=api_id,
            decisions=tuple(decisions),
            owned_ids=owned_ids,
            reconcile=reconcile,
        )

    async def remove(self) -> TeardownResult:
        """Remove every integration recorded for this deployment identity.

        Raises:
            ScalexError: On any state or deletion failure
        """
        await asyncio.to_thread(self.state_store.check_bucket)

        async def _executor() -> MutationExecutor:
            return MutationExecutor(self._gateway, await self.resolve_api_id())

        return await teardown(
            self.state_store,
            _executor,
            max_concurrency=self.config.max_concurrency,
        )
