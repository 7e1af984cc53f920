"""ScaleX reconciliation engine.

This package swaps HTTP API routes between compute (AWS_PROXY) and HTTP
(HTTP_PROXY) integrations according to per-route scaling policies, and keeps
the record of integrations it owns in an object store.
"""

from scalex.deploy.decision import RouteDecision, ScaleAction, decide
from scalex.deploy.engine import DeployReport, ScaleEngine
from scalex.deploy.executor import MutationExecutor
from scalex.deploy.reconciler import ReconcileResult, reconcile_state
from scalex.deploy.resolver import ResolvedRoute, resolve_route
from scalex.deploy.snapshot import fetch_snapshot
from scalex.deploy.state import StateStore, get_state_key
from scalex.deploy.teardown import TeardownResult, teardown

__all__ = [
    "DeployReport",
    "MutationExecutor",
    "ReconcileResult",
    "ResolvedRoute",
    "RouteDecision",
    "ScaleAction",
    "ScaleEngine",
    "StateStore",
    "TeardownResult",
    "decide",
    "fetch_snapshot",
    "get_state_key",
    "reconcile_state",
    "resolve_route",
    "teardown",
]
