"""Remote service clients for ScaleX."""

from __future__ import annotations

from scalex.deploy.clients.base import GatewayClient, ObjectStore


def create_clients(
    region: str, profile: str | None = None
) -> tuple[GatewayClient, ObjectStore]:
    """Create the gateway and object store clients for a target region."""
    from scalex.deploy.clients.aws import ApiGatewayV2Client, S3ObjectStore

    return (
        ApiGatewayV2Client(region, profile=profile),
        S3ObjectStore(region, profile=profile),
    )


__all__ = ["GatewayClient", "ObjectStore", "create_clients"]
