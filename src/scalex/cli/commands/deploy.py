"""CLI commands for reconciling and removing ScaleX deployments.

Implements 'scalex validate', 'scalex deploy' and 'scalex remove'.
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Callable, Generator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import click

from scalex.config.loader import DEFAULT_CONFIG_FILE, ConfigLoader, validate_scaling
from scalex.deploy.clients import create_clients
from scalex.deploy.decision import ScaleAction
from scalex.deploy.engine import ScaleEngine
from scalex.lib.errors import (
    ConfigError,
    DeploymentError,
    ReconciliationError,
    ResolutionError,
)
from scalex.lib.logging_config import get_logger, setup_logging

if TYPE_CHECKING:
    from scalex.deploy.engine import DeployReport
    from scalex.models.policy import ServiceConfig

logger = get_logger(__name__)


@contextmanager
def handle_deployment_errors() -> Generator[None, None, None]:
    """Context manager for consistent error handling in ScaleX commands.

    This is the single point where a failed run terminates. Each failure is
    reported on one line; aggregated failures report one line per error.

    Exit codes:
        2: Configuration error, including aggregated configuration errors
        3: Resolution, deployment or state error
    """
    try:
        yield
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        click.secho("Error: Configuration error", fg="red", err=True)
        click.echo(f"  {e.message}", err=True)
        sys.exit(2)
    except ResolutionError as e:
        logger.error(f"Resolution error: {e}")
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(3)
    except ReconciliationError as e:
        click.secho(f"Error: {e.operation} failed", fg="red", err=True)
        for error in e.errors:
            logger.error(f"{e.operation} error: {error}")
            click.echo(f"  {error}", err=True)
        config_only = all(isinstance(error, ConfigError) for error in e.errors)
        sys.exit(2 if e.errors and config_only else 3)
    except DeploymentError as e:
        logger.error(f"Deployment error: {e}")
        click.secho(f"Error: {e.operation} failed", fg="red", err=True)
        click.echo(f"  {e.message}", err=True)
        sys.exit(3)
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(3)


def _common_options(func: Callable[..., Any]) -> Callable[..., Any]:
    options = [
        click.argument(
            "service_config",
            type=click.Path(exists=True, dir_okay=False),
            default=DEFAULT_CONFIG_FILE,
            required=False,
        ),
        click.option("--stage", "-s", type=str, default=None, help="Stage override"),
        click.option(
            "--region", "-r", type=str, default=None, help="Target region override"
        ),
        click.option(
            "--aws-profile", type=str, default=None, help="Named AWS profile to use"
        ),
        click.option(
            "--verbose", "-v", is_flag=True, help="Enable verbose debug logging"
        ),
        click.option("--quiet", "-q", is_flag=True, help="Suppress progress output"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _load_config(
    service_config: str, stage: str | None, region: str | None
) -> ServiceConfig:
    return ConfigLoader().load_service(service_config, stage=stage, region=region)


def _build_engine(config: ServiceConfig, aws_profile: str | None) -> ScaleEngine:
    gateway, object_store = create_clients(config.region, profile=aws_profile)
    return ScaleEngine(config, gateway, object_store)


@click.command()
@_common_options
def validate(
    service_config: str,
    stage: str | None,
    region: str | None,
    aws_profile: str | None,
    verbose: bool,
    quiet: bool,
) -> None:
    """Validate the scaling configuration without calling AWS.

    SERVICE_CONFIG is the path to the service file (default: serverless.yml).
    """
    if not quiet:
        setup_logging(verbose=verbose, quiet=quiet)

    with handle_deployment_errors():
        config = _load_config(service_config, stage, region)
        validate_scaling(config)

        if quiet:
            return

        events = list(config.http_events())
        scaled = [e for e in events if e.policy and e.policy.targets(config.region)]
        click.secho("Configuration valid", fg="green", bold=True)
        click.echo(f"  Service:   {config.service}")
        click.echo(f"  Stage:     {config.stage}")
        click.echo(f"  Region:    {config.region}")
        click.echo(f"  Bucket:    {config.bucket_name}")
        click.echo(f"  Routes:    {len(events)} ({len(scaled)} scaled in region)")


@click.command()
@_common_options
@click.option(
    "--dry-run",
    is_flag=True,
    help="Show planned changes without executing",
)
def deploy(
    service_config: str,
    stage: str | None,
    region: str | None,
    aws_profile: str | None,
    verbose: bool,
    quiet: bool,
    dry_run: bool,
) -> None:
    """Reconcile HTTP API routes with their scaling policies.

    SERVICE_CONFIG is the path to the service file (default: serverless.yml).

    Example:

        scalex deploy --stage prod --region ap-southeast-1

        scalex deploy serverless.yml --dry-run
    """
    if not quiet:
        setup_logging(verbose=verbose, quiet=quiet)

    with handle_deployment_errors():
        config = _load_config(service_config, stage, region)
        engine = _build_engine(config, aws_profile)
        report = asyncio.run(engine.deploy(dry_run=dry_run))
        _display_report(report, quiet)


@click.command()
@_common_options
@click.option(
    "--force",
    is_flag=True,
    help="Skip confirmation prompt",
)
def remove(
    service_config: str,
    stage: str | None,
    region: str | None,
    aws_profile: str | None,
    verbose: bool,
    quiet: bool,
    force: bool,
) -> None:
    """Delete every HTTP integration created by ScaleX and its state file.

    SERVICE_CONFIG is the path to the service file (default: serverless.yml).
    """
    if not quiet:
        setup_logging(verbose=verbose, quiet=quiet)

    with handle_deployment_errors():
        config = _load_config(service_config, stage, region)

        if not force:
            confirm = click.confirm(
                f"Remove ScaleX integrations of '{config.service}' "
                f"({config.stage}, {config.region})?",
                default=False,
            )
            if not confirm:
                click.secho("Remove aborted.", fg="yellow")
                sys.exit(0)

        engine = _build_engine(config, aws_profile)
        result = asyncio.run(engine.remove())

        if quiet:
            click.echo(len(result.removed))
            return

        click.echo()
        if not result.state_found:
            click.secho("Nothing to remove", fg="yellow", bold=True)
            click.echo("  No ScaleX state file found for this deployment.")
        else:
            click.secho("ScaleX Removed", fg="green", bold=True)
            click.echo(f"  Integrations removed: {len(result.removed)}")
        click.echo()


def _display_report(report: DeployReport, quiet: bool) -> None:
    """Display the outcome of a deploy run.

    Args:
        report: Deploy report
        quiet: If True, only print the owned integration IDs
    """
    if quiet:
        click.echo(" ".join(report.owned_ids))
        return

    click.echo()
    if report.dry_run:
        click.secho("[DRY RUN] Planned changes:", fg="yellow")
        for decision in report.decisions:
            color = "yellow" if decision.is_mutation else None
            click.secho(f"  {decision.describe()}", fg=color)
        click.secho("[DRY RUN] No changes were made", fg="yellow")
        click.echo()
        return

    counts = {action: 0 for action in ScaleAction}
    for decision in report.decisions:
        counts[decision.action] += 1

    click.secho("ScaleX Deployment Successful!", fg="green", bold=True)
    click.echo(f"  API:          {report.api_id}")
    click.echo(f"  Scaled up:    {counts[ScaleAction.SCALE_UP]}")
    click.echo(f"  Scaled down:  {counts[ScaleAction.SCALE_DOWN]}")
    updated = counts[ScaleAction.UPDATE_URI] + counts[ScaleAction.SYNC_AUTHORIZER]
    click.echo(f"  Updated:      {updated}")
    unchanged = counts[ScaleAction.IN_SYNC] + counts[ScaleAction.NOOP]
    click.echo(f"  Unchanged:    {unchanged}")
    if report.reconcile is not None:
        click.echo(f"  State:        {report.reconcile.action.value}")
        if report.reconcile.orphaned:
            click.echo(f"  Orphans:      {', '.join(report.reconcile.orphaned)}")
    click.echo()
