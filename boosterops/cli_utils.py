"""
Common CLI utilities for consistent command behavior.
"""

import logging
import sys
from typing import Any, Dict

import click
from rich.markup import escape

from . import output
from .config import Settings, load_config, setup_logging
from .exit_codes import INTERRUPTED, CommandError, ConfigError, UsageError
from .infra.catalog_client import CatalogClient
from .infra.github_client import GitHubClient
from .infra.openshift_client import OpenShiftClient
from .services.operations import BoundOperation
from .services.orchestrator import BoosterOrchestrator

logger = logging.getLogger(__name__)


def parse_list(value: str) -> tuple:
    """Split a comma-separated option value."""
    return tuple(part.strip() for part in value.split(',') if part.strip())


def build_settings(config: Dict[str, Any], overrides: Dict[str, Any]) -> Settings:
    """
    Fold command line overrides over the configuration.

    Raises:
        click.UsageError: If include and exclude lists are both given
    """
    settings = Settings.from_config(config, **overrides)
    try:
        settings.selection
    except ValueError as e:
        raise click.UsageError("Using '-m' and '-x' together is not supported since it doesn't make sense") from e
    return settings


def make_orchestrator(settings: Settings) -> BoosterOrchestrator:
    """Create the orchestrator with clients configured from settings."""
    openshift = settings.openshift
    return BoosterOrchestrator(
        settings,
        github=GitHubClient(token=settings.github_token),
        catalog=CatalogClient(
            staging_url=settings.catalog.staging_url,
            bom_artifact=settings.catalog.bom_artifact,
            timeout=settings.catalog.timeout_seconds,
        ),
        openshift=OpenShiftClient(
            initial_wait=openshift.initial_wait_seconds,
            poll_interval=openshift.poll_interval_seconds,
            build_timeout=openshift.build_timeout_seconds,
            namespace_poll=openshift.namespace_poll_seconds,
        ),
    )


def run_operation(ctx: click.Context, operation: BoundOperation) -> None:
    """
    Run an operation across boosters and print the summary.

    Per-booster failures only show up in the summary. Errors that stop the
    whole run exit with their own code.
    """
    settings: Settings = ctx.obj['settings']
    try:
        results = make_orchestrator(settings).run(operation)
    except KeyboardInterrupt:
        output.console.print("[red]Interrupted by user[/red]")
        sys.exit(INTERRUPTED)
    except UsageError as e:
        raise click.UsageError(str(e), ctx=ctx) from e
    except CommandError as e:
        output.console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(e.exit_code)

    output.print_summary(results)


def load_cli_config(config_path: Any, verbose: bool) -> Dict[str, Any]:
    """
    Load the configuration and set up logging from it.

    Exits with the configuration error code if the file cannot be read.
    """
    try:
        config = load_config(config_path)
    except ConfigError as e:
        output.console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(e.exit_code)
    setup_logging(config.get('logging', {}).get('level', 'INFO'), verbose)
    return config
