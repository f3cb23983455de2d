"""
Handles the 'run_smoke_tests' and 'run_integration_tests' commands.
"""

import click

from ..cli_utils import run_operation
from ..services.operations import bind


@click.command('run_smoke_tests')
@click.pass_context
def run_smoke_tests_cmd(ctx):
    """Run the unit tests locally."""
    run_operation(ctx, bind('run_smoke_tests'))


@click.command('run_integration_tests')
@click.argument('deployment_type', required=False)
@click.pass_context
def run_integration_tests_cmd(ctx, deployment_type):
    """Run the integration tests on an OpenShift cluster.

    Requires being logged in to the cluster. DEPLOYMENT_TYPE is fmp_deploy
    (default) or s2i_deploy.
    """
    run_operation(ctx, bind('run_integration_tests', deployment_type))
