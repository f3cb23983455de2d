"""
Handles the 'release' command.

Releases always run on the primary branch, whatever -b says, and are not
available in dry-run mode.
"""

import click

from .. import output
from ..cli_utils import run_operation
from ..services.operations import bind


@click.command('release')
@click.option('-c', '--build-qualifier', metavar='QUALIFIER',
              help='Productization build used for the production BOM version (default from config, CR1).')
@click.pass_context
def release_cmd(ctx, build_qualifier):
    """Release the boosters and create their production tags."""
    settings = ctx.obj['settings']
    output.banner(
        f"Release only works on the '{settings.primary_branch}' branch, "
        "disregarding any branch set by -b option"
    )
    run_operation(ctx, bind('release', build_qualifier))
