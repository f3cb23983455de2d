"""
Handles the 'catalog' command.
"""

import click

from .. import output
from ..cli_utils import run_operation
from ..services.operations import bind


@click.command('catalog')
@click.argument('base')
@click.pass_context
def catalog_cmd(ctx, base):
    """Open a launcher catalog pull request for Spring Boot BASE.

    Points every booster entry at its latest upstream and production tags.
    """
    settings = ctx.obj['settings']
    output.banner(
        f"Catalog only works on the '{settings.primary_branch}' branch, "
        "disregarding any branch set by -b option"
    )
    run_operation(ctx, bind('catalog', base))
