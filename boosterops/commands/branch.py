"""
Handles the 'create_branch', 'delete_branch' and 'revert' commands.
"""

import click

from ..cli_utils import run_operation
from ..services.operations import bind


@click.command('create_branch')
@click.pass_context
def create_branch_cmd(ctx):
    """Create the branches given with -b off the primary branch.

    The branches cannot include the primary branch.
    """
    run_operation(ctx, bind('create_branch'))


@click.command('delete_branch')
@click.pass_context
def delete_branch_cmd(ctx):
    """Delete the branches given with -b, on the remote and locally."""
    run_operation(ctx, bind('delete_branch'))


@click.command('revert')
@click.pass_context
def revert_cmd(ctx):
    """Revert the boosters to the last remote state."""
    run_operation(ctx, bind('revert'))
