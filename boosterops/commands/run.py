"""
Handles the 'cmd', 'script' and 'fn' commands.

Commands and scripts run in each booster directory with BOOSTER,
BOOSTER_DIR and BRANCH set in their environment.
"""

import click

from ..cli_utils import run_operation
from ..exit_codes import UsageError
from ..services.operations import OPERATIONS, bind


@click.command('cmd')
@click.argument('command')
@click.option('-p', '--push', 'message', metavar='MESSAGE',
              help='Commit the changes (if any) with this message and push them.')
@click.pass_context
def cmd_cmd(ctx, command, message):
    """Execute a shell command in every booster."""
    run_operation(ctx, bind('cmd', command, message))


@click.command('script')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def script_cmd(ctx, path):
    """Run a bash script in every booster."""
    run_operation(ctx, bind('script', path))


@click.command('fn')
@click.argument('name')
@click.argument('args', nargs=-1)
@click.pass_context
def fn_cmd(ctx, name, args):
    """Execute a named booster operation with its arguments.

    This gives access to operations without a dedicated command, such as
    prod_tag, revert_release, delete_tag, update_parent or
    update_runtime_version. Make sure you know what you're doing!
    """
    try:
        operation = bind(name, *args)
    except UsageError as e:
        raise click.UsageError(str(e), ctx=ctx) from e
    run_operation(ctx, operation)


fn_cmd.help += "\n\nAvailable: " + ", ".join(sorted(OPERATIONS))
