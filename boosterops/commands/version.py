"""
Handles the 'change_version' and 'set_maven_property' commands.
"""

import click

from ..cli_utils import run_operation
from ..services.operations import bind


@click.command('change_version')
@click.option('-v', '--version', 'version', metavar='VERSION',
              help='Version to use. Computed from the current version otherwise.')
@click.pass_context
def change_version_cmd(ctx, version):
    """Change the project version."""
    run_operation(ctx, bind('change_version', version))


@click.command('set_maven_property')
@click.argument('name')
@click.argument('value')
@click.option('-v', '--verify', is_flag=True, help='Run a verification build after setting the property.')
@click.pass_context
def set_maven_property_cmd(ctx, name, value, verify):
    """Set a Maven property in pom.xml, adding it if needed.

    Works whether or not the property (or the properties section) exists.
    The change is committed and pushed.
    """
    run_operation(ctx, bind('set_maven_property', name, value, verify=verify))
