#!/usr/bin/env python3

from pathlib import Path

import click

from boosterops import output
from boosterops.cli_utils import build_settings, load_cli_config, parse_list

from boosterops.commands.branch import create_branch_cmd, delete_branch_cmd, revert_cmd
from boosterops.commands.catalog import catalog_cmd
from boosterops.commands.release import release_cmd
from boosterops.commands.run import cmd_cmd, fn_cmd, script_cmd
from boosterops.commands.testing import run_integration_tests_cmd, run_smoke_tests_cmd
from boosterops.commands.version import change_version_cmd, set_maven_property_cmd


def _resolve_boosters_dir(value: str) -> Path:
    directory = Path(value).expanduser()
    directory.mkdir(parents=True, exist_ok=True)
    return directory.resolve()


@click.group()
@click.version_option()
@click.option('-b', '--branches', metavar='BRANCHES',
              help='Comma-separated branches to operate on, e.g. branch1,branch2. '
                   'Mandatory to create or delete branches.')
@click.option('-q', '--query', 'github_query', metavar='QUERY',
              help='GitHub search query identifying the boosters.')
@click.option('-d', '--dry-run', is_flag=True,
              help='No commits or pushes. Not compatible with release.')
@click.option('-f', '--force', 'ignore_local_changes', is_flag=True,
              help='Bypass the check for local changes.')
@click.option('-l', '--local-dir', 'boosters_dir', metavar='DIR',
              help='Parent directory of the local booster copies (created if missing).')
@click.option('-m', '--only', 'include', metavar='NAMES',
              help='Only operate on these boosters (simple names, comma-separated).')
@click.option('-x', '--exclude', 'exclude', metavar='NAMES',
              help='Operate on all boosters except these (simple names, comma-separated).')
@click.option('-n', '--no-confirm', is_flag=True, help='Skip confirmation dialogs.')
@click.option('-p', '--setup', 'local_setup', is_flag=True,
              help='Clone or reset the boosters from GitHub first. Local changes are lost.')
@click.option('-r', '--remote', metavar='REMOTE', help='Git remote to use, e.g. upstream or origin.')
@click.option('-s', '--skip-tests', is_flag=True, help='Skip test execution.')
@click.option('--config', 'config_path', type=click.Path(path_type=Path), help='Configuration file.')
@click.option('--verbose', is_flag=True, help='Show debug output.')
@click.pass_context
def cli(ctx, branches, github_query, dry_run, ignore_local_changes, boosters_dir, include, exclude,
        no_confirm, local_setup, remote, skip_tests, config_path, verbose):
    """boosterops - Release and maintenance operations across all boosters.

    Boosters are discovered with a GitHub search, then the chosen operation
    runs on every selected booster and branch. A summary of processed,
    failed and skipped combinations is printed at the end.
    """
    config = load_cli_config(config_path, verbose)

    overrides = {
        'github_query': github_query,
        'dry_run': True if dry_run else None,
        'ignore_local_changes': True if ignore_local_changes else None,
        'local_setup': True if local_setup else None,
        'remote': remote,
        'confirmation_needed': False if no_confirm else None,
        'run_tests': False if skip_tests else None,
    }

    if dry_run:
        output.banner("DRY-RUN MODE ACTIVATED: no commits or pushes will be issued")
    if ignore_local_changes:
        output.banner("BYPASSING CHECK FOR LOCAL CHANGES")
    if boosters_dir:
        overrides['boosters_dir'] = _resolve_boosters_dir(boosters_dir)
        output.banner(f"Will use directory {overrides['boosters_dir']} as the booster parent directory")
    if branches:
        overrides['branches'] = parse_list(branches)
        output.banner(f"Will use '{branches}' branch(es)")
    if github_query:
        output.banner(f"Will use '{github_query}' as the GitHub query that identifies potential boosters")
    if local_setup:
        output.banner("Will clone boosters from GitHub - This will result in the loss of any local changes to the boosters")
    if remote:
        output.banner(f"Will use '{remote}' as the git remote")
    if no_confirm:
        output.banner("SKIP CONFIRMATION DIALOGS ACTIVATED: no confirmation will be requested "
                      "for any potentially destructive operations")
    if skip_tests:
        output.banner("SKIPPING TEST EXECUTION. No tests will be run for boosters")
    if include:
        overrides['include'] = parse_list(include)
        output.banner(f"Will use only the following booster(s): '{include}'")
    if exclude:
        overrides['exclude'] = parse_list(exclude)
        output.banner(f"Will use all the booster(s) except the following: '{exclude}'")

    ctx.ensure_object(dict)
    ctx.obj['settings'] = build_settings(config, overrides)


cli.add_command(release_cmd)
cli.add_command(change_version_cmd)
cli.add_command(set_maven_property_cmd)
cli.add_command(create_branch_cmd)
cli.add_command(delete_branch_cmd)
cli.add_command(revert_cmd)
cli.add_command(cmd_cmd)
cli.add_command(script_cmd)
cli.add_command(fn_cmd)
cli.add_command(run_smoke_tests_cmd)
cli.add_command(run_integration_tests_cmd)
cli.add_command(catalog_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()
