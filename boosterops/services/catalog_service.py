"""
Launcher booster catalog updates for boosterops.

The launcher catalog lists, per runtime version, the git ref each booster
is served from. After a platform upgrade every booster entry is pointed at
its latest upstream or production tag and the result is proposed upstream
as a pull request.

The catalog is cloned once per run into the run's scratch directory, which
is removed when the run ends.
"""

import logging
from pathlib import Path

from .. import output
from ..domain.tags import latest_tag
from ..domain.version import Ordering, Version, compare_base
from ..errors import BoosterFailure, VersionParseError
from ..infra.templates import get_source_ref, rename_runtime_versions, set_source_ref
from .context import BoosterContext, RunEnvironment

logger = logging.getLogger(__name__)

CATALOG_DIR_NAME = "launcher-booster-catalog"
METADATA_FILE = "metadata.yaml"
BOOSTER_FILE = "booster.yaml"


def catalog_dir(env: RunEnvironment) -> Path:
    if env.work_dir is None:
        raise BoosterFailure("No scratch directory available for the catalog clone")
    return env.work_dir / CATALOG_DIR_NAME


def prepare_catalog(env: RunEnvironment, base: str = "") -> Path:
    """
    Clone the catalog fork and bring it up to date with upstream.

    Only done once per run.
    """
    directory = catalog_dir(env)
    if directory.exists():
        return directory

    cfg = env.settings.catalog
    output.note(f"Preparing {CATALOG_DIR_NAME} temporary clone, checking out {cfg.branch} branch. Only done once.")
    env.git.clone(cfg.repository, str(env.work_dir), CATALOG_DIR_NAME, remote='origin', branch=cfg.branch)

    path = str(directory)
    env.git.add_remote(path, 'upstream', cfg.upstream_repository)
    if not env.git.pull_rebase(path, 'upstream', cfg.upstream_branch):
        logger.warning(f"Could not rebase {CATALOG_DIR_NAME} on upstream {cfg.upstream_branch}")
    if env.settings.push_enabled:
        success, details = env.git.push(path, 'origin', ref=cfg.branch)
        if not success:
            logger.warning(f"Could not update origin/{cfg.branch}: {details}")
    return directory


def _runtime_version_names(env: RunEnvironment, base: str) -> dict:
    suffix = env.settings.release.platform_suffix
    return {
        version_id: f"{base}{suffix} ({label})"
        for version_id, label in env.settings.catalog.version_labels.items()
    }


def update_booster_entries(ctx: BoosterContext, base: str) -> None:
    """
    Point the booster's catalog entries at its latest tags.

    Each mapped source branch selects a catalog version directory; the
    production qualifier's branch uses production tags, the others use
    upstream tags. The runtime version names in the catalog metadata are
    bumped the first time a booster shows the new base is newer.
    """
    env = ctx.env
    cfg = env.settings.catalog
    qualifier = env.settings.release.production_qualifier
    directory = catalog_dir(env)
    if not directory.exists():
        raise BoosterFailure(f"Unable to retrieve {CATALOG_DIR_NAME}")

    mission = cfg.booster_mapping.get(ctx.booster.simple_name, ctx.booster.simple_name)
    tags = ctx.git.list_tags(str(ctx.path))
    metadata = directory / METADATA_FILE

    for source_branch, catalog_version in cfg.branch_mapping.items():
        booster_yaml = directory / cfg.runtime / catalog_version / mission / BOOSTER_FILE
        if not booster_yaml.is_file():
            raise BoosterFailure(f"Couldn't find {booster_yaml}")

        production = source_branch == qualifier
        tag = latest_tag(tags, production=production, production_qualifier=qualifier)
        if tag is None:
            raise BoosterFailure(f"No {'production' if production else 'upstream'} tag to reference")

        if metadata.is_file() and not env.git.has_uncommitted_changes(str(directory), METADATA_FILE):
            _bump_metadata(env, metadata, booster_yaml, base)

        if set_source_ref(booster_yaml, str(tag)):
            ctx.log(f"{catalog_version}/{mission}: now references {tag}")
        else:
            ctx.log(f"{catalog_version}/{mission}: already references {tag}")


def _bump_metadata(env: RunEnvironment, metadata: Path, booster_yaml: Path, base: str) -> None:
    old_ref = get_source_ref(booster_yaml)
    try:
        old_base = Version.parse(old_ref).base
    except VersionParseError:
        logger.debug(f"{booster_yaml} references '{old_ref}', not comparing platform versions")
        return
    if compare_base(base, old_base) is Ordering.GREATER:
        if rename_runtime_versions(metadata, env.settings.catalog.runtime, _runtime_version_names(env, base)):
            logger.info(f"Catalog metadata now names {base}")


def open_catalog_pr(env: RunEnvironment, base: str) -> None:
    """Commit the catalog changes on ``update-to-<base>`` and open a pull request."""
    directory = catalog_dir(env)
    if not directory.exists():
        raise BoosterFailure(f"Unable to retrieve {CATALOG_DIR_NAME}")

    cfg = env.settings.catalog
    path = str(directory)
    branch = f"update-to-{base}"
    env.git.checkout(path, branch, create=True)

    if not env.git.has_uncommitted_changes(path):
        output.note("Catalog is already up to date, no pull request needed")
        return
    if not env.settings.commit_enabled:
        output.note(f"Dry run: leaving catalog changes uncommitted in {path}")
        return

    env.git.commit_all(path, f"{env.settings.commit_prefix} Update Spring Boot to {base}")
    success, details = env.git.push(path, 'origin', ref=branch)
    if not success:
        raise BoosterFailure(f"Could not push {branch}: {details}")

    if env.github is None:
        raise BoosterFailure("No GitHub client configured")
    url = env.github.create_pull_request(
        path,
        repo=cfg.upstream_slug,
        base=cfg.upstream_branch,
        head=f"{cfg.fork_owner}:{branch}",
        title=f"DO NOT MERGE: Update Spring Boot to {base}",
    )
    if url:
        output.note(f"Created PR: {url}")
    else:
        raise BoosterFailure("Could not create the catalog pull request")
