"""
Release workflow for boosterops.

Releasing a booster walks a linear sequence of states:

    VERIFYING -> VERSION_GATE -> TEMPLATE_GATE -> TAGGING ->
    TEMPLATE_RESTORE -> NEXT_VERSION_BUMP -> PROD_TAGGING -> DONE

Each gate can stop the workflow with a BoosterFailure. Nothing is rolled
back automatically: commits and tags made before a failure stay local,
because pushing is suppressed until DONE. ``revert_release`` and
``delete_tag`` undo a release by hand.

The production tag is anchored on a throwaway ``<tag>-branch`` created off
the primary branch so the productization commits (production BOM and
platform versions) never land on the primary branch itself.
"""

import logging
from enum import Enum
from typing import List, Optional

from ..domain.tags import latest_tag, next_production_tag
from ..domain.version import Ordering, Version, compare, is_valid_base
from ..errors import (
    BoosterFailure,
    BoosterOperationError,
    BuildError,
    CatalogError,
    GitError,
    OperationAborted,
    VersionParseError,
)
from ..infra.templates import find_templates, replace_in_files
from .context import BoosterContext

logger = logging.getLogger(__name__)

SNAPSHOT_SUFFIX = "-SNAPSHOT"

# Commits made on the released branch: template substitution, release
# version, template restore and next snapshot version
RELEASE_COMMITS_WITH_TEMPLATES = 4
RELEASE_COMMITS_WITHOUT_TEMPLATES = 2


class ReleaseState(Enum):
    VERIFYING = "verifying"
    VERSION_GATE = "version_gate"
    TEMPLATE_GATE = "template_gate"
    TAGGING = "tagging"
    TEMPLATE_RESTORE = "template_restore"
    NEXT_VERSION_BUMP = "next_version_bump"
    PROD_TAGGING = "prod_tagging"
    DONE = "done"


class ReleaseWorkflow:
    """
    Release, production tagging and release reverts for one booster.

    Example:
        workflow = ReleaseWorkflow(ctx)
        released = workflow.release()
        print(released, workflow.state)
    """

    def __init__(self, ctx: BoosterContext):
        self.ctx = ctx
        self.state: Optional[ReleaseState] = None

    @property
    def _path(self) -> str:
        return str(self.ctx.path)

    def _enter(self, state: ReleaseState) -> None:
        logger.debug(f"{self.ctx.booster.name}@{self.ctx.branch}: {state.value}")
        self.state = state

    def _templates(self):
        return find_templates(self.ctx.path, self.ctx.settings.release.template_glob)

    def _substitute_templates(self, templates, version: Version) -> None:
        token = self.ctx.settings.release.template_token
        for path in replace_in_files(templates, token, str(version)):
            self.ctx.log(f"{path.relative_to(self.ctx.path)}: Replaced {token} token by {version}")
        if not self.ctx.commit_if_changed(f"Replaced templates placeholders: {token} -> {version}"):
            raise BoosterFailure("Couldn't replace tokens in templates")

    def _tag(self, version: Version) -> None:
        self.ctx.log(f"Creating tag {version}")
        self.ctx.git.tag(self._path, str(version), f"Releasing {version}")

    def _tag_names(self) -> List[str]:
        return self.ctx.git.list_tags(self._path)

    def release(self, build_qualifier: Optional[str] = None) -> Version:
        """
        Release the booster's current snapshot version.

        Args:
            build_qualifier: Productization build the production BOM is
                taken from (configured default, usually ``CR1``)

        Returns:
            The released version

        Raises:
            BoosterFailure: When a gate fails or a step cannot complete
        """
        ctx = self.ctx
        cfg = ctx.settings.release

        self._enter(ReleaseState.VERIFYING)
        ctx.verify_project_setup()

        self._enter(ReleaseState.VERSION_GATE)
        raw = ctx.maven.evaluate(self._path, 'project.version')
        if not raw.endswith(SNAPSHOT_SUFFIX):
            raise BoosterFailure("Cannot release a non-snapshot version")
        try:
            current = Version.parse(raw)
        except VersionParseError as e:
            raise BoosterFailure(str(e)) from e

        latest = latest_tag(self._tag_names(), production=False,
                            production_qualifier=cfg.production_qualifier)
        if latest is None:
            ctx.log("Booster has never been released! Creating first release.")
        elif compare(current, latest) is not Ordering.GREATER:
            raise BoosterFailure(
                f"Booster version '{raw}' is older than latest released version '{latest}'"
            )

        if current.qualifier and current.qualifier not in cfg.allowed_qualifiers:
            raise BoosterFailure(
                f"Qualifier {current.qualifier} is not allowed. Please check the version of the booster"
            )

        release = current.release_version()
        next_version = current.next_snapshot_version()

        if (ctx.git.rev_parse(self._path, f"refs/tags/{release}")
                or ctx.git.remote_tag_exists(self._path, ctx.remote, str(release))):
            raise BoosterFailure(
                f"Tag {release} already exists. Please make sure that the booster version is set correctly"
            )

        self._enter(ReleaseState.TEMPLATE_GATE)
        templates = self._templates()
        if templates:
            self._substitute_templates(templates, release)

        # Everything below stays local until the final push
        with ctx.push_suppressed():
            self._enter(ReleaseState.TAGGING)
            ctx.set_project_version(str(release))
            self._tag(release)

            if templates:
                self._enter(ReleaseState.TEMPLATE_RESTORE)
                for path in replace_in_files(templates, str(release), cfg.template_token):
                    ctx.log(f"{path.relative_to(ctx.path)}: Restored {cfg.template_token} token")
                ctx.commit_if_changed(f"Restored templates placeholders: {release} -> {cfg.template_token}")

            self._enter(ReleaseState.NEXT_VERSION_BUMP)
            ctx.set_project_version(str(next_version))

            try:
                self.prod_tag(current.base, build_qualifier, templates=templates)
            except (BoosterOperationError, CatalogError, GitError, BuildError) as e:
                reason = getattr(e, 'reason', None) or str(e)
                raise BoosterFailure(f"Couldn't create the productized tag: {reason}") from e

        self._enter(ReleaseState.DONE)
        ctx.push(tags=True)
        return release

    def prod_tag(
        self,
        base: str,
        build_qualifier: Optional[str] = None,
        templates=None
    ) -> Version:
        """
        Create the next production tag for a base version.

        Must run on the primary branch. The tag points at a commit on a
        throwaway branch that is deleted afterwards.

        Args:
            base: Platform version, e.g. ``1.5.13``
            build_qualifier: Productization build for the BOM lookup
            templates: Deployment templates (looked up when None)

        Returns:
            The production tag created
        """
        ctx = self.ctx
        cfg = ctx.settings.release
        self._enter(ReleaseState.PROD_TAGGING)

        primary = ctx.settings.primary_branch
        origin = ctx.git.current_branch(self._path)
        if origin != primary:
            raise BoosterFailure(f"Cannot create prod tag if not on {primary} branch")

        if not is_valid_base(base):
            raise BoosterFailure(f"'{base}' is not a valid base version")

        tag = next_production_tag(self._tag_names(), base, cfg.production_qualifier)
        ephemeral = f"{tag}-branch"
        ctx.git.checkout(self._path, ephemeral, create=True)
        ctx.log(f"Switched to {ephemeral} branch")

        try:
            with ctx.push_suppressed():
                ctx.set_project_version(str(tag))

                if templates is None:
                    templates = self._templates()
                if templates:
                    self._substitute_templates(templates, tag)

                if ctx.env.catalog is None:
                    raise BoosterFailure("No artifact catalog configured")
                try:
                    bom_version = ctx.env.catalog.prod_bom_version(
                        base, build_qualifier or cfg.build_qualifier
                    )
                except CatalogError as e:
                    raise BoosterFailure(str(e)) from e

                ctx.maven.set_property(self._path, cfg.bom_property, bom_version)
                ctx.commit_if_changed(f"Update BOM to version {bom_version}")

                platform_version = f"{base}{cfg.platform_suffix}"
                ctx.maven.set_property(self._path, cfg.platform_property, platform_version)
                ctx.commit_if_changed(f"Update Spring Boot to version {platform_version}")

                self._tag(tag)
        finally:
            self._discard_branch(origin, ephemeral)

        return tag

    def _discard_branch(self, origin: str, ephemeral: str) -> None:
        """Go back to ``origin`` and delete the throwaway branch."""
        try:
            self.ctx.git.checkout(self._path, origin)
        except GitError as e:
            logger.warning(f"Could not switch back to {origin}, keeping {ephemeral}: {e}")
            return
        self.ctx.git.delete_branch(self._path, ephemeral)

    def revert_release(self) -> None:
        """
        Undo the last release on the current branch.

        Reverts the release commits in a single commit, then deletes the
        latest upstream and production tags (each after confirmation).

        Raises:
            BoosterFailure: If the booster was never released
            OperationAborted: If the operator declines the revert
        """
        ctx = self.ctx
        cfg = ctx.settings.release
        tag = latest_tag(self._tag_names(), production=False,
                         production_qualifier=cfg.production_qualifier)
        if tag is None:
            raise BoosterFailure("Booster hasn't been tagged: no release to revert!")

        count = RELEASE_COMMITS_WITH_TEMPLATES if self._templates() else RELEASE_COMMITS_WITHOUT_TEMPLATES
        ctx.git.revert_no_commit(self._path, f"HEAD~{count}..")
        previous = ctx.git.describe_commit(self._path, f"HEAD~{count}")
        ctx.log(f"About to revert state to commit -> {previous}")

        if not ctx.confirm("revert to before last release"):
            ctx.git.revert_abort(self._path)
            ctx.log("Revert aborted")
            raise OperationAborted("Revert aborted")

        ctx.commit(f"Revert to {previous}")
        ctx.push()

        self.delete_tag(str(tag))
        production = latest_tag(self._tag_names(), production=True,
                                production_qualifier=cfg.production_qualifier)
        if production is not None:
            self.delete_tag(str(production))

    def delete_tag(self, tag: str) -> bool:
        """
        Delete a tag locally, and on the remote when pushing is enabled.

        Returns:
            False if the operator declined
        """
        ctx = self.ctx
        if not ctx.confirm(f"delete {tag} locally and on remote"):
            ctx.log("Tag deletion aborted")
            return False
        ctx.push(ref=tag, delete=True)
        if ctx.git.delete_tag(self._path, tag):
            ctx.log(f"Deleted tag {tag}")
        return True
