"""
Booster processing loop for boosterops.

Runs one bound operation over every selected booster and branch. Each
booster/branch combination is isolated: whatever the operation raises is
turned into a processed, failed or ignored record and the loop moves on.
Only global problems (bad usage, nothing discovered) stop a run.
"""

import logging
import tempfile
from pathlib import Path
from typing import List, Optional

from .. import output
from ..config import Settings
from ..domain.booster import Booster
from ..domain.outcome import RunResults
from ..errors import BoosterFailure, BoosterSkipped, OperationAborted
from ..exit_codes import NoReposFoundError
from ..infra.catalog_client import CatalogClient
from ..infra.git_client import GitClient
from ..infra.github_client import GitHubClient
from ..infra.maven_client import MavenClient
from ..infra.openshift_client import OpenShiftClient
from .confirmation import Answer, ConfirmationGate
from .context import BoosterContext, RunEnvironment
from .operations import BoundOperation, OperationSpec

logger = logging.getLogger(__name__)


class BoosterOrchestrator:
    """
    Applies an operation across boosters and branches.

    Example:
        orchestrator = BoosterOrchestrator(settings)
        results = orchestrator.run(bind('change_version', '1.5.13-3-SNAPSHOT'))
        output.print_summary(results)
    """

    def __init__(
        self,
        settings: Settings,
        git: Optional[GitClient] = None,
        maven: Optional[MavenClient] = None,
        gate: Optional[ConfirmationGate] = None,
        github: Optional[GitHubClient] = None,
        catalog: Optional[CatalogClient] = None,
        openshift: Optional[OpenShiftClient] = None
    ):
        """
        Initialize BoosterOrchestrator.

        Args:
            settings: Resolved run settings
            git: GitClient instance (creates new if None)
            maven: MavenClient instance (creates one from settings if None)
            gate: ConfirmationGate (interactive unless confirmations are off)
            github: GitHubClient used for discovery and pull requests
            catalog: CatalogClient for productized BOM versions
            openshift: OpenShiftClient for integration tests
        """
        self.settings = settings
        self.git = git or GitClient()
        self.maven = maven or MavenClient(settings.maven_settings, settings.maven_extra_opts)
        self.gate = gate or ConfirmationGate(interactive=settings.confirmation_needed)
        self.github = github
        self.catalog = catalog
        self.openshift = openshift

    def discover(self) -> List[Booster]:
        """
        Find boosters with the configured GitHub search query.

        Raises:
            NoReposFoundError: If the search returned nothing
        """
        github = self.github or GitHubClient(token=self.settings.github_token)
        hits = github.search_repositories(self.settings.github_query)
        if not hits:
            raise NoReposFoundError()
        logger.debug(f"Discovered {len(hits)} boosters for '{self.settings.github_query}'")
        return [
            Booster(hit.name, hit.ssh_url, self.settings.naming_prefix, self.settings.naming_suffix)
            for hit in hits
        ]

    def select(self, boosters: List[Booster]) -> List[Booster]:
        return self.settings.selection.apply(boosters)

    def run(self, operation: BoundOperation, boosters: Optional[List[Booster]] = None) -> RunResults:
        """
        Run an operation on every selected booster and branch.

        Args:
            operation: Bound operation to apply
            boosters: Boosters to consider (discovered if None)

        Returns:
            The results of this run

        Raises:
            UsageError: If the settings don't suit the operation
            NoReposFoundError: If discovery found nothing
        """
        spec = operation.spec
        settings = spec.check(self.settings)
        if boosters is None:
            boosters = self.discover()
        selected = self.select(boosters)

        with tempfile.TemporaryDirectory(prefix="boosterops-") as work_dir:
            env = RunEnvironment(
                settings=settings,
                git=self.git,
                maven=self.maven,
                gate=self.gate,
                catalog=self.catalog,
                openshift=self.openshift,
                github=self.github,
                work_dir=Path(work_dir),
            )
            self._run_hook(operation.run_before, env, operation)

            for booster in selected:
                output.booster_header(booster.name)
                self._process_booster(env, booster, operation)
                output.separator()

            self._run_hook(operation.run_after, env, operation)

        return env.results

    def _run_hook(self, hook, env: RunEnvironment, operation: BoundOperation) -> None:
        try:
            hook(env)
        except Exception as e:
            logger.debug("Hook failure", exc_info=True)
            output.failed_line(None, f"Couldn't run {operation.name} hook: {e}")

    def _process_booster(self, env: RunEnvironment, booster: Booster, operation: BoundOperation) -> None:
        path = booster.local_path(env.settings.boosters_dir)

        if env.settings.local_setup:
            try:
                self._setup_locally(env, booster, path)
            except Exception as e:
                logger.debug("Local setup failure", exc_info=True)
                output.failed_line(None, str(e))
                env.results.fail("", booster.name, f"Local setup failed: {e}")
                return

        if not self.git.is_git_repo(str(path)):
            output.ignored_line(None, "Not under git control")
            env.results.ignore("", booster.name, "Not under git control")
            return

        for branch in env.settings.branches:
            ctx = BoosterContext(env, booster, branch)
            try:
                self._prepare_branch(ctx, operation.spec)
                ctx.log(f"Executing '{operation.describe()}'")
                operation(ctx)
            except BoosterSkipped as e:
                ctx.ignore(e.reason)
            except BoosterFailure as e:
                ctx.fail(e.reason)
            except OperationAborted as e:
                ctx.log(f"{e.reason}: aborted")
            except Exception as e:
                logger.debug(f"{operation.name} raised on {booster.name}@{branch}", exc_info=True)
                ctx.fail(str(e) or type(e).__name__)
            else:
                env.results.processed_ok(branch, booster.name)
            ctx.log("Done")

    def _prepare_branch(self, ctx: BoosterContext, spec: OperationSpec) -> None:
        """
        Check out the branch and bring it up to date with the remote.

        Raises:
            BoosterSkipped: If the branch is missing or has local changes
        """
        path = str(ctx.path)
        bypass = ctx.settings.ignore_local_changes or spec.ignore_local_changes

        if not spec.creates_branch and not self.git.local_branch_exists(path, ctx.branch):
            if self.git.remote_branch_exists(path, ctx.remote, ctx.branch):
                ctx.log(f"Branch only exists on {ctx.remote}, creating local branch")
                self.git.checkout(path, ctx.branch, create=True, start_point=f"{ctx.remote}/{ctx.branch}")
                bypass = True
            else:
                raise BoosterSkipped("Branch does not exist")

        self.git.fetch(path, ctx.remote, tags=True)

        update_branch = ctx.settings.primary_branch if spec.anchor_on_primary else ctx.branch
        if bypass:
            self.git.checkout(path, update_branch)
            return

        if self.git.has_uncommitted_changes(path):
            raise BoosterSkipped("You have uncommitted changes, please stash these changes")
        self.git.checkout(path, update_branch)
        self.git.rebase(path, f"{ctx.remote}/{update_branch}")

    def _setup_locally(self, env: RunEnvironment, booster: Booster, path: Path) -> None:
        """Clone the booster or reset it to the remote state, then track each branch."""
        remote = env.settings.remote
        if not path.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
            output.note(f"Cloning {booster.url}")
            self.git.clone(booster.url, str(path.parent), path.name, remote=remote)
        else:
            self.git.fetch(str(path), remote, tags=True)
            current = self.git.current_branch(str(path))
            if current and self.gate.confirm("revert", branch=current) is Answer.YES:
                self.git.reset_hard(str(path), f"{remote}/{current}")
                self.git.clean(str(path))

        for branch in env.settings.branches:
            if self.git.local_branch_exists(str(path), branch):
                self.git.checkout(str(path), branch)
                self.git.reset_hard(str(path), f"{remote}/{branch}")
                self.git.clean(str(path))
            elif self.git.remote_branch_exists(str(path), booster.url, branch):
                self.git.checkout_tracking(str(path), remote, branch)
