"""
Explicit execution context for booster operations.

A RunEnvironment holds what is shared by one run (settings, collaborators,
the scratch work directory and the results collector). A BoosterContext
narrows it to the booster and branch currently being processed and is
passed to every operation.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, Optional

from .. import output
from ..config import Settings
from ..domain.booster import Booster
from ..domain.outcome import RunResults
from ..errors import BoosterFailure
from ..infra.catalog_client import CatalogClient
from ..infra.git_client import GitClient
from ..infra.github_client import GitHubClient
from ..infra.maven_client import MavenClient
from ..infra.openshift_client import OpenShiftClient
from .confirmation import Answer, ConfirmationGate

logger = logging.getLogger(__name__)


@dataclass
class RunEnvironment:
    """State and collaborators shared by every booster in one run."""
    settings: Settings
    git: GitClient
    maven: MavenClient
    gate: ConfirmationGate
    catalog: Optional[CatalogClient] = None
    openshift: Optional[OpenShiftClient] = None
    github: Optional[GitHubClient] = None
    work_dir: Optional[Path] = None
    results: RunResults = field(default_factory=RunResults)


class BoosterContext:
    """
    Everything an operation needs for one booster/branch combination.

    Commits honour dry-run mode. Pushes honour dry-run mode and can be
    suppressed temporarily with push_suppressed().
    """

    def __init__(self, env: RunEnvironment, booster: Booster, branch: str):
        self.env = env
        self.booster = booster
        self.branch = branch
        self.path = booster.local_path(env.settings.boosters_dir)
        self.push_enabled = env.settings.push_enabled

    @property
    def settings(self) -> Settings:
        return self.env.settings

    @property
    def git(self) -> GitClient:
        return self.env.git

    @property
    def maven(self) -> MavenClient:
        return self.env.maven

    @property
    def remote(self) -> str:
        return self.env.settings.remote

    @property
    def environment(self) -> Dict[str, str]:
        """Variables exposed to operator commands and scripts."""
        return {
            'BOOSTER': self.booster.name,
            'BOOSTER_DIR': str(self.path),
            'BRANCH': self.branch,
        }

    # Reporting

    def log(self, message: str) -> None:
        output.branch_line(self.branch, message)

    def ignore(self, reason: str) -> None:
        output.ignored_line(self.branch, reason)
        self.env.results.ignore(self.branch, self.booster.name, reason)

    def fail(self, reason: str) -> None:
        output.failed_line(self.branch, reason)
        self.env.results.fail(self.branch, self.booster.name, reason)

    # Git helpers

    def commit(self, message: str) -> bool:
        """Commit all changes, unless commits are disabled."""
        if not self.settings.commit_enabled:
            logger.debug(f"Commits disabled, not committing '{message}'")
            return False
        self.log(f"Commit: '{message}'")
        self.git.commit_all(str(self.path), f"{self.settings.commit_prefix} {message}")
        return True

    def commit_if_changed(self, message: str) -> bool:
        """
        Commit only if the working tree has changes.

        Returns:
            False if there was nothing to commit
        """
        if not self.git.has_uncommitted_changes(str(self.path)):
            return False
        self.commit(message)
        return True

    def push(self, ref: Optional[str] = None, delete: bool = False, tags: bool = False) -> bool:
        """
        Push the current branch (or ``ref``) to the remote.

        Returns:
            False if pushing is disabled

        Raises:
            BoosterFailure: If git refuses the push
        """
        if not self.push_enabled:
            return False
        success, details = self.git.push(
            str(self.path), self.remote, ref=ref or self.branch, delete=delete, tags=tags
        )
        if not success:
            logger.debug(f"Push output: {details}")
            raise BoosterFailure(f"Failed to push to {self.remote}")
        self.log(f"Pushed to {self.remote}")
        return True

    @contextmanager
    def push_suppressed(self) -> Iterator[None]:
        """Disable pushing for the duration of the block."""
        previous = self.push_enabled
        self.push_enabled = False
        try:
            yield
        finally:
            self.push_enabled = previous

    def reset_to_remote(self) -> None:
        """Hard reset to ``<remote>/<branch>`` and remove untracked files."""
        self.git.reset_hard(str(self.path), f"{self.remote}/{self.branch}")
        self.git.clean(str(self.path))

    def confirm(self, action: str) -> bool:
        return self.env.gate.confirm(action, branch=self.branch) is Answer.YES

    # Maven helpers

    def verify_project_setup(self) -> None:
        """
        Check the booster's dependencies resolve, once per run.

        Raises:
            BoosterFailure: If dependency analysis fails
        """
        key = (self.booster.name, self.branch)
        if key in self.env.results.validated:
            return
        if not self.maven.analyze_dependencies(str(self.path)):
            raise BoosterFailure(
                "Unable to verify that the booster was setup correctly locally - "
                "some dependencies seem to be missing"
            )
        self.env.results.validated.add(key)

    def set_project_version(self, version: str) -> bool:
        """
        Set the project version and commit (and push) the change.

        Returns:
            False if the project was already at that version

        Raises:
            BoosterFailure: If Maven could not set the version; the branch
                is reset to the remote state first
        """
        if not self.maven.set_version(str(self.path), version):
            self.git.reset_hard(str(self.path), f"{self.remote}/{self.branch}")
            raise BoosterFailure(f"Couldn't set version. Reverting to remote {self.remote} version.")
        if not self.commit_if_changed(f"Update version to {version}"):
            return False
        self.push()
        return True
