"""
Shared fixtures: in-memory git, Maven and catalog collaborators.

The fakes implement the subset of GitClient, MavenClient and CatalogClient
the services use, and record what was asked of them.
"""

from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

import pytest

from boosterops.config import Settings
from boosterops.domain.booster import Booster
from boosterops.errors import CatalogError, GitError
from boosterops.infra.git_client import GitStatus
from boosterops.infra.maven_client import PropertyChange
from boosterops.services.confirmation import ConfirmationGate
from boosterops.services.context import BoosterContext, RunEnvironment


class FakeGit:
    """A single-repository git working copy kept in memory."""

    def __init__(self, branch: str = "master"):
        self.branch = branch
        self.local_branches: Set[str] = {branch}
        self.remote_branches: Set[str] = {branch}
        self.tags: List[str] = []
        self.remote_tags: List[str] = []
        self.dirty = False
        self.changes: List[str] = []
        self.untracked_boosters: Set[str] = set()
        self.commits: List[Tuple[str, str]] = []
        self.pushes: List[Dict] = []
        self.push_ok = True
        self.failing_checkouts: Set[str] = set()
        self.calls: List[Tuple] = []

    # Queries

    def is_git_repo(self, path):
        return Path(path).name not in self.untracked_boosters

    def status(self, path):
        return GitStatus(branch=self.branch, clean=not self.dirty, changes=list(self.changes))

    def has_uncommitted_changes(self, path, *paths):
        return self.dirty

    def current_branch(self, path):
        return self.branch

    def local_branch_exists(self, path, branch):
        return branch in self.local_branches

    def remote_branch_exists(self, path, remote, branch):
        return branch in self.remote_branches

    def remote_tag_exists(self, path, remote, tag):
        return tag in self.remote_tags

    def list_tags(self, path, pattern=None):
        return list(self.tags)

    def rev_parse(self, path, rev):
        name = rev[len('refs/tags/'):] if rev.startswith('refs/tags/') else rev
        return "0123abc" if name in self.tags else None

    def describe_commit(self, path, rev):
        return f"0123abc: commit at {rev}"

    # Working copy

    def clone(self, url, parent_dir, name, remote="origin", branch=None):
        self.calls.append(('clone', url, name, remote, branch))
        Path(parent_dir, name).mkdir(parents=True, exist_ok=True)

    def fetch(self, path, remote="origin", tags=True):
        self.calls.append(('fetch', remote))
        return True

    def checkout(self, path, branch, create=False, start_point=None):
        if branch in self.failing_checkouts:
            raise GitError(['checkout', branch], 1, "checkout failed")
        self.calls.append(('checkout', branch, create, start_point))
        if create:
            self.local_branches.add(branch)
        self.branch = branch

    def checkout_tracking(self, path, remote, branch):
        self.calls.append(('checkout_tracking', remote, branch))
        self.local_branches.add(branch)
        self.branch = branch

    def rebase(self, path, upstream):
        self.calls.append(('rebase', upstream))

    def reset_hard(self, path, ref):
        self.calls.append(('reset_hard', ref))
        self.dirty = False

    def clean(self, path):
        self.calls.append(('clean',))

    def delete_branch(self, path, branch):
        self.calls.append(('delete_branch', branch))
        if branch in self.local_branches:
            self.local_branches.discard(branch)
            return True
        return False

    # History

    def commit_all(self, path, message):
        self.commits.append((self.branch, message))
        self.dirty = False

    def tag(self, path, name, message):
        self.calls.append(('tag', name))
        self.tags.append(name)

    def delete_tag(self, path, name):
        if name in self.tags:
            self.tags.remove(name)
            return True
        return False

    def revert_no_commit(self, path, revision_range):
        self.calls.append(('revert_no_commit', revision_range))
        self.dirty = True

    def revert_abort(self, path):
        self.calls.append(('revert_abort',))
        self.dirty = False

    def add_remote(self, path, name, url):
        return True

    def pull_rebase(self, path, remote, branch):
        return True

    def push(self, path, remote, ref=None, delete=False, tags=False):
        self.pushes.append({'remote': remote, 'ref': ref, 'delete': delete, 'tags': tags})
        return self.push_ok, "" if self.push_ok else "rejected"


class FakeMaven:
    """A pom whose version and properties live in memory."""

    def __init__(self, git: FakeGit, version: str = "1.5.13-2-SNAPSHOT"):
        self.git = git
        self.version = version
        self.parent_version = "21"
        self.properties: Dict[str, str] = {}
        self.dependencies_ok = True
        self.set_version_ok = True
        self.build_ok = True
        self.integration_ok = True
        self.deploy_ok = True
        self.calls: List[Tuple] = []

    def evaluate(self, path, expression):
        if expression == 'project.version':
            return self.version
        if expression == 'project.parent.version':
            return self.parent_version
        return self.properties.get(expression, "")

    def analyze_dependencies(self, path):
        self.calls.append(('analyze_dependencies',))
        return self.dependencies_ok

    def set_version(self, path, version):
        self.calls.append(('set_version', version))
        if not self.set_version_ok:
            return False
        if version != self.version:
            self.version = version
            self.git.dirty = True
        return True

    def verify(self, path, skip_tests=False, log_to_file=True, quiet=False):
        self.calls.append(('verify', skip_tests, quiet))
        return self.build_ok

    def fabric8_deploy(self, path):
        self.calls.append(('fabric8_deploy',))
        return self.deploy_ok

    def integration_tests(self, path):
        self.calls.append(('integration_tests',))
        return self.integration_ok

    def set_property(self, path, name, value):
        previous = self.properties.get(name)
        if previous == value:
            return PropertyChange(changed=False)
        self.properties[name] = value
        self.git.dirty = True
        return PropertyChange(changed=True, added=previous is None)

    def replace_version_text(self, path, old, new):
        if self.parent_version != old or old == new:
            return False
        self.parent_version = new
        self.git.dirty = True
        return True


class FakeCatalog:
    def __init__(self, bom_version: Optional[str] = "1.5.13.SP1-redhat-00001"):
        self.bom_version = bom_version
        self.requests: List[Tuple[str, str]] = []

    def prod_bom_version(self, base, build_qualifier="CR1"):
        self.requests.append((base, build_qualifier))
        if self.bom_version is None:
            raise CatalogError("Couldn't retrieve the prod BOM version. Are you connected to the VPN?")
        return self.bom_version


@pytest.fixture
def git():
    return FakeGit()


@pytest.fixture
def maven(git):
    return FakeMaven(git)


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
def booster():
    return Booster("spring-boot-http-booster", "git@github.com:snowdrop/spring-boot-http-booster.git")


@pytest.fixture
def make_env(tmp_path, git, maven, catalog):
    """Build a RunEnvironment around the fakes; keyword arguments override Settings."""
    def factory(gate=None, **overrides):
        settings = Settings(boosters_dir=tmp_path, confirmation_needed=False, **overrides)
        return RunEnvironment(
            settings=settings,
            git=git,
            maven=maven,
            gate=gate or ConfirmationGate(interactive=False),
            catalog=catalog,
            work_dir=tmp_path / "work",
        )
    return factory


@pytest.fixture
def env(make_env):
    return make_env()


@pytest.fixture
def ctx(env, booster):
    context = BoosterContext(env, booster, "master")
    context.path.mkdir(parents=True, exist_ok=True)
    return context
