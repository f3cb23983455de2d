"""
Booster operations and their registry.

Every operation is a function taking a BoosterContext plus its own
arguments. It signals its outcome by returning (processed) or raising
BoosterFailure (failed), BoosterSkipped (ignored) or OperationAborted
(declined by the operator).

Operations are registered under the name used by ``fn`` together with the
flags that change how the processing loop prepares each branch.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

from ..config import Settings
from ..domain.version import Version
from ..errors import BoosterFailure, BoosterSkipped, GitError, OperationAborted, VersionParseError
from ..exit_codes import UsageError
from ..infra.openshift_client import highest_image_tag
from ..infra.shell import run_shell
from ..infra.templates import (
    RUNTIME_VERSION_PARAMETER,
    find_templates,
    replace_in_files,
    runtime_image,
    set_template_parameter,
    template_name,
)
from . import catalog_service
from .context import BoosterContext, RunEnvironment
from .release_service import ReleaseWorkflow

logger = logging.getLogger(__name__)

Handler = Callable[..., None]
Hook = Callable[..., Any]


@dataclass(frozen=True)
class OperationSpec:
    """
    A registered operation.

    Attributes:
        name: Name used by ``fn`` and in progress output
        handler: Function run for every booster/branch combination
        creates_branch: Do not require the branch to exist
        anchor_on_primary: Synchronize the primary branch instead of the
            processed one before running
        ignore_local_changes: Run even if the working tree is dirty
        primary_only: Always run on the primary branch only
        forbids_primary: Refuse to run with the primary branch selected
        rejects_dry_run: Refuse to run in dry-run mode
        before: Called once with the run environment before any booster
        after: Called once with the run environment after all boosters
    """
    name: str
    handler: Handler
    creates_branch: bool = False
    anchor_on_primary: bool = False
    ignore_local_changes: bool = False
    primary_only: bool = False
    forbids_primary: bool = False
    rejects_dry_run: bool = False
    before: Optional[Hook] = None
    after: Optional[Hook] = None

    def check(self, settings: Settings) -> Settings:
        """
        Validate settings for this operation and apply its branch policy.

        Raises:
            UsageError: If the settings cannot be used with the operation
        """
        if self.rejects_dry_run and settings.dry_run:
            raise UsageError(f"The dry-run option is not supported for the {self.name} command")
        if self.primary_only:
            return settings.with_branches(settings.primary_branch)
        if self.forbids_primary and settings.primary_branch in settings.branches:
            raise UsageError(
                f"{self.name} must be used with branch(es) specified via -b. "
                f"The specified branches cannot contain the {settings.primary_branch} branch"
            )
        return settings


@dataclass(frozen=True)
class BoundOperation:
    """An operation with its arguments, ready to run on each booster."""
    spec: OperationSpec
    args: Tuple[Any, ...] = ()
    kwargs: Dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.spec.name

    def describe(self) -> str:
        parts = [self.spec.name, *(str(a) for a in self.args if a is not None)]
        parts += [f"{k}={v}" for k, v in self.kwargs.items() if v not in (None, False)]
        return ' '.join(parts)

    def __call__(self, ctx: BoosterContext) -> None:
        self.spec.handler(ctx, *self.args, **self.kwargs)

    def run_before(self, env: RunEnvironment) -> None:
        if self.spec.before:
            self.spec.before(env, *self.args, **self.kwargs)

    def run_after(self, env: RunEnvironment) -> None:
        if self.spec.after:
            self.spec.after(env, *self.args, **self.kwargs)


OPERATIONS: Dict[str, OperationSpec] = {}


def operation(name: str, **flags: Any) -> Callable[[Handler], Handler]:
    """Register a handler under ``name``."""
    def decorator(func: Handler) -> Handler:
        OPERATIONS[name] = OperationSpec(name=name, handler=func, **flags)
        return func
    return decorator


def bind(name: str, *args: Any, **kwargs: Any) -> BoundOperation:
    """
    Look up an operation and bind its arguments.

    Raises:
        UsageError: If no operation has that name
    """
    spec = OPERATIONS.get(name)
    if spec is None:
        raise UsageError(f"Unknown function: '{name}'. Available: {', '.join(sorted(OPERATIONS))}")
    return BoundOperation(spec, tuple(args), dict(kwargs))


def _next_revision(raw: str) -> str:
    try:
        return str(Version.parse(raw).next_revision())
    except VersionParseError as e:
        raise BoosterFailure(str(e)) from e


# Versions

@operation('change_version')
def change_version(ctx: BoosterContext, version: Optional[str] = None) -> None:
    """Set the project version, or bump its revision when none is given."""
    ctx.verify_project_setup()
    target = version or _next_revision(ctx.maven.evaluate(str(ctx.path), 'project.version'))
    if not ctx.set_project_version(target):
        raise BoosterSkipped(f"Version was already at {target}")


@operation('update_parent')
def update_parent(ctx: BoosterContext, version: Optional[str] = None) -> None:
    """Move the parent pom version, verifying the build before committing."""
    ctx.verify_project_setup()
    path = str(ctx.path)
    current = ctx.maven.evaluate(path, 'project.parent.version')
    target = version or _next_revision(current)

    if not ctx.maven.replace_version_text(path, current, target):
        raise BoosterSkipped(f"Parent version was already at {target}")

    ctx.log("Running verification build")
    if not ctx.maven.verify(path, skip_tests=not ctx.settings.run_tests):
        ctx.log("You will need to reset the branch or explicitly set the parent before running this script again.")
        raise BoosterFailure("Build failed! Check build.log")
    ctx.log("Build OK")

    ctx.commit(f"Update parent version to {target}")
    ctx.push()


@operation('release', primary_only=True, rejects_dry_run=True)
def release(ctx: BoosterContext, build_qualifier: Optional[str] = None) -> None:
    ReleaseWorkflow(ctx).release(build_qualifier)


@operation('prod_tag')
def prod_tag(ctx: BoosterContext, base: str, build_qualifier: Optional[str] = None) -> None:
    tag = ReleaseWorkflow(ctx).prod_tag(base, build_qualifier)
    ctx.push(ref=str(tag))


@operation('revert_release')
def revert_release(ctx: BoosterContext) -> None:
    ReleaseWorkflow(ctx).revert_release()


@operation('delete_tag')
def delete_tag(ctx: BoosterContext, tag: str) -> None:
    if not ReleaseWorkflow(ctx).delete_tag(tag):
        raise OperationAborted("Tag deletion aborted")


# Branches

@operation('create_branch', creates_branch=True, anchor_on_primary=True, forbids_primary=True)
def create_branch(ctx: BoosterContext) -> None:
    """Create the processed branch off the primary branch and push it."""
    path = str(ctx.path)
    if ctx.git.remote_branch_exists(path, ctx.remote, ctx.branch):
        raise BoosterSkipped("Branch already exists on remote")
    try:
        ctx.git.checkout(path, ctx.branch, create=True)
    except GitError as e:
        raise BoosterFailure("Couldn't create branch") from e
    ctx.push(ref=ctx.branch)


@operation('delete_branch', anchor_on_primary=True, forbids_primary=True)
def delete_branch(ctx: BoosterContext) -> None:
    """Delete the processed branch on the remote and locally."""
    path = str(ctx.path)
    deleted_remote = False
    if ctx.git.remote_branch_exists(path, ctx.remote, ctx.branch):
        if not ctx.confirm(f"delete {ctx.branch} branch on remote {ctx.remote}"):
            raise OperationAborted("Branch deletion aborted")
        deleted_remote = ctx.push(ref=ctx.branch, delete=True)
    else:
        ctx.log("Branch doesn't exist on remote")

    if ctx.git.delete_branch(path, ctx.branch):
        ctx.log("Deleted local branch")
    elif not deleted_remote:
        raise BoosterSkipped("Branch doesn't exist locally")


@operation('revert', ignore_local_changes=True)
def revert(ctx: BoosterContext) -> None:
    """Throw away local commits and changes, back to the remote state."""
    status = ctx.git.status(str(ctx.path))
    if not status.clean:
        ctx.log("DANGER: YOU HAVE UNCOMMITTED CHANGES:")
        for change in status.changes:
            ctx.log(f"  {change}")

    if not ctx.confirm("revert"):
        ctx.log("Leaving as-is")
        raise OperationAborted("Revert aborted")

    ctx.log(f"Resetting to remote {ctx.remote} state")
    ctx.reset_to_remote()


# Commands

@operation('cmd')
def run_cmd(ctx: BoosterContext, command: str, message: Optional[str] = None) -> None:
    """Run a shell command, committing and pushing its changes when a message is given."""
    ctx.log(f"Executing '{command}'")
    if run_shell(command, cwd=str(ctx.path), env=ctx.environment) != 0:
        raise BoosterFailure(f"{command} command failed")
    if message and ctx.commit_if_changed(message):
        ctx.push()


@operation('script')
def script(ctx: BoosterContext, script_path: str) -> None:
    """Run a bash script in the booster directory."""
    resolved = Path(script_path).expanduser().resolve()
    if not resolved.is_file():
        raise BoosterFailure(f"Script {script_path} not found")
    if run_shell(['bash', str(resolved)], cwd=str(ctx.path), env=ctx.environment) != 0:
        raise BoosterFailure(f"Script {script_path} failed")


@operation('set_maven_property')
def set_maven_property(ctx: BoosterContext, name: str, value: str, verify: bool = False) -> None:
    """Set (or add) a pom property, optionally checking the build first."""
    path = str(ctx.path)
    change = ctx.maven.set_property(path, name, value)
    if not change.changed:
        raise BoosterSkipped(f"Property {name} was not changed")

    if verify:
        ctx.log("Running verification build")
        if not ctx.maven.verify(path, skip_tests=not ctx.settings.run_tests):
            ctx.log("You will need to reset the branch or explicitly set the parent before running this script again.")
            raise BoosterFailure("Build failed! Check build.log")
        ctx.log("Build OK")

    ctx.log(f"Property {name} {'added and set' if change.added else 'changed'} to {value}")
    ctx.commit(f"{'Add' if change.added else 'Update'} {name} version with {value} value")
    ctx.push()


# Tests

@operation('run_smoke_tests')
def run_smoke_tests(ctx: BoosterContext) -> None:
    if not ctx.settings.run_tests:
        ctx.log("Skipping tests")
        return
    ctx.log(f"Running tests of booster from directory: {ctx.path}")
    if not ctx.maven.verify(str(ctx.path), log_to_file=False, quiet=True):
        raise BoosterFailure("Tests failed")
    ctx.log("Successfully tested")


def fmp_deploy(ctx: BoosterContext) -> bool:
    return ctx.maven.fabric8_deploy(str(ctx.path))


def s2i_deploy(ctx: BoosterContext) -> bool:
    """Deploy from the booster's templates, building from its git repository."""
    oc = ctx.env.openshift
    base_url = ctx.settings.openshift.source_repository_base.rstrip('/')
    templates = find_templates(ctx.path, ctx.settings.release.template_glob)
    if not templates:
        ctx.log("No templates to deploy")
        return False
    for template in templates:
        replace_in_files([template], ctx.settings.release.template_token, 'latest')
        oc.apply(str(template), cwd=str(ctx.path))
        oc.new_app(template_name(template), {
            'SOURCE_REPOSITORY_URL': f"{base_url}/{ctx.booster.name}",
            'SOURCE_REPOSITORY_REF': ctx.branch,
        }, cwd=str(ctx.path))
        phase = oc.wait_for_build()
        ctx.log(f"Build finished with phase {phase}")
    return True


DEPLOYERS: Dict[str, Callable[[BoosterContext], bool]] = {
    'fmp_deploy': fmp_deploy,
    's2i_deploy': s2i_deploy,
}


@operation('run_integration_tests')
def run_integration_tests(ctx: BoosterContext, deployment_type: Optional[str] = None) -> None:
    """Deploy into a fresh namespace and run the OpenShift integration tests."""
    if not ctx.settings.run_tests:
        ctx.log("Skipping tests")
        return

    deployment_type = deployment_type or 'fmp_deploy'
    deploy = DEPLOYERS.get(deployment_type)
    if deploy is None:
        raise BoosterSkipped(f"Deployment type '{deployment_type}' is not valid")
    if ctx.env.openshift is None:
        raise BoosterFailure("No OpenShift client configured")

    namespace = ctx.booster.name
    ctx.log(f"Running tests of booster {namespace} from directory: {ctx.path}")
    ctx.env.openshift.recreate_namespace(namespace)

    ctx.log(f"Deploying using {deployment_type}")
    if not deploy(ctx):
        ctx.env.openshift.delete_namespace(namespace)
        raise BoosterFailure(f"Deployment using {deployment_type} failed")

    if not ctx.maven.integration_tests(str(ctx.path)):
        # namespace kept for inspection
        raise BoosterFailure(f"Tests failed: inspecting the '{namespace}' namespace might provide some insights")

    ctx.log("Successfully tested")
    ctx.env.openshift.delete_namespace(namespace)
    ctx.reset_to_remote()


@operation('update_runtime_version')
def update_runtime_version(ctx: BoosterContext, version: Optional[str] = None) -> None:
    """
    Set the RUNTIME_VERSION parameter of every deployment template.

    Without a version, the highest tag of the first template's runtime
    image is used.
    """
    templates = find_templates(ctx.path, ctx.settings.release.template_glob)
    if not templates:
        raise BoosterSkipped("No deployment templates found")

    if not version:
        image = runtime_image(templates[0])
        version = highest_image_tag(image) if image else None
        if not version:
            raise BoosterSkipped("A version number must be supplied")
        ctx.log(f"Using {image}:{version}")

    for template in templates:
        set_template_parameter(template, RUNTIME_VERSION_PARAMETER, version)

    if not ctx.commit_if_changed(f"Update template's {RUNTIME_VERSION_PARAMETER} -> {version}"):
        raise BoosterSkipped(f"Runtime version was already at {version}")
    ctx.push()


# Launcher catalog

@operation(
    'catalog',
    primary_only=True,
    before=catalog_service.prepare_catalog,
    after=catalog_service.open_catalog_pr,
)
def catalog(ctx: BoosterContext, base: str) -> None:
    catalog_service.update_booster_entries(ctx, base)
