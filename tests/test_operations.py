"""
Tests for booster operations and the operation registry.
"""

from unittest.mock import MagicMock, patch

import pytest

from boosterops.config import Settings
from boosterops.errors import BoosterFailure, BoosterSkipped, OperationAborted
from boosterops.exit_codes import UsageError
from boosterops.infra.templates import read_yaml
from boosterops.services import catalog_service, operations
from boosterops.services.confirmation import ConfirmationGate
from boosterops.services.context import BoosterContext
from boosterops.services.operations import OPERATIONS, bind


TEMPLATE = """\
apiVersion: v1
kind: Template
metadata:
  name: http-booster
parameters:
- name: RUNTIME_VERSION
  value: '1.3'
- name: SOURCE_REPOSITORY_REF
  value: master
objects:
- kind: ImageStream
  metadata:
    name: runtime
  spec:
    tags:
    - name: RUNTIME_VERSION
      from:
        kind: DockerImage
        name: registry.access.redhat.com/redhat-openjdk-18/openjdk18-openshift:${RUNTIME_VERSION}
"""


def _write_template(ctx, content=TEMPLATE):
    template = ctx.path / ".openshiftio" / "application.yaml"
    template.parent.mkdir(parents=True, exist_ok=True)
    template.write_text(content)
    return template


def _branch_ctx(make_env, booster, branch, **overrides):
    ctx = BoosterContext(make_env(**overrides), booster, branch)
    ctx.path.mkdir(parents=True, exist_ok=True)
    return ctx


# ============================================================================
# Registry
# ============================================================================

class TestRegistry:

    def test_all_operations_registered(self):
        assert set(OPERATIONS) >= {
            'change_version', 'update_parent', 'release', 'prod_tag', 'revert_release', 'delete_tag',
            'create_branch', 'delete_branch', 'revert', 'cmd', 'script', 'set_maven_property',
            'run_smoke_tests', 'run_integration_tests', 'update_runtime_version', 'catalog',
        }

    def test_unknown_operation(self):
        with pytest.raises(UsageError, match="Unknown function: 'nope'"):
            bind('nope')

    def test_describe_skips_unset_arguments(self):
        assert bind('cmd', 'make test', None).describe() == "cmd make test"
        assert bind('set_maven_property', 'a', 'b', verify=True).describe() == "set_maven_property a b verify=True"

    def test_release_rejects_dry_run(self):
        with pytest.raises(UsageError, match="dry-run"):
            OPERATIONS['release'].check(Settings(dry_run=True))

    def test_release_forces_primary_branch(self):
        settings = OPERATIONS['release'].check(Settings(branches=('1.5.x', 'feature')))
        assert settings.branches == ('master',)

    @pytest.mark.parametrize("name", ['create_branch', 'delete_branch'])
    def test_branch_operations_refuse_primary(self, name):
        with pytest.raises(UsageError, match="cannot contain the master branch"):
            OPERATIONS[name].check(Settings(branches=('feature', 'master')))

    def test_branch_operations_accept_other_branches(self):
        settings = Settings(branches=('feature',))
        assert OPERATIONS['create_branch'].check(settings) is settings

    def test_catalog_hooks(self):
        spec = OPERATIONS['catalog']
        assert spec.primary_only
        assert spec.before is catalog_service.prepare_catalog
        assert spec.after is catalog_service.open_catalog_pr

    def test_bound_operation_calls_handler(self, ctx):
        handler = MagicMock()
        spec = operations.OperationSpec('probe', handler)
        operations.BoundOperation(spec, ('a',), {'b': 1})(ctx)
        handler.assert_called_once_with(ctx, 'a', b=1)


# ============================================================================
# Versions
# ============================================================================

class TestChangeVersion:

    def test_computes_next_revision(self, ctx, git, maven):
        operations.change_version(ctx)

        assert maven.version == "1.5.13-3-SNAPSHOT"
        assert git.commits == [("master", "[booster-release] Update version to 1.5.13-3-SNAPSHOT")]
        assert git.pushes == [{'remote': 'upstream', 'ref': 'master', 'delete': False, 'tags': False}]

    def test_explicit_version(self, ctx, maven):
        operations.change_version(ctx, "1.5.14-1-SNAPSHOT")
        assert maven.version == "1.5.14-1-SNAPSHOT"

    def test_already_at_version(self, ctx, git):
        with pytest.raises(BoosterSkipped, match="Version was already at 1.5.13-2-SNAPSHOT"):
            operations.change_version(ctx, "1.5.13-2-SNAPSHOT")
        assert git.commits == []

    def test_unparseable_current_version(self, ctx, maven):
        maven.version = "1.0.0"
        with pytest.raises(BoosterFailure, match="does not match expected version format"):
            operations.change_version(ctx)

    def test_dry_run_does_not_commit(self, make_env, booster, git, maven):
        ctx = _branch_ctx(make_env, booster, "master", dry_run=True)

        operations.change_version(ctx)

        assert maven.version == "1.5.13-3-SNAPSHOT"
        assert git.commits == []
        assert git.pushes == []


class TestUpdateParent:

    def test_updates_and_verifies(self, ctx, git, maven):
        operations.update_parent(ctx, "22")

        assert maven.parent_version == "22"
        assert ('verify', False, False) in maven.calls
        assert git.commits == [("master", "[booster-release] Update parent version to 22")]

    def test_build_failure(self, ctx, git, maven):
        maven.build_ok = False

        with pytest.raises(BoosterFailure, match="Build failed! Check build.log"):
            operations.update_parent(ctx, "22")

        assert git.commits == []

    def test_already_at_version(self, ctx):
        with pytest.raises(BoosterSkipped):
            operations.update_parent(ctx, "21")


class TestSetMavenProperty:

    def test_adds_property(self, ctx, git, maven):
        operations.set_maven_property(ctx, "jaeger.version", "0.27.0")

        assert maven.properties["jaeger.version"] == "0.27.0"
        assert git.commits == [("master", "[booster-release] Add jaeger.version version with 0.27.0 value")]
        assert len(git.pushes) == 1

    def test_updates_property(self, ctx, git, maven):
        maven.properties["jaeger.version"] = "0.26.0"

        operations.set_maven_property(ctx, "jaeger.version", "0.27.0")

        assert git.commits == [("master", "[booster-release] Update jaeger.version version with 0.27.0 value")]

    def test_unchanged(self, ctx, maven):
        maven.properties["jaeger.version"] = "0.27.0"
        with pytest.raises(BoosterSkipped, match="Property jaeger.version was not changed"):
            operations.set_maven_property(ctx, "jaeger.version", "0.27.0")

    def test_verification_build_failure(self, ctx, git, maven):
        maven.build_ok = False

        with pytest.raises(BoosterFailure, match="Build failed"):
            operations.set_maven_property(ctx, "jaeger.version", "0.27.0", verify=True)

        assert git.commits == []


# ============================================================================
# Branches
# ============================================================================

class TestCreateBranch:

    def test_creates_and_pushes(self, make_env, booster, git):
        ctx = _branch_ctx(make_env, booster, "feature", branches=("feature",))

        operations.create_branch(ctx)

        assert ('checkout', 'feature', True, None) in git.calls
        assert git.pushes == [{'remote': 'upstream', 'ref': 'feature', 'delete': False, 'tags': False}]

    def test_exists_on_remote(self, make_env, booster, git):
        git.remote_branches.add("feature")
        ctx = _branch_ctx(make_env, booster, "feature", branches=("feature",))

        with pytest.raises(BoosterSkipped, match="Branch already exists on remote"):
            operations.create_branch(ctx)

        assert "feature" not in git.local_branches


class TestDeleteBranch:

    def test_deletes_remote_and_local(self, make_env, booster, git):
        git.remote_branches.add("feature")
        git.local_branches.add("feature")
        ctx = _branch_ctx(make_env, booster, "feature", branches=("feature",))

        operations.delete_branch(ctx)

        assert git.pushes == [{'remote': 'upstream', 'ref': 'feature', 'delete': True, 'tags': False}]
        assert "feature" not in git.local_branches

    def test_missing_everywhere(self, make_env, booster):
        ctx = _branch_ctx(make_env, booster, "feature", branches=("feature",))

        with pytest.raises(BoosterSkipped, match="Branch doesn't exist locally"):
            operations.delete_branch(ctx)

    def test_declined(self, make_env, booster, git):
        git.remote_branches.add("feature")
        gate = ConfirmationGate(interactive=True, read_answer=lambda prompt: "no")
        ctx = _branch_ctx(make_env, booster, "feature", gate=gate, branches=("feature",))

        with pytest.raises(OperationAborted):
            operations.delete_branch(ctx)

        assert git.pushes == []


class TestRevert:

    def test_resets_to_remote(self, ctx, git):
        git.dirty = True
        git.changes = [" M pom.xml"]

        operations.revert(ctx)

        assert ('reset_hard', 'upstream/master') in git.calls
        assert ('clean',) in git.calls
        assert not git.dirty

    def test_declined(self, make_env, booster, git):
        git.dirty = True
        gate = ConfirmationGate(interactive=True, read_answer=lambda prompt: "n")
        ctx = _branch_ctx(make_env, booster, "master", gate=gate)

        with pytest.raises(OperationAborted, match="Revert aborted"):
            operations.revert(ctx)

        assert git.dirty


# ============================================================================
# Commands
# ============================================================================

class TestRunCmd:

    @patch('boosterops.services.operations.run_shell', return_value=0)
    def test_runs_with_booster_environment(self, mock_shell, ctx, git):
        operations.run_cmd(ctx, "make test")

        command, = mock_shell.call_args.args
        assert command == "make test"
        assert mock_shell.call_args.kwargs['env'] == {
            'BOOSTER': 'spring-boot-http-booster',
            'BOOSTER_DIR': str(ctx.path),
            'BRANCH': 'master',
        }
        assert git.commits == []

    @patch('boosterops.services.operations.run_shell', return_value=0)
    def test_commits_changes_with_message(self, mock_shell, ctx, git):
        git.dirty = True

        operations.run_cmd(ctx, "sed -i s/a/b/ pom.xml", "Replace a by b")

        assert git.commits == [("master", "[booster-release] Replace a by b")]
        assert len(git.pushes) == 1

    @patch('boosterops.services.operations.run_shell', return_value=0)
    def test_nothing_to_commit(self, mock_shell, ctx, git):
        operations.run_cmd(ctx, "true", "Nothing")
        assert git.commits == []
        assert git.pushes == []

    @patch('boosterops.services.operations.run_shell', return_value=2)
    def test_command_failure(self, mock_shell, ctx):
        with pytest.raises(BoosterFailure, match="make test command failed"):
            operations.run_cmd(ctx, "make test")


class TestScript:

    def test_missing_script(self, ctx):
        with pytest.raises(BoosterFailure, match="not found"):
            operations.script(ctx, "/nonexistent/script.sh")

    @patch('boosterops.services.operations.run_shell', return_value=0)
    def test_runs_script_with_bash(self, mock_shell, ctx, tmp_path):
        script = tmp_path / "fix.sh"
        script.write_text("echo $BOOSTER\n")

        operations.script(ctx, str(script))

        assert mock_shell.call_args.args[0] == ['bash', str(script.resolve())]
        assert mock_shell.call_args.kwargs['cwd'] == str(ctx.path)

    @patch('boosterops.services.operations.run_shell', return_value=1)
    def test_script_failure(self, mock_shell, ctx, tmp_path):
        script = tmp_path / "fix.sh"
        script.write_text("exit 1\n")

        with pytest.raises(BoosterFailure, match="failed"):
            operations.script(ctx, str(script))


# ============================================================================
# Tests
# ============================================================================

class TestSmokeTests:

    def test_runs_quiet_build(self, ctx, maven):
        operations.run_smoke_tests(ctx)
        assert ('verify', False, True) in maven.calls

    def test_failure(self, ctx, maven):
        maven.build_ok = False
        with pytest.raises(BoosterFailure, match="Tests failed"):
            operations.run_smoke_tests(ctx)

    def test_skipped_tests(self, make_env, booster, maven):
        ctx = _branch_ctx(make_env, booster, "master", run_tests=False)
        operations.run_smoke_tests(ctx)
        assert maven.calls == []


class TestIntegrationTests:

    @pytest.fixture
    def oc(self, ctx):
        ctx.env.openshift = MagicMock()
        return ctx.env.openshift

    def test_invalid_deployment_type(self, ctx, oc):
        with pytest.raises(BoosterSkipped, match="Deployment type 'helm' is not valid"):
            operations.run_integration_tests(ctx, 'helm')
        oc.recreate_namespace.assert_not_called()

    def test_success_cleans_up(self, ctx, oc, git, maven):
        operations.run_integration_tests(ctx)

        oc.recreate_namespace.assert_called_once_with('spring-boot-http-booster')
        assert ('fabric8_deploy',) in maven.calls
        oc.delete_namespace.assert_called_once_with('spring-boot-http-booster')
        assert ('reset_hard', 'upstream/master') in git.calls

    def test_failure_keeps_namespace(self, ctx, oc, maven):
        maven.integration_ok = False

        with pytest.raises(BoosterFailure) as exc_info:
            operations.run_integration_tests(ctx, 'fmp_deploy')

        assert exc_info.value.reason == (
            "Tests failed: inspecting the 'spring-boot-http-booster' namespace might provide some insights"
        )
        oc.delete_namespace.assert_not_called()

    def test_s2i_deploy(self, ctx, oc, maven):
        _write_template(ctx)
        oc.wait_for_build.return_value = 'Succeeded'

        operations.run_integration_tests(ctx, 's2i_deploy')

        oc.new_app.assert_called_once_with(
            'http-booster',
            {
                'SOURCE_REPOSITORY_URL': 'https://github.com/snowdrop/spring-boot-http-booster',
                'SOURCE_REPOSITORY_REF': 'master',
            },
            cwd=str(ctx.path),
        )
        assert ('fabric8_deploy',) not in maven.calls


class TestUpdateRuntimeVersion:

    def test_no_templates(self, ctx):
        with pytest.raises(BoosterSkipped, match="No deployment templates found"):
            operations.update_runtime_version(ctx, "1.5")

    def test_sets_parameter(self, ctx, git, monkeypatch):
        template = _write_template(ctx)
        monkeypatch.setattr(git, 'has_uncommitted_changes', lambda path, *paths: True)

        operations.update_runtime_version(ctx, "1.5")

        parameters = {p['name']: p['value'] for p in read_yaml(template)['parameters']}
        assert parameters['RUNTIME_VERSION'] == "1.5"
        assert git.commits == [("master", "[booster-release] Update template's RUNTIME_VERSION -> 1.5")]

    @patch('boosterops.services.operations.highest_image_tag', return_value="1.6")
    def test_looks_up_latest_image_tag(self, mock_tag, ctx, git, monkeypatch):
        template = _write_template(ctx)
        monkeypatch.setattr(git, 'has_uncommitted_changes', lambda path, *paths: True)

        operations.update_runtime_version(ctx)

        mock_tag.assert_called_once_with("registry.access.redhat.com/redhat-openjdk-18/openjdk18-openshift")
        parameters = {p['name']: p['value'] for p in read_yaml(template)['parameters']}
        assert parameters['RUNTIME_VERSION'] == "1.6"

    @patch('boosterops.services.operations.highest_image_tag', return_value=None)
    def test_version_required_when_lookup_fails(self, mock_tag, ctx):
        _write_template(ctx)
        with pytest.raises(BoosterSkipped, match="A version number must be supplied"):
            operations.update_runtime_version(ctx)
