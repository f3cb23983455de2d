"""
Maven client infrastructure for boosterops.

Wraps the ``mvn`` invocations boosters need (expression evaluation,
versions:set, dependency analysis, verification builds, fabric8
deployment) and the textual pom edits that Maven has no goal for.
"""

import re
import subprocess
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from ..errors import BuildError

logger = logging.getLogger(__name__)

POM_FILE = "pom.xml"
BUILD_LOG = "build.log"


@dataclass
class PropertyChange:
    """Outcome of setting a pom property."""
    changed: bool
    added: bool = False


def _replace_first(pattern: str, replacement: Callable[[re.Match], str], text: str) -> Tuple[str, bool]:
    new_text, count = re.subn(pattern, replacement, text, count=1)
    return new_text, count > 0


def ensure_properties_section(pom: str) -> str:
    """
    Make sure the pom has a ``<properties>`` section.

    A missing section is inserted before ``<dependencies>``, else after
    ``</description>``, else after the first ``</artifactId>``.
    """
    if re.search(r'<properties\s*>', pom):
        return pom

    section = "<properties>\n  </properties>"
    for pattern, replacement in (
        (r'<dependencies>', f"{section}\n\n  <dependencies>"),
        (r'</description>', f"</description>\n\n  {section}"),
        (r'</artifactId>', f"</artifactId>\n\n  {section}"),
    ):
        pom, replaced = _replace_first(pattern, lambda _m, r=replacement: r, pom)
        if replaced:
            return pom
    return pom


def set_pom_property(pom: str, name: str, value: str) -> Tuple[str, bool]:
    """
    Set a property in pom text, adding it when missing.

    Only the first occurrence of the property is touched.

    Returns:
        Tuple of (new pom text, whether the property was added)
    """
    pom = ensure_properties_section(pom)
    escaped = re.escape(name)

    added = False
    if f"<{name}>" not in pom:
        pom, _ = _replace_first(
            r'</properties>',
            lambda _m: f"  <{name}>replaceme</{name}>\n  </properties>",
            pom
        )
        added = True

    pom, _ = _replace_first(
        rf'<{escaped}>.*?</{escaped}>',
        lambda _m: f"<{name}>{value}</{name}>",
        pom
    )
    return pom, added


class MavenClient:
    """
    Abstraction over Maven commands.

    Example:
        maven = MavenClient(settings="~/.m2/settings-rh.xml")
        version = maven.evaluate("/path/to/booster", "project.version")
    """

    def __init__(
        self,
        settings: Optional[str] = None,
        extra_opts: Optional[str] = None,
        executable: str = "mvn"
    ):
        """
        Initialize MavenClient.

        Args:
            settings: Path to a settings.xml passed with ``--settings``
            extra_opts: Extra options appended to build and test runs
            executable: Maven executable
        """
        self.settings = settings
        self.extra_opts = extra_opts.split() if extra_opts else []
        self.executable = executable

    def _command(self, args: Sequence[str], extra: bool = False) -> List[str]:
        cmd = [self.executable]
        if self.settings:
            cmd += ['--settings', str(Path(self.settings).expanduser())]
        cmd += list(args)
        if extra:
            cmd += self.extra_opts
        return cmd

    def _run(
        self,
        args: Sequence[str],
        cwd: str,
        extra: bool = False,
        log_file: Optional[Path] = None
    ) -> Tuple[str, int]:
        """
        Run Maven.

        Args:
            args: Maven arguments
            cwd: Project directory
            extra: Append the configured extra options
            log_file: Write combined output there instead of capturing it

        Returns:
            Tuple of (stdout, returncode)
        """
        cmd = self._command(args, extra)
        logger.debug(f"Running {' '.join(cmd)} in {cwd}")
        try:
            if log_file:
                with open(log_file, 'w') as out:
                    result = subprocess.run(cmd, cwd=str(cwd), stdout=out, stderr=subprocess.STDOUT, text=True)
                return "", result.returncode
            result = subprocess.run(cmd, cwd=str(cwd), capture_output=True, text=True)
            return result.stdout, result.returncode
        except OSError as e:
            raise BuildError(f"Could not run {self.executable}: {e}") from e

    def evaluate(self, path: str, expression: str) -> str:
        """
        Evaluate a Maven expression such as ``project.version``.

        Raises:
            BuildError: If Maven fails or prints nothing
        """
        output, code = self._run(
            ['-q', '-Dexec.executable=echo', f'-Dexec.args=${{{expression}}}',
             '--non-recursive', 'exec:exec'],
            cwd=path
        )
        value = output.strip()
        if code != 0 or not value:
            raise BuildError(f"Couldn't evaluate '{expression}'")
        return value

    def analyze_dependencies(self, path: str) -> bool:
        """Run dependency:analyze; False when the dependency graph is broken."""
        _, code = self._run(['dependency:analyze'], cwd=path)
        return code == 0

    def set_version(self, path: str, version: str) -> bool:
        """
        Set the project version with versions:set.

        Returns:
            True if Maven succeeded
        """
        _, code = self._run(['versions:set', f'-DnewVersion={version}'], cwd=path)
        for backup in Path(path).rglob('*.versionsBackup'):
            backup.unlink()
        return code == 0

    def verify(
        self,
        path: str,
        skip_tests: bool = False,
        log_to_file: bool = True,
        quiet: bool = False
    ) -> bool:
        """
        Run ``mvn clean verify``.

        Output goes to ``build.log`` in the project, which is removed
        when the build passes.
        """
        args = []
        if quiet:
            args += ['-q', '-B']
        if skip_tests:
            args.append('-DskipTests')
        args += ['clean', 'verify']

        log_file = Path(path) / BUILD_LOG if log_to_file else None
        _, code = self._run(args, cwd=path, extra=True, log_file=log_file)
        if code == 0 and log_file and log_file.exists():
            log_file.unlink()
        return code == 0

    def fabric8_deploy(self, path: str) -> bool:
        """Deploy the booster to the current cluster with the fabric8 plugin."""
        _, code = self._run(
            ['-q', '-B', '-DskipTests=true', 'clean', 'compile', 'fabric8:deploy', '-Popenshift'],
            cwd=path,
            extra=True
        )
        return code == 0

    def integration_tests(self, path: str) -> bool:
        """Run the OpenShift integration test profiles against a deployed booster."""
        _, code = self._run(
            ['-q', '-B', 'clean', 'verify', '-Dfabric8.skip=true', '-Denv.init.enabled=false',
             '-Popenshift,openshift-it'],
            cwd=path,
            extra=True
        )
        return code == 0

    def set_property(self, path: str, name: str, value: str) -> PropertyChange:
        """Set (or add) a property in the booster's pom.xml."""
        pom_path = Path(path) / POM_FILE
        original = pom_path.read_text()
        updated, added = set_pom_property(original, name, value)
        if updated == original:
            return PropertyChange(changed=False)
        pom_path.write_text(updated)
        return PropertyChange(changed=True, added=added)

    def replace_version_text(self, path: str, old: str, new: str) -> bool:
        """Replace every ``<version>old<`` in pom.xml, e.g. to move the parent version."""
        pom_path = Path(path) / POM_FILE
        original = pom_path.read_text()
        updated = original.replace(f"<version>{old}<", f"<version>{new}<")
        if updated == original:
            return False
        pom_path.write_text(updated)
        return True
