"""
Error types for boosterops.

Two families live here:

- Outcome errors, raised by booster operations and converted into run
  results by the orchestration loop (failed, skipped, aborted).
- Collaborator errors, raised by the infrastructure layer when git, Maven,
  the artifact catalog or the cluster misbehave. The loop records these as
  failures too.
"""

from typing import Optional, Sequence


class BoosterOperationError(Exception):
    """Base class for errors that end an operation on one booster/branch."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class BoosterFailure(BoosterOperationError):
    """The operation failed; recorded as failed."""


class BoosterSkipped(BoosterOperationError):
    """The operation had nothing to do or could not start; recorded as ignored."""


class OperationAborted(BoosterOperationError):
    """The operator declined a confirmation; logged but not recorded."""

    def __init__(self, reason: str = "Aborted"):
        super().__init__(reason)


class VersionParseError(ValueError):
    """Raised when a string does not follow the booster version scheme."""

    def __init__(self, raw: Optional[str]):
        super().__init__(f"'{raw}' does not match expected version format")
        self.raw = raw


class GitError(RuntimeError):
    """Raised when a git command that must succeed fails."""

    def __init__(self, args: Sequence[str], returncode: int, output: str = ""):
        command = ' '.join(['git', *args])
        message = f"{command} failed with exit code {returncode}"
        if output:
            message += f": {output.strip()}"
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.output = output


class BuildError(RuntimeError):
    """Raised when a Maven invocation that must succeed fails."""


class CatalogError(RuntimeError):
    """Raised when the artifact catalog cannot be queried."""


class OpenShiftError(RuntimeError):
    """Raised when a cluster command fails."""
