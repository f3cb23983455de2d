"""
Git client infrastructure for boosterops.

Provides a clean abstraction over git command execution.
All git operations go through this client, making them:
- Easy to mock for testing
- Consistent in error handling
- Isolated from the release and orchestration logic
"""

import subprocess
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple
from pathlib import Path
import logging

from ..errors import GitError

logger = logging.getLogger(__name__)


@dataclass
class GitStatus:
    """Result of git status command."""
    branch: str = ""
    clean: bool = True
    changes: List[str] = field(default_factory=list)


class GitClient:
    """
    Abstraction over git commands.

    Query methods return plain values; mutating methods raise GitError
    when git reports a failure, unless documented otherwise.

    Example:
        client = GitClient()
        status = client.status("/path/to/booster")
        if status.clean:
            client.rebase("/path/to/booster", "upstream/master")
    """

    def __init__(self, timeout: Optional[int] = None):
        """
        Initialize GitClient.

        Args:
            timeout: Command timeout in seconds (default: no timeout)
        """
        self.timeout = timeout

    def _run(
        self,
        args: Sequence[str],
        cwd: str,
        check: bool = False,
        capture_stderr: bool = False
    ) -> Tuple[Optional[str], int]:
        """
        Run a git command.

        Args:
            args: Arguments after ``git``
            cwd: Working directory
            check: Raise GitError on non-zero exit
            capture_stderr: Include stderr in output

        Returns:
            Tuple of (stdout, returncode)
        """
        cmd = ['git', *args]
        try:
            result = subprocess.run(
                cmd,
                cwd=str(cwd),
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
        except subprocess.TimeoutExpired:
            logger.warning(f"Git command timed out: {' '.join(cmd)}")
            if check:
                raise GitError(args, -1, "timed out")
            return None, -1
        except OSError as e:
            logger.error(f"Git command failed: {' '.join(cmd)} - {e}")
            if check:
                raise GitError(args, -1, str(e))
            return None, -1

        output = result.stdout
        if capture_stderr and result.stderr:
            output += result.stderr

        if check and result.returncode != 0:
            raise GitError(args, result.returncode, result.stderr or result.stdout)

        logger.debug(f"git {' '.join(args)} -> {result.returncode}")
        return output.strip() if output else None, result.returncode

    # Queries

    def is_git_repo(self, path: str) -> bool:
        """Check if path is a git working copy."""
        return (Path(path) / ".git").exists()

    def status(self, path: str) -> GitStatus:
        """
        Get working tree status.

        Args:
            path: Path to git repository

        Returns:
            GitStatus with branch, clean flag and porcelain change lines
        """
        branch = self.current_branch(path) or ""
        output, code = self._run(['status', '--porcelain'], cwd=path)
        changes = output.splitlines() if code == 0 and output else []
        return GitStatus(branch=branch, clean=not changes, changes=changes)

    def has_uncommitted_changes(self, path: str, *paths: str) -> bool:
        """Check if repo (or only the given paths) has uncommitted changes."""
        args = ['status', '--porcelain']
        if paths:
            args += ['--', *paths]
        output, _ = self._run(args, cwd=path)
        return bool(output and output.strip())

    def current_branch(self, path: str) -> Optional[str]:
        """Get current branch name."""
        output, code = self._run(['rev-parse', '--abbrev-ref', 'HEAD'], cwd=path)
        if code == 0 and output:
            return output.strip()
        return None

    def local_branch_exists(self, path: str, branch: str) -> bool:
        _, code = self._run(['show-ref', '--verify', '--quiet', f'refs/heads/{branch}'], cwd=path)
        return code == 0

    def remote_branch_exists(self, path: str, remote: str, branch: str) -> bool:
        """Check if a branch exists on a remote (name or URL)."""
        output, code = self._run(['ls-remote', '--heads', remote, branch], cwd=path)
        return code == 0 and bool(output) and any(
            line.endswith(f'refs/heads/{branch}') for line in output.splitlines()
        )

    def remote_tag_exists(self, path: str, remote: str, tag: str) -> bool:
        output, code = self._run(['ls-remote', '--tags', remote, tag], cwd=path)
        return code == 0 and bool(output) and any(
            line.endswith(f'refs/tags/{tag}') for line in output.splitlines()
        )

    def list_tags(self, path: str, pattern: Optional[str] = None) -> List[str]:
        """
        List tag names.

        Args:
            path: Path to git repository
            pattern: Optional glob passed to ``git tag --list``

        Returns:
            Tag names in git's order
        """
        args = ['tag', '--list']
        if pattern:
            args.append(pattern)
        output, code = self._run(args, cwd=path)
        if code != 0 or not output:
            return []
        return [line.strip() for line in output.splitlines() if line.strip()]

    def rev_parse(self, path: str, rev: str) -> Optional[str]:
        output, code = self._run(['rev-parse', '--verify', '--quiet', rev], cwd=path)
        if code == 0 and output:
            return output.strip()
        return None

    def describe_commit(self, path: str, rev: str) -> str:
        """One-line ``<short sha>: <subject>`` description of a commit."""
        output, _ = self._run(['log', '-1', '--format=%h: %s', rev], cwd=path, check=True)
        return output or rev

    # Working copy management

    def clone(
        self,
        url: str,
        parent_dir: str,
        name: str,
        remote: str = "origin",
        branch: Optional[str] = None
    ) -> None:
        args = ['clone', '-q', '-o', remote]
        if branch:
            args += ['-b', branch]
        self._run([*args, url, name], cwd=parent_dir, check=True)

    def fetch(self, path: str, remote: str = "origin", tags: bool = True) -> bool:
        """
        Fetch from remote.

        Returns:
            True if successful
        """
        args = ['fetch', '-q']
        if tags:
            args.append('--tags')
        args.append(remote)
        _, code = self._run(args, cwd=path)
        return code == 0

    def checkout(
        self,
        path: str,
        branch: str,
        create: bool = False,
        start_point: Optional[str] = None
    ) -> None:
        args = ['checkout', '-q']
        if create:
            args.append('-b')
        args.append(branch)
        if start_point:
            args.append(start_point)
        self._run(args, cwd=path, check=True)

    def checkout_tracking(self, path: str, remote: str, branch: str) -> None:
        """Create a local branch tracking ``<remote>/<branch>``."""
        self._run(['checkout', '-q', '--track', f'{remote}/{branch}'], cwd=path, check=True)

    def rebase(self, path: str, upstream: str) -> None:
        self._run(['rebase', upstream], cwd=path, check=True)

    def reset_hard(self, path: str, ref: str) -> None:
        self._run(['reset', '-q', '--hard', ref], cwd=path, check=True)

    def clean(self, path: str) -> None:
        """Remove untracked files and directories."""
        self._run(['clean', '-q', '-f', '-d'], cwd=path, check=True)

    def delete_branch(self, path: str, branch: str) -> bool:
        """
        Force-delete a local branch.

        Returns:
            False if the branch did not exist or could not be deleted
        """
        _, code = self._run(['branch', '-D', branch], cwd=path)
        return code == 0

    # History

    def commit_all(self, path: str, message: str) -> None:
        """Commit all tracked modifications."""
        self._run(['commit', '-q', '-am', message], cwd=path, check=True)

    def tag(self, path: str, name: str, message: str) -> None:
        """Create an annotated tag at HEAD."""
        self._run(['tag', '-a', name, '-m', message], cwd=path, check=True)

    def delete_tag(self, path: str, name: str) -> bool:
        _, code = self._run(['tag', '-d', name], cwd=path)
        return code == 0

    def revert_no_commit(self, path: str, revision_range: str) -> None:
        self._run(['revert', '--no-commit', revision_range], cwd=path, check=True)

    def revert_abort(self, path: str) -> None:
        self._run(['revert', '--abort'], cwd=path, check=True)

    # Remotes

    def add_remote(self, path: str, name: str, url: str) -> bool:
        _, code = self._run(['remote', 'add', name, url], cwd=path)
        return code == 0

    def pull_rebase(self, path: str, remote: str, branch: str) -> bool:
        _, code = self._run(['pull', '--rebase', remote, branch], cwd=path)
        return code == 0

    def push(
        self,
        path: str,
        remote: str,
        ref: Optional[str] = None,
        delete: bool = False,
        tags: bool = False
    ) -> Tuple[bool, str]:
        """
        Push to remote.

        Args:
            path: Path to git repository
            remote: Remote name
            ref: Branch or tag to push (current branch if None)
            delete: Delete ``ref`` on the remote instead
            tags: Also push all tags

        Returns:
            Tuple of (success, output)
        """
        args = ['push', '-q']
        if delete:
            args.append('--delete')
        if tags:
            args.append('--tags')
        args.append(remote)
        if ref:
            args.append(ref)
        output, code = self._run(args, cwd=path, capture_stderr=True)
        return code == 0, output or ""
