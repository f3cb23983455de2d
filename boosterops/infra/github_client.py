"""
GitHub API client infrastructure for boosterops.

Discovers booster repositories through the GitHub search API:
- Uses `gh` CLI when available for authentication
- Falls back to requests with token
- Handles rate limiting with exponential backoff
"""

import subprocess
import json
import os
import time
import logging
from dataclasses import dataclass
from typing import Optional, List, Dict, Any

import requests

logger = logging.getLogger(__name__)

SEARCH_PAGE_SIZE = 100


@dataclass(frozen=True)
class RepositoryHit:
    """One repository returned by a search."""
    name: str
    ssh_url: str
    clone_url: str = ""

    @classmethod
    def from_api_response(cls, data: Dict[str, Any]) -> 'RepositoryHit':
        return cls(
            name=data.get('name', ''),
            ssh_url=data.get('ssh_url', ''),
            clone_url=data.get('clone_url', ''),
        )


class GitHubClient:
    """
    GitHub API client with rate limiting.

    Uses `gh` CLI for authentication when available,
    with fallback to direct API calls with token.

    Example:
        client = GitHubClient()
        for hit in client.search_repositories("org:snowdrop+topic:booster"):
            print(hit.name, hit.ssh_url)
    """

    def __init__(
        self,
        token: Optional[str] = None,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        use_gh_cli: Optional[bool] = None
    ):
        """
        Initialize GitHubClient.

        Args:
            token: GitHub token (defaults to BOOSTEROPS_GITHUB_TOKEN or GITHUB_TOKEN env var)
            max_retries: Maximum retry attempts for rate-limited requests
            base_delay: Base delay for exponential backoff
            max_delay: Maximum delay between retries
            use_gh_cli: Force gh CLI usage on/off (auto-detected if None)
        """
        self.token = token or os.environ.get('BOOSTEROPS_GITHUB_TOKEN') or os.environ.get('GITHUB_TOKEN')
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._use_gh_cli = self._check_gh_cli() if use_gh_cli is None else use_gh_cli

    def _check_gh_cli(self) -> bool:
        """Check if gh CLI is available and authenticated."""
        try:
            result = subprocess.run(
                ['gh', 'auth', 'status'],
                capture_output=True,
                text=True,
                timeout=10
            )
            return result.returncode == 0
        except (subprocess.TimeoutExpired, FileNotFoundError):
            return False

    def _gh_api(self, endpoint: str) -> Optional[Dict[str, Any]]:
        """Call GitHub API using gh CLI."""
        try:
            result = subprocess.run(
                ['gh', 'api', endpoint],
                capture_output=True,
                text=True,
                timeout=30
            )
            if result.returncode == 0 and result.stdout:
                return json.loads(result.stdout)
            return None
        except (subprocess.TimeoutExpired, json.JSONDecodeError, FileNotFoundError) as e:
            logger.debug(f"gh api call failed for {endpoint}: {e}")
            return None

    def _requests_api(self, endpoint: str) -> Optional[Dict[str, Any]]:
        """Call GitHub API using requests library."""
        url = f"https://api.github.com/{endpoint}"
        headers = {
            'Accept': 'application/vnd.github.v3+json',
            'User-Agent': 'boosterops'
        }

        if self.token:
            headers['Authorization'] = f'token {self.token}'

        for attempt in range(self.max_retries):
            try:
                response = requests.get(url, headers=headers, timeout=30)

                if response.status_code == 200:
                    return response.json()

                if response.status_code == 403:
                    # Rate limited
                    reset_time = response.headers.get('X-RateLimit-Reset')
                    if reset_time:
                        wait_time = int(reset_time) - int(time.time())
                        if 0 < wait_time < self.max_delay:
                            logger.info(f"Rate limited, waiting {wait_time}s")
                            time.sleep(wait_time)
                            continue

                    delay = min(self.base_delay * (2 ** attempt), self.max_delay)
                    logger.info(f"Rate limited, waiting {delay}s (attempt {attempt + 1})")
                    time.sleep(delay)
                    continue

                logger.warning(f"GitHub API error {response.status_code} for {endpoint}")
                return None

            except requests.RequestException as e:
                logger.warning(f"GitHub API request failed: {e}")
                if attempt < self.max_retries - 1:
                    delay = min(self.base_delay * (2 ** attempt), self.max_delay)
                    time.sleep(delay)
                continue

        return None

    def _api(self, endpoint: str) -> Optional[Dict[str, Any]]:
        """Call GitHub API using best available method."""
        if self._use_gh_cli:
            result = self._gh_api(endpoint)
            if result is not None:
                return result

        return self._requests_api(endpoint)

    def search_repositories(self, query: str) -> List[RepositoryHit]:
        """
        Search repositories.

        Args:
            query: GitHub search query, already in URL form
                   (e.g. ``org:snowdrop+topic:booster``)

        Returns:
            Matching repositories sorted by name; empty on failure
        """
        data = self._api(f"search/repositories?q={query}&per_page={SEARCH_PAGE_SIZE}")
        if not data:
            return []
        hits = [RepositoryHit.from_api_response(item) for item in data.get('items', [])]
        return sorted((h for h in hits if h.name), key=lambda h: h.name)

    def create_pull_request(
        self,
        path: str,
        repo: str,
        base: str,
        head: str,
        title: str,
        body: str = ""
    ) -> Optional[str]:
        """
        Open a pull request with ``gh pr create``.

        Args:
            path: Local clone the head branch was pushed from
            repo: Target repository as ``owner/name``
            base: Target branch
            head: Source as ``owner:branch``
            title: Pull request title
            body: Pull request description

        Returns:
            URL of the new pull request, or None on failure
        """
        try:
            result = subprocess.run(
                ['gh', 'pr', 'create', '--repo', repo, '--base', base,
                 '--head', head, '--title', title, '--body', body],
                cwd=path,
                capture_output=True,
                text=True,
                timeout=60
            )
        except (subprocess.TimeoutExpired, FileNotFoundError) as e:
            logger.warning(f"gh pr create failed: {e}")
            return None
        if result.returncode != 0:
            logger.warning(f"gh pr create failed: {result.stderr.strip()}")
            return None
        return result.stdout.strip()
