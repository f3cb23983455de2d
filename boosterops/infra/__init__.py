"""
Infrastructure layer for boosterops.

Contains abstractions for external systems:
- GitClient: Git command execution
- MavenClient: Maven invocations and pom edits
- GitHubClient: Repository discovery and pull requests
- CatalogClient: Productized artifact versions
- OpenShiftClient: Cluster deployment for integration tests
- templates: Deployment template and catalog YAML edits

These provide clean interfaces that can be mocked for testing.
"""

from .git_client import GitClient, GitStatus
from .maven_client import MavenClient, PropertyChange
from .github_client import GitHubClient, RepositoryHit
from .catalog_client import CatalogClient
from .openshift_client import OpenShiftClient, highest_image_tag
from .shell import run_shell

__all__ = [
    'GitClient',
    'GitStatus',
    'MavenClient',
    'PropertyChange',
    'GitHubClient',
    'RepositoryHit',
    'CatalogClient',
    'OpenShiftClient',
    'highest_image_tag',
    'run_shell',
]
