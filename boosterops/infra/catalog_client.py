"""
Artifact catalog client for boosterops.

Production tags pin the booster to the productized BOM. Its version is
published in the staging repository's artifact list, one
``groupId:artifactId:version`` entry per line. The staging host is only
reachable from the internal network.
"""

import logging
from typing import Dict, Optional, Tuple

import requests

from ..errors import CatalogError

logger = logging.getLogger(__name__)

DEFAULT_STAGING_URL = (
    "http://rcm-guest.app.eng.bos.redhat.com/rcm-guest/staging/rhoar/spring-boot/"
    "spring-boot-{base}.{qualifier}/extras/repository-artifact-list.txt"
)
DEFAULT_BOM_ARTIFACT = "spring-boot-bom"


def find_artifact_version(listing: str, artifact: str) -> Optional[str]:
    """
    Extract an artifact's version from an artifact list.

    Args:
        listing: Text with ``groupId:artifactId:version[...]`` lines
        artifact: Artifact id to look for

    Returns:
        The version, or None if the artifact is not listed
    """
    for line in listing.splitlines():
        parts = line.strip().split(':')
        if len(parts) >= 3 and parts[1] == artifact:
            return parts[2]
    return None


class CatalogClient:
    """
    Fetches productized artifact versions.

    The BOM version is looked up at most once per base version and build
    qualifier for the lifetime of the client.

    Example:
        catalog = CatalogClient()
        version = catalog.prod_bom_version("1.5.13", "CR1")
    """

    def __init__(
        self,
        staging_url: str = DEFAULT_STAGING_URL,
        bom_artifact: str = DEFAULT_BOM_ARTIFACT,
        timeout: int = 30
    ):
        self.staging_url = staging_url
        self.bom_artifact = bom_artifact
        self.timeout = timeout
        self._bom_versions: Dict[Tuple[str, str], str] = {}

    def prod_bom_version(self, base: str, build_qualifier: str = "CR1") -> str:
        """
        Get the productized BOM version for a platform release.

        Raises:
            CatalogError: If the list cannot be fetched or lacks the BOM
        """
        key = (base, build_qualifier)
        if key not in self._bom_versions:
            url = self.staging_url.format(base=base, qualifier=build_qualifier)
            try:
                response = requests.get(url, timeout=self.timeout)
                response.raise_for_status()
            except requests.RequestException as e:
                logger.debug(f"Fetching {url} failed: {e}")
                raise CatalogError(
                    "Couldn't retrieve the prod BOM version. Are you connected to the VPN?"
                ) from e

            version = find_artifact_version(response.text, self.bom_artifact)
            if not version:
                raise CatalogError(f"No {self.bom_artifact} entry found in {url}")
            self._bom_versions[key] = version

        return self._bom_versions[key]
