"""
OpenShift client infrastructure for boosterops.

Wraps the ``oc`` commands used to deploy boosters for integration tests.
The caller must already be logged in to the target cluster.

Waiting for builds is bounded: after an initial grace period the latest
build pod is polled until it leaves the Running phase or the timeout is
reached.
"""

import json
import logging
import re
import subprocess
import time
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import requests

from ..errors import OpenShiftError

logger = logging.getLogger(__name__)


class OpenShiftClient:
    """
    Abstraction over ``oc``.

    Example:
        oc = OpenShiftClient()
        oc.recreate_namespace("spring-boot-http-booster")
        oc.apply(".openshiftio/application.yaml")
    """

    def __init__(
        self,
        executable: str = "oc",
        initial_wait: float = 30,
        poll_interval: float = 20,
        build_timeout: float = 300,
        namespace_poll: float = 5,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize OpenShiftClient.

        Args:
            executable: oc executable
            initial_wait: Seconds to wait before polling a new build
            poll_interval: Seconds between build polls
            build_timeout: Maximum seconds to wait for a build, and for a
                deleted namespace to go away
            namespace_poll: Seconds between namespace deletion polls
            sleep: Sleep function
            clock: Monotonic clock
        """
        self.executable = executable
        self.initial_wait = initial_wait
        self.poll_interval = poll_interval
        self.build_timeout = build_timeout
        self.namespace_poll = namespace_poll
        self._sleep = sleep
        self._clock = clock

    def _run(self, args: Sequence[str], cwd: Optional[str] = None, check: bool = True) -> Tuple[str, int]:
        cmd = [self.executable, *args]
        logger.debug(f"Running {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd, cwd=cwd, capture_output=True, text=True)
        except OSError as e:
            raise OpenShiftError(f"Could not run {self.executable}: {e}") from e
        if check and result.returncode != 0:
            raise OpenShiftError(
                f"{' '.join(cmd)} failed with exit code {result.returncode}: {result.stderr.strip()}"
            )
        return result.stdout, result.returncode

    def _get_json(self, *args: str) -> Dict[str, Any]:
        output, _ = self._run(['get', *args, '-o', 'json'])
        try:
            return json.loads(output or '{}')
        except json.JSONDecodeError as e:
            raise OpenShiftError(f"Unexpected output from oc get {' '.join(args)}") from e

    # Namespaces

    def namespace_phase(self, name: str) -> Optional[str]:
        """Phase of a namespace, None if it does not exist."""
        for item in self._get_json('namespaces').get('items', []):
            if item.get('metadata', {}).get('name') == name:
                return item.get('status', {}).get('phase') or 'Unknown'
        return None

    def delete_namespace(self, name: str, ignore_not_found: bool = False) -> None:
        args = ['delete', 'project', name]
        if ignore_not_found:
            args.append('--ignore-not-found=true')
        self._run(args)

    def recreate_namespace(self, name: str) -> None:
        """
        Delete a namespace if it exists and create it again.

        Raises:
            OpenShiftError: If the old namespace is still terminating after
                the build timeout
        """
        self.delete_namespace(name, ignore_not_found=True)
        deadline = self._clock() + self.build_timeout
        while self.namespace_phase(name) is not None:
            if self._clock() >= deadline:
                raise OpenShiftError(f"Namespace {name} is still being deleted")
            self._sleep(self.namespace_poll)
        self._run(['new-project', name])

    # Deployment

    def apply(self, path: str, cwd: Optional[str] = None) -> None:
        self._run(['apply', '-f', path], cwd=cwd)

    def new_app(self, template: str, parameters: Dict[str, str], cwd: Optional[str] = None) -> None:
        args = ['new-app', f'--template={template}']
        for key, value in parameters.items():
            args += ['-p', f'{key}={value}']
        self._run(args, cwd=cwd)

    def latest_build_phase(self) -> Optional[str]:
        """Phase of the most recently started build pod."""
        pods = [
            pod for pod in self._get_json('pod').get('items', [])
            if 'build' in pod.get('metadata', {}).get('name', '')
        ]
        if not pods:
            return None
        pods.sort(key=lambda pod: pod.get('status', {}).get('startTime') or '')
        return pods[-1].get('status', {}).get('phase')

    def wait_for_build(self) -> Optional[str]:
        """
        Wait for the latest build to stop running.

        Returns:
            The last observed build phase; ``Running`` if the wait timed out
        """
        self._sleep(self.initial_wait)
        deadline = self._clock() + self.build_timeout
        phase = self.latest_build_phase()
        while phase == 'Running':
            if self._clock() >= deadline:
                logger.warning(f"Build still running after {self.build_timeout}s, giving up waiting")
                break
            self._sleep(self.poll_interval)
            phase = self.latest_build_phase()
        return phase


def highest_image_tag(image: str, timeout: int = 30) -> Optional[str]:
    """
    Highest tag of an image in a v2 registry.

    Args:
        image: ``registry/owner/name``, e.g.
               ``registry.access.redhat.com/redhat-openjdk-18/openjdk18-openshift``
        timeout: Request timeout in seconds

    Returns:
        The highest numeric tag (``latest`` excluded), or None if unavailable
    """
    parts = image.split('/')
    if len(parts) != 3:
        logger.debug(f"Unsupported image reference: {image}")
        return None
    registry, owner, name = parts

    url = f"http://{registry}/v2/{owner}/{name}/tags/list"
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        tags: List[str] = response.json().get('tags') or []
    except (requests.RequestException, ValueError) as e:
        logger.warning(f"Could not list tags of {image}: {e}")
        return None

    candidates = [tag for tag in tags if tag != 'latest' and re.match(r'\d', tag)]
    if not candidates:
        return None
    return max(candidates, key=lambda tag: [int(n) for n in re.findall(r'\d+', tag)])
