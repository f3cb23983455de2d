"""
Shell command execution for boosterops.

Runs operator-supplied commands and scripts inside a booster working copy.
"""

import logging
import os
import subprocess
from typing import Dict, Optional, Sequence, Union

logger = logging.getLogger(__name__)


def run_shell(
    command: Union[str, Sequence[str]],
    cwd: str,
    env: Optional[Dict[str, str]] = None
) -> int:
    """
    Run a command with output going straight to the terminal.

    Args:
        command: Shell command line, or an argument list run without a shell
        cwd: Working directory
        env: Variables added to the current environment

    Returns:
        The command's exit code
    """
    full_env = {**os.environ, **(env or {})}
    shell = isinstance(command, str)
    logger.debug(f"Running {command!r} in {cwd}")
    try:
        result = subprocess.run(command, cwd=str(cwd), env=full_env, shell=shell)
    except OSError as e:
        logger.error(f"Could not run {command!r}: {e}")
        return 127
    return result.returncode
