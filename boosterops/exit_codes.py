"""
Standard exit codes for boosterops commands.

Following Unix/POSIX conventions for command-line tools. Per-booster
failures never change the exit code: once the processing loop ran, the
process exits with SUCCESS and the summary reports what went wrong.
"""
from typing import Optional

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes (64-113 are typically available)
NO_REPOS_FOUND = 64      # No boosters found matching the discovery query
CONFIG_ERROR = 66        # Configuration file error
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)


class CommandError(Exception):
    """
    Exception that commands can raise to indicate specific exit codes.
    """
    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class NoReposFoundError(CommandError):
    """Raised when discovery returns no boosters."""
    def __init__(self, message: str = "No projects matching the query were found on GitHub"):
        super().__init__(message, NO_REPOS_FOUND)


class ConfigError(CommandError):
    """Raised when there's a configuration error."""
    def __init__(self, message: str):
        super().__init__(message, CONFIG_ERROR)


class UsageError(CommandError):
    """Raised when options or arguments do not fit the requested operation."""
    def __init__(self, message: str, exit_code: Optional[int] = None):
        super().__init__(message, USAGE_ERROR if exit_code is None else exit_code)
