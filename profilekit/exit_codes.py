"""
Standard exit codes for profilekit commands.

Hooks and checks share one small, fixed set of exit codes so that git,
task runners and CI can tell a rejected commit from a broken setup.
"""
from typing import Optional

SUCCESS = 0              # Successful termination
VALIDATION_FAILURE = 1   # Rejected commit message, failed check or bad input
USAGE_ERROR = 2          # Misuse of shell command (click uses this code)
SETUP_ERROR = 3          # Missing tool, not a git repository, bad configuration
RUNTIME_ERROR = 4        # External tool failed or unexpected internal error
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)

EXIT_CODE_NAMES = {
    SUCCESS: "success",
    VALIDATION_FAILURE: "validation_failure",
    USAGE_ERROR: "usage_error",
    SETUP_ERROR: "setup_error",
    RUNTIME_ERROR: "runtime_error",
    INTERRUPTED: "interrupted",
}

# Exit code mappings for common exceptions
EXCEPTION_EXIT_CODES = {
    'FileNotFoundError': VALIDATION_FAILURE,
    'IsADirectoryError': VALIDATION_FAILURE,
    'UnicodeDecodeError': VALIDATION_FAILURE,
    'ValueError': VALIDATION_FAILURE,
    'JSONDecodeError': VALIDATION_FAILURE,
    'PermissionError': SETUP_ERROR,
    'ConfigError': SETUP_ERROR,
    'TimeoutExpired': RUNTIME_ERROR,
    'CalledProcessError': RUNTIME_ERROR,
    'KeyboardInterrupt': INTERRUPTED,
}


def get_exit_code_for_exception(exc: BaseException) -> int:
    """
    Get the appropriate exit code for an exception.

    Args:
        exc: The exception that occurred

    Returns:
        Appropriate exit code (RUNTIME_ERROR for anything unrecognised)
    """
    if isinstance(exc, CommandError):
        return exc.exit_code
    exc_name = exc.__class__.__name__
    return EXCEPTION_EXIT_CODES.get(exc_name, RUNTIME_ERROR)


class CommandError(Exception):
    """
    Exception that commands can raise to indicate specific exit codes.
    """
    def __init__(self, message: str, exit_code: int = RUNTIME_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class ValidationFailedError(CommandError):
    """Raised when a commit message, check or test run does not pass."""
    def __init__(self, message: str, failures: int = 0):
        super().__init__(message, VALIDATION_FAILURE)
        self.failures = failures


class InputError(CommandError):
    """Raised for malformed or missing input (files, names, options)."""
    def __init__(self, message: str):
        super().__init__(message, VALIDATION_FAILURE)


class SetupError(CommandError):
    """Raised when the environment is not set up for the operation."""
    def __init__(self, message: str):
        super().__init__(message, SETUP_ERROR)


class ConfigError(SetupError):
    """Raised when there's a configuration error."""


class ToolUnavailableError(SetupError):
    """Raised when a required external tool cannot be found."""
    def __init__(self, tool: str, message: Optional[str] = None):
        super().__init__(message or f"Required tool not available: {tool}")
        self.tool = tool


class ToolFailedError(CommandError):
    """Raised when an external tool runs but exits non-zero."""
    def __init__(self, tool: str, returncode: int, stderr: str = ""):
        detail = f": {stderr.strip()}" if stderr and stderr.strip() else ""
        super().__init__(f"{tool} exited with status {returncode}{detail}", RUNTIME_ERROR)
        self.tool = tool
        self.returncode = returncode
        self.stderr = stderr
