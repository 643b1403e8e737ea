"""Exceptions raised by the skill manager core.

The `api` module turns these into plain error strings for callers; the CLI
prints them and exits non-zero.
"""

from typing import Optional


class SkillManagerError(Exception):
    """Base class for all skill manager failures."""


class HomeDirectoryError(SkillManagerError):
    """The user's home directory cannot be resolved."""

    def __init__(self, message: str = "Could not find home directory"):
        super().__init__(message)


class ConfigError(SkillManagerError):
    """The configuration file is malformed or a setting is invalid."""


class InvalidRequestError(SkillManagerError):
    """An operation was called with arguments it cannot act on."""


class ToolSpawnError(SkillManagerError):
    """The external skills tool could not be started."""


class OutputCaptureError(SkillManagerError):
    """Reading the external tool's output failed."""


class ToolFailedError(SkillManagerError):
    """The external tool exited with a non-zero status.

    The message is the tool's captured standard error, so callers see the
    tool's own diagnostic instead of a generic failure.
    """

    def __init__(self, stderr: str, returncode: Optional[int] = None):
        self.stderr = stderr
        self.returncode = returncode
        message = stderr if stderr.strip() else f"Tool exited with status {returncode}"
        super().__init__(message)
