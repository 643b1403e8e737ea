"""
Skill Manager - backend for managing skills across AI coding agents.

Finds skills installed for Claude Code, Cursor, Windsurf and other agents,
installs and removes them through the `npx skills` tool, and remembers where
each one came from.
"""

# Package version - keep in sync with pyproject.toml
__version__ = "0.1.0"

from .agents import DEFAULT_AGENT_PATHS, GLOBAL_AGENT_ID, AgentPath, AgentRegistry
from .errors import (
    ConfigError,
    HomeDirectoryError,
    InvalidRequestError,
    OutputCaptureError,
    SkillManagerError,
    ToolFailedError,
    ToolSpawnError,
)
from .ledger import LedgerSnapshot, LedgerState, SourceLedger
from .models import GlobalSkillInfo, Skill
from .orchestrator import SkillOrchestrator
from .scanner import list_global_skills, scan_local_skills

__all__ = [
    "__version__",
    "AgentPath",
    "AgentRegistry",
    "ConfigError",
    "DEFAULT_AGENT_PATHS",
    "GLOBAL_AGENT_ID",
    "GlobalSkillInfo",
    "HomeDirectoryError",
    "InvalidRequestError",
    "LedgerSnapshot",
    "LedgerState",
    "OutputCaptureError",
    "Skill",
    "SkillManagerError",
    "SkillOrchestrator",
    "SourceLedger",
    "ToolFailedError",
    "ToolSpawnError",
    "list_global_skills",
    "scan_local_skills",
]
