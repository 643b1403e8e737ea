"""Agent registry: which coding agents we know and where they keep skills."""

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple


# =============================================================================
# Constants & Agent Configuration
# =============================================================================

GLOBAL_AGENT_ID = "global"

# Shared location that `npx skills add --global` installs into
GLOBAL_SKILLS_DIR = ".agents/skills"


@dataclass(frozen=True)
class AgentPath:
    """An agent identifier and its skills directory, relative to home."""

    id: str
    path: str

    def resolve(self, home: Path) -> Path:
        return home / self.path


# Agent -> skills directory relative to the home directory.
# Order matters: scans and used_by lists follow it.
DEFAULT_AGENT_PATHS: Tuple[AgentPath, ...] = (
    AgentPath(GLOBAL_AGENT_ID, GLOBAL_SKILLS_DIR),
    AgentPath("antigravity", ".gemini/antigravity/skills"),
    AgentPath("claude-code", ".claude/skills"),
    AgentPath("cursor", ".cursor/skills"),
    AgentPath("windsurf", ".codeium/windsurf/skills"),
    AgentPath("trae", ".trae/skills"),
    AgentPath("trae-cn", ".trae-cn/skills"),
    AgentPath("roo", ".roo/skills"),
    AgentPath("cline", ".cline/skills"),
    AgentPath("gemini-cli", ".gemini/skills"),
    AgentPath("github-copilot", ".copilot/skills"),
)


class AgentRegistry:
    """Ordered, read-only table of (agent id, relative skills path) pairs.

    The table is injected rather than hard-coded so new agents can come from
    configuration. Lookups by unknown id return None.
    """

    def __init__(self, entries: Iterable[AgentPath] = DEFAULT_AGENT_PATHS):
        self._entries: Tuple[AgentPath, ...] = tuple(entries)
        self._by_id: Dict[str, AgentPath] = {}
        for entry in self._entries:
            if entry.id in self._by_id:
                raise ValueError(f"Duplicate agent id: {entry.id}")
            self._by_id[entry.id] = entry

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[str, str]]) -> "AgentRegistry":
        return cls(AgentPath(agent_id, path) for agent_id, path in pairs)

    @classmethod
    def with_overrides(
        cls,
        overrides: Optional[Dict[str, str]] = None,
        base: Iterable[AgentPath] = DEFAULT_AGENT_PATHS,
    ) -> "AgentRegistry":
        """Build a registry from `base`, applying configured agents.

        An override for a known id replaces its path in place; new ids are
        appended in the order they appear in `overrides`.
        """
        overrides = dict(overrides or {})
        entries: List[AgentPath] = []
        for entry in base:
            if entry.id in overrides:
                entries.append(AgentPath(entry.id, overrides.pop(entry.id)))
            else:
                entries.append(entry)
        for agent_id, path in overrides.items():
            entries.append(AgentPath(agent_id, path))
        return cls(entries)

    def __iter__(self) -> Iterator[Tuple[str, str]]:
        for entry in self._entries:
            yield entry.id, entry.path

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, agent_id: object) -> bool:
        return agent_id in self._by_id

    def entries(self) -> Tuple[AgentPath, ...]:
        return self._entries

    def ids(self) -> List[str]:
        return [entry.id for entry in self._entries]

    def get(self, agent_id: str) -> Optional[str]:
        """Return the agent's relative skills path, or None if unknown."""
        entry = self._by_id.get(agent_id)
        return entry.path if entry else None

    def skills_dir(self, agent_id: str, home: Path) -> Optional[Path]:
        entry = self._by_id.get(agent_id)
        return entry.resolve(home) if entry else None


# =============================================================================
# Link Helpers
# =============================================================================

def is_junction(path: Path) -> bool:
    """Check if a path is a Windows junction point."""
    if sys.platform != "win32":
        return False
    try:
        import ctypes
        FILE_ATTRIBUTE_REPARSE_POINT = 0x400
        attrs = ctypes.windll.kernel32.GetFileAttributesW(str(path))
        return attrs != -1 and bool(attrs & FILE_ATTRIBUTE_REPARSE_POINT)
    except (AttributeError, OSError):
        return False


def is_link(path: Path) -> bool:
    """True for symlinks and junctions, without following the link."""
    return path.is_symlink() or is_junction(path)
