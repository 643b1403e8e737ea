"""Records returned by scans. Built fresh on every call, never cached."""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class Skill:
    """One skill directory under one agent's skills directory.

    `author`, `stars`, `version` and `downloads` are placeholders the UI
    expects; scans don't know real values for them.
    """

    id: str
    name: str
    description: str
    agent: str
    is_symlink: bool = False
    source: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    installed: bool = True
    author: str = "local"
    stars: int = 0
    version: Optional[str] = "1.0.0"
    downloads: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class GlobalSkillInfo:
    """A skill in the shared global directory and the agents linking to it."""

    id: str
    name: str
    description: str
    used_by: List[str] = field(default_factory=list)
    source: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
