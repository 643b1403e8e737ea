"""Argument builders for the external ``skills`` tool.

Each builder turns one request into the argument list after the tool name,
e.g. ``["skills", "add", "owner/repo", "--global", "--yes"]``. They do no
I/O, so they can be tested without spawning anything.
"""

import sys
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .agents import GLOBAL_AGENT_ID


@dataclass
class InstallCommand:
    """``skills add <source> [--skill <name>] [--global] [--agent <a>]... [--yes]``"""

    source: str
    skill: Optional[str] = None
    global_: bool = False
    agents: Sequence[str] = field(default_factory=list)
    auto_confirm: bool = False

    def args(self) -> List[str]:
        args = ["skills", "add", self.source]
        if self.skill:
            args += ["--skill", self.skill]
        if self.global_:
            args.append("--global")
        for agent in self.agents:
            # "global" is a UI pseudo-agent, covered by --global
            if agent == GLOBAL_AGENT_ID:
                continue
            args += ["--agent", agent]
        if self.auto_confirm:
            args.append("--yes")
        return args


@dataclass
class RemoveCommand:
    """``skills remove (--all | <id>...) [--global] [--agent <a>]... [--yes]``"""

    skill_ids: Sequence[str] = field(default_factory=list)
    global_: bool = False
    agents: Sequence[str] = field(default_factory=list)
    remove_all: bool = False
    auto_confirm: bool = False

    def args(self) -> List[str]:
        args = ["skills", "remove"]
        if self.remove_all:
            args.append("--all")
        else:
            args.extend(self.skill_ids)
        if self.global_:
            args.append("--global")
        for agent in self.agents:
            args += ["--agent", agent]
        if self.auto_confirm:
            args.append("--yes")
        return args


@dataclass
class RemoveGlobalCommand:
    """``skills remove -g <skill_id>``"""

    skill_id: str

    def args(self) -> List[str]:
        return ["skills", "remove", "-g", self.skill_id]


def build_argv(tool: Sequence[str], args: Sequence[str], platform: str = sys.platform) -> List[str]:
    """Full argv for running `tool` with `args`.

    npx is a .cmd shim on Windows, which CreateProcess can't launch directly,
    so there it goes through ``cmd /C``.
    """
    if platform == "win32":
        return ["cmd", "/C", *tool, *args]
    return [*tool, *args]
