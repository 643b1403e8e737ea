"""Install and remove skills.

Install and the two remove variants delegate to the external ``skills`` tool
(``npx skills ...``). Uninstall works on the filesystem directly, one agent
at a time, and never lets one agent's failure stop the others.
"""

import asyncio
import re
import shutil
from pathlib import Path
from typing import List, Optional, Sequence

from .agents import AgentRegistry, is_junction, is_link
from .commands import InstallCommand, RemoveCommand, RemoveGlobalCommand, build_argv
from .config import DEFAULT_TOOL
from .errors import InvalidRequestError, ToolFailedError
from .ledger import SourceLedger
from .log import get_logger
from .runner import FALLBACK_INPUT, ToolOutput, run_tool

logger = get_logger(__name__)

# The tool prints where it put each skill, e.g. ~\.agents\skills\agent-browser
# or ~/.agents/skills/agent-browser
INSTALLED_SKILL_PATTERN = re.compile(r"[~\\/]\.agents[\\/]skills[\\/]([A-Za-z0-9_-]+)")


def parse_installed_skill_ids(stdout: str) -> List[str]:
    """Skill ids mentioned in install output, unique, in first-seen order."""
    return list(dict.fromkeys(m.group(1) for m in INSTALLED_SKILL_PATTERN.finditer(stdout)))


def check_skill_id(skill_id: str) -> None:
    """Reject ids that would name something other than one skill directory."""
    if (
        not skill_id
        or skill_id in (".", "..")
        or "/" in skill_id
        or "\\" in skill_id
        or Path(skill_id).name != skill_id
    ):
        raise InvalidRequestError(f"Invalid skill id: {skill_id!r}")


def remove_skill_path(path: Path) -> None:
    """Delete an installed skill.

    Links (symlinks, junctions) are removed without touching what they
    point to, so uninstalling from one agent leaves the global copy alone.
    """
    if path.is_symlink():
        path.unlink()
    elif is_junction(path):
        path.rmdir()
    elif path.is_dir():
        shutil.rmtree(path)
    else:
        path.unlink()


class SkillOrchestrator:
    """Runs install/remove requests against the tool and the filesystem."""

    def __init__(
        self,
        registry: AgentRegistry,
        ledger: SourceLedger,
        home: Path,
        tool: Optional[Sequence[str]] = None,
    ):
        self.registry = registry
        self.ledger = ledger
        self.home = home
        self.tool = list(tool or DEFAULT_TOOL)

    async def _run(self, args: List[str], label: str, stdin_input: Optional[bytes]) -> ToolOutput:
        output = await run_tool(build_argv(self.tool, args), stdin_input=stdin_input, label=label)
        if not output.ok:
            logger.warning("[%s] FAILED with status %d", label, output.returncode)
            raise ToolFailedError(output.stderr, output.returncode)
        return output

    async def install(
        self,
        source: str,
        skill: Optional[str] = None,
        global_: bool = False,
        agents: Sequence[str] = (),
        auto_confirm: bool = False,
    ) -> str:
        """Install `source` (a repo, URL or package token) via the tool.

        Every skill the tool reports installing, plus `skill` if given, gets
        `source` recorded as its source.
        """
        logger.info(
            "[INSTALL] Starting installation: %s (skill=%s) global=%s agents=%s auto_confirm=%s",
            source, skill, global_, list(agents), auto_confirm,
        )
        command = InstallCommand(
            source=source, skill=skill, global_=global_, agents=list(agents), auto_confirm=auto_confirm
        )
        output = await self._run(command.args(), "INSTALL", FALLBACK_INPUT)

        installed = parse_installed_skill_ids(output.stdout)
        if skill and skill not in installed:
            installed.append(skill)
        logger.info("[INSTALL] Identified installed skills: %s", installed)

        # save_sources can block on the ledger flock
        if installed and await asyncio.to_thread(self.ledger.save_sources, installed, source):
            for skill_id in installed:
                logger.debug("[INSTALL] Saved source for %s: %s", skill_id, source)

        return f"Installed {source}"

    def uninstall(self, skill_id: str, agents: Sequence[str]) -> str:
        """Delete skill `skill_id` from each agent's directory.

        Returns one ``"<agent>: <outcome>"`` line per requested agent.
        Raises InvalidRequestError, before touching anything, when `skill_id`
        is empty, ``.``/``..`` or contains a path separator.
        """
        check_skill_id(skill_id)
        logger.info("Uninstalling skill %s from agents=%s", skill_id, list(agents))
        messages = []

        for agent_id in agents:
            skills_dir = self.registry.skills_dir(agent_id, self.home)
            if skills_dir is None:
                messages.append(f"{agent_id}: Unknown agent")
                continue

            skill_path = skills_dir / skill_id
            if not (skill_path.exists() or is_link(skill_path)):
                logger.info("Skill %s not found in %s (path: %s)", skill_id, agent_id, skill_path)
                messages.append(f"{agent_id}: Not found")
                continue

            try:
                remove_skill_path(skill_path)
            except OSError as e:
                logger.warning("Failed to remove %s from %s: %s", skill_id, agent_id, e)
                messages.append(f"{agent_id}: Error ({e})")
            else:
                logger.info("Removed %s from %s", skill_id, agent_id)
                messages.append(f"{agent_id}: Removed")

        if not self._installed_anywhere(skill_id):
            self.ledger.remove_source(skill_id)

        return "\n".join(messages)

    def _installed_anywhere(self, skill_id: str) -> bool:
        for agent_id, relative_path in self.registry:
            path = self.home / relative_path / skill_id
            if path.exists() or is_link(path):
                return True
        return False

    async def remove(
        self,
        skill_ids: Sequence[str] = (),
        global_: bool = False,
        agents: Sequence[str] = (),
        remove_all: bool = False,
        auto_confirm: bool = False,
    ) -> str:
        """Remove skills through the tool (``skills remove``)."""
        if not remove_all and not skill_ids:
            raise InvalidRequestError("Nothing to remove: pass skill ids or remove_all")

        logger.info(
            "[REMOVE_SKILLS] Starting removal: skill_ids=%s global=%s agents=%s remove_all=%s auto_confirm=%s",
            list(skill_ids), global_, list(agents), remove_all, auto_confirm,
        )
        command = RemoveCommand(
            skill_ids=list(skill_ids),
            global_=global_,
            agents=list(agents),
            remove_all=remove_all,
            auto_confirm=auto_confirm,
        )
        await self._run(command.args(), "REMOVE_SKILLS", FALLBACK_INPUT)
        return "Successfully removed skills"

    async def remove_global(self, skill_id: str) -> str:
        """Remove one skill from the global directory (``skills remove -g``)."""
        logger.info("[REMOVE_GLOBAL] Removing global skill: %s", skill_id)
        await self._run(RemoveGlobalCommand(skill_id).args(), "REMOVE_GLOBAL", None)
        return f"Removed global skill: {skill_id}"
