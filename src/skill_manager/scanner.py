"""Finding installed skills on disk.

`scan_local_skills` walks every agent's skills directory and reports each
skill once per agent: the same skill installed for three agents shows up
three times, because each copy (or link) is installed independently.
`list_global_skills` looks only at the shared global directory and works out
which agents link to each skill there.
"""

from pathlib import Path
from typing import List, Optional

from .agents import GLOBAL_SKILLS_DIR, AgentRegistry, is_link
from .ledger import SourceLedger
from .log import get_logger
from .metadata import (
    METADATA_FILENAME,
    query_git_remote,
    read_git_config_url,
    read_skill_metadata,
)
from .models import GlobalSkillInfo, Skill

logger = get_logger(__name__)


def _is_dir(path: Path) -> bool:
    try:
        return path.is_dir()
    except OSError as e:
        logger.warning("Could not stat %s: %s", path, e)
        return False


def _list_skill_dirs(skills_dir: Path) -> List[Path]:
    """Directory entries (following links) under `skills_dir`, sorted by name.

    A missing directory is normal; an unreadable one is logged and skipped.
    """
    if not _is_dir(skills_dir):
        return []
    try:
        entries = sorted(skills_dir.iterdir(), key=lambda p: p.name)
    except OSError as e:
        logger.warning("Could not read skills directory %s: %s", skills_dir, e)
        return []
    return [entry for entry in entries if _is_dir(entry)]


def resolve_local_source(skill_dir: Path, ledger: Optional[SourceLedger]) -> Optional[str]:
    """Ledger entry first, then the checkout's .git/config url."""
    if ledger is not None:
        source = ledger.get_source(skill_dir.name)
        if source is not None:
            return source
    return read_git_config_url(skill_dir)


def _read_local_skill(
    agent_id: str,
    skill_dir: Path,
    ledger: Optional[SourceLedger],
    metadata_filename: str,
) -> Optional[Skill]:
    metadata = read_skill_metadata(skill_dir, metadata_filename)
    if metadata is None:
        return None
    return Skill(
        id=skill_dir.name,
        name=metadata.name,
        description=metadata.description,
        agent=agent_id,
        is_symlink=is_link(skill_dir),
        source=resolve_local_source(skill_dir, ledger),
        tags=[agent_id],
    )


def scan_local_skills(
    registry: AgentRegistry,
    home: Path,
    ledger: Optional[SourceLedger] = None,
    metadata_filename: str = METADATA_FILENAME,
) -> List[Skill]:
    """Scan every registered agent's skills directory.

    An entry that can't be inspected is logged and left out; the rest of
    the scan carries on.
    """
    skills: List[Skill] = []

    for agent_id, relative_path in registry:
        skills_dir = home / relative_path
        for skill_dir in _list_skill_dirs(skills_dir):
            try:
                skill = _read_local_skill(agent_id, skill_dir, ledger, metadata_filename)
            except OSError as e:
                logger.warning("Skipping unreadable skill %s: %s", skill_dir, e)
                continue
            if skill is not None:
                skills.append(skill)

    logger.debug("Found %d skills across %d agents", len(skills), len(registry))
    return skills


def linked_agents(registry: AgentRegistry, home: Path, skill_id: str) -> List[str]:
    """Agents whose skills directory holds a link named `skill_id`.

    A same-named copy is an independent install, not a use of the global
    skill, so only links count.
    """
    used_by = []
    for agent_id, relative_path in registry:
        candidate = home / relative_path / skill_id
        try:
            linked = is_link(candidate) and candidate.exists()
        except OSError as e:
            logger.warning("Could not check %s: %s", candidate, e)
            continue
        if linked:
            used_by.append(agent_id)
    return used_by


def list_global_skills(
    registry: AgentRegistry,
    home: Path,
    global_dir: str = GLOBAL_SKILLS_DIR,
    metadata_filename: str = METADATA_FILENAME,
) -> List[GlobalSkillInfo]:
    """List skills in the shared global directory.

    The source comes from asking git for the checkout's origin; unlike
    `scan_local_skills`, the source ledger is not consulted here.
    """
    global_skills: List[GlobalSkillInfo] = []

    for skill_dir in _list_skill_dirs(home / global_dir):
        try:
            metadata = read_skill_metadata(skill_dir, metadata_filename)
            if metadata is None:
                continue
            source = query_git_remote(skill_dir)
        except OSError as e:
            logger.warning("Skipping unreadable global skill %s: %s", skill_dir, e)
            continue

        global_skills.append(
            GlobalSkillInfo(
                id=skill_dir.name,
                name=metadata.name,
                description=metadata.description,
                used_by=linked_agents(registry, home, skill_dir.name),
                source=source,
            )
        )

    return global_skills
