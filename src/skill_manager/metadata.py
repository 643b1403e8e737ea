"""Reading what a skill directory says about itself.

Two sources of information: the SKILL.md metadata file (name and
description) and the skill's git checkout, if it has one (origin URL).
"""

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .log import get_logger

logger = get_logger(__name__)

METADATA_FILENAME = "SKILL.md"
DEFAULT_DESCRIPTION = "No description"

_FRONTMATTER_DELIMITER = "---"
_GIT_URL_PREFIX = "url = "


@dataclass
class SkillMetadata:
    name: str
    description: str


def split_frontmatter(content: str) -> Optional[str]:
    """Return the raw YAML between leading ``---`` fences, or None."""
    lines = content.splitlines()
    if not lines or lines[0].strip() != _FRONTMATTER_DELIMITER:
        return None
    for i, line in enumerate(lines[1:], start=1):
        if line.strip() == _FRONTMATTER_DELIMITER:
            return "\n".join(lines[1:i])
    return None


def _frontmatter_fields(content: str) -> Dict[str, str]:
    raw = split_frontmatter(content)
    if raw is None:
        return {}
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        # Unquoted colons in descriptions are common; the line scan copes
        logger.debug("Front matter is not valid YAML, using line scan: %s", e)
        return {}
    if not isinstance(data, dict):
        return {}

    found: Dict[str, str] = {}
    for key in ("name", "description"):
        value: Any = data.get(key)
        if isinstance(value, (str, int, float)) and not isinstance(value, bool):
            text = str(value).strip()
            if text:
                found[key] = text
    return found


def _scan_field(content: str, key: str) -> Optional[str]:
    """First line starting with ``key:`` wins; the rest is the value."""
    prefix = f"{key}:"
    for line in content.splitlines():
        if line.startswith(prefix):
            value = line[len(prefix):].strip()
            return value or None
    return None


def parse_skill_metadata(content: str, fallback_name: str) -> SkillMetadata:
    """Extract name and description from SKILL.md text.

    YAML front matter is preferred. Fields it doesn't provide are looked up
    with a loose ``key: value`` line scan, so files without front matter (or
    with front matter YAML can't parse) still work. Missing name falls back to
    `fallback_name`, missing description to "No description".
    """
    found = _frontmatter_fields(content)
    name = found.get("name") or _scan_field(content, "name") or fallback_name
    description = (
        found.get("description")
        or _scan_field(content, "description")
        or DEFAULT_DESCRIPTION
    )
    return SkillMetadata(name=name, description=description)


def read_skill_metadata(
    skill_dir: Path, metadata_filename: str = METADATA_FILENAME
) -> Optional[SkillMetadata]:
    """Read a skill directory's metadata file.

    Returns None when the directory has no metadata file, i.e. it isn't a
    skill. An unreadable file still counts as a skill, with default fields.
    """
    metadata_path = skill_dir / metadata_filename
    if not metadata_path.is_file():
        return None
    try:
        content = metadata_path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.warning("Could not read %s: %s", metadata_path, e)
        content = ""
    return parse_skill_metadata(content, fallback_name=skill_dir.name)


# =============================================================================
# Git Helpers
# =============================================================================

def read_git_config_url(skill_dir: Path) -> Optional[str]:
    """Return the first ``url = ...`` value in the skill's .git/config."""
    git_config = skill_dir / ".git" / "config"
    if not git_config.is_file():
        return None
    try:
        content = git_config.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.debug("Could not read %s: %s", git_config, e)
        return None
    for line in content.splitlines():
        trimmed = line.strip()
        if trimmed.startswith(_GIT_URL_PREFIX):
            return trimmed[len(_GIT_URL_PREFIX):].strip() or None
    return None


def query_git_remote(skill_dir: Path) -> Optional[str]:
    """Ask git for the skill checkout's origin URL.

    Only tried when the directory has a .git/config. Any failure (git not
    installed, no origin remote) yields None.
    """
    if not (skill_dir / ".git" / "config").is_file():
        return None
    try:
        result = subprocess.run(
            ["git", "-C", str(skill_dir), "remote", "get-url", "origin"],
            capture_output=True,
            text=True,
            stdin=subprocess.DEVNULL,
        )
    except OSError as e:
        logger.debug("Could not run git for %s: %s", skill_dir, e)
        return None
    if result.returncode != 0:
        logger.debug("git remote get-url failed for %s: %s", skill_dir, result.stderr.strip())
        return None
    return result.stdout.strip() or None
