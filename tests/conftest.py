"""Shared fixtures: a fake home directory with helpers to lay out skills."""

import os
from pathlib import Path
from typing import Optional

import pytest

from skill_manager.agents import AgentRegistry
from skill_manager.config import Settings
from skill_manager.ledger import SourceLedger


def write_skill(
    parent: Path,
    skill_id: str,
    content: Optional[str] = "name: {id}\ndescription: Test skill {id}\n",
    git_url: Optional[str] = None,
) -> Path:
    """Create ``parent/skill_id`` with an optional SKILL.md and .git/config."""
    skill_dir = parent / skill_id
    skill_dir.mkdir(parents=True, exist_ok=True)
    if content is not None:
        (skill_dir / "SKILL.md").write_text(content.format(id=skill_id))
    if git_url is not None:
        git_dir = skill_dir / ".git"
        git_dir.mkdir()
        (git_dir / "config").write_text(
            "[core]\n"
            "\trepositoryformatversion = 0\n"
            '[remote "origin"]\n'
            f"\turl = {git_url}\n"
            "\tfetch = +refs/heads/*:refs/remotes/origin/*\n"
        )
    return skill_dir


def link_skill(target: Path, agent_dir: Path) -> Path:
    """Symlink `target` into `agent_dir` under the same name."""
    agent_dir.mkdir(parents=True, exist_ok=True)
    link = agent_dir / target.name
    os.symlink(target, link, target_is_directory=True)
    return link


@pytest.fixture
def home(tmp_path: Path) -> Path:
    home = tmp_path / "home"
    home.mkdir()
    return home


@pytest.fixture
def registry() -> AgentRegistry:
    return AgentRegistry()


@pytest.fixture
def ledger(home: Path) -> SourceLedger:
    return SourceLedger(home / ".gemini" / "antigravity" / "skill_sources.json")


@pytest.fixture
def settings(home: Path) -> Settings:
    return Settings(home=str(home))


@pytest.fixture
def config_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point SKILL_MANAGER_CONFIG at a temp file (not created)."""
    path = tmp_path / "config" / "config.json"
    monkeypatch.setenv("SKILL_MANAGER_CONFIG", str(path))
    return path
