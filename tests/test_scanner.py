"""Tests for local and global skill scans."""

from pathlib import Path

import pytest

from skill_manager import scanner
from skill_manager.agents import AgentRegistry
from skill_manager.ledger import SourceLedger
from skill_manager.scanner import linked_agents, list_global_skills, scan_local_skills

from conftest import link_skill, write_skill


class TestScanLocalSkills:
    def test_cursor_scenario(self, home: Path, registry: AgentRegistry, ledger: SourceLedger):
        write_skill(
            home / ".cursor" / "skills",
            "my-skill",
            content="name: My Skill\ndescription: Does things\n",
        )

        skills = scan_local_skills(registry, home, ledger)

        assert len(skills) == 1
        skill = skills[0]
        assert skill.id == "my-skill"
        assert skill.name == "My Skill"
        assert skill.description == "Does things"
        assert skill.agent == "cursor"
        assert skill.tags == ["cursor"]
        assert skill.source is None
        assert skill.installed is True
        assert skill.is_symlink is False

    def test_no_agent_directories(self, home: Path, registry: AgentRegistry):
        assert scan_local_skills(registry, home) == []

    def test_directories_without_metadata_are_skipped(self, home: Path, registry: AgentRegistry):
        skills_dir = home / ".claude" / "skills"
        write_skill(skills_dir, "real")
        write_skill(skills_dir, "not-a-skill", content=None)
        (skills_dir / "README.md").write_text("a file, not a directory")

        skills = scan_local_skills(registry, home)
        assert [s.id for s in skills] == ["real"]

    def test_same_skill_reported_per_agent(self, home: Path, registry: AgentRegistry):
        global_skill = write_skill(home / ".agents" / "skills", "shared")
        link_skill(global_skill, home / ".cursor" / "skills")
        write_skill(home / ".claude" / "skills", "shared")

        skills = scan_local_skills(registry, home)
        by_agent = {s.agent: s for s in skills}

        assert sorted(by_agent) == ["claude-code", "cursor", "global"]
        assert by_agent["cursor"].is_symlink is True
        assert by_agent["claude-code"].is_symlink is False
        assert by_agent["global"].is_symlink is False

    def test_order_follows_registry_then_name(self, home: Path, registry: AgentRegistry):
        write_skill(home / ".roo" / "skills", "b")
        write_skill(home / ".roo" / "skills", "a")
        write_skill(home / ".claude" / "skills", "z")

        skills = scan_local_skills(registry, home)
        assert [(s.agent, s.id) for s in skills] == [("claude-code", "z"), ("roo", "a"), ("roo", "b")]

    def test_git_config_fallback(self, home: Path, registry: AgentRegistry, ledger: SourceLedger):
        write_skill(home / ".cursor" / "skills", "g", git_url="https://github.com/o/g.git")
        skills = scan_local_skills(registry, home, ledger)
        assert skills[0].source == "https://github.com/o/g.git"

    def test_ledger_preferred_over_git(self, home: Path, registry: AgentRegistry, ledger: SourceLedger):
        write_skill(home / ".cursor" / "skills", "g", git_url="https://github.com/o/g.git")
        ledger.save_source("g", "vercel-labs/agent-skills")

        skills = scan_local_skills(registry, home, ledger)
        assert skills[0].source == "vercel-labs/agent-skills"

    def test_corrupt_ledger_degrades_to_git(self, home: Path, registry: AgentRegistry, ledger: SourceLedger):
        write_skill(home / ".cursor" / "skills", "g", git_url="https://github.com/o/g.git")
        ledger.path.parent.mkdir(parents=True, exist_ok=True)
        ledger.path.write_text("{{{")

        skills = scan_local_skills(registry, home, ledger)
        assert skills[0].source == "https://github.com/o/g.git"

    def test_custom_registry(self, home: Path):
        write_skill(home / ".zed" / "skills", "z")
        write_skill(home / ".cursor" / "skills", "c")
        registry = AgentRegistry.from_pairs([("zed", ".zed/skills")])

        skills = scan_local_skills(registry, home)
        assert [(s.agent, s.id) for s in skills] == [("zed", "z")]

    def test_broken_symlink_is_ignored(self, home: Path, registry: AgentRegistry):
        skills_dir = home / ".cursor" / "skills"
        skills_dir.mkdir(parents=True)
        (skills_dir / "dangling").symlink_to(home / "missing", target_is_directory=True)

        assert scan_local_skills(registry, home) == []

    def test_unreadable_entry_does_not_hide_others(
        self, home: Path, registry: AgentRegistry, monkeypatch: pytest.MonkeyPatch
    ):
        skills_dir = home / ".cursor" / "skills"
        write_skill(skills_dir, "good")
        write_skill(skills_dir, "locked")
        write_skill(home / ".roo" / "skills", "other")
        real_read = scanner.read_skill_metadata

        def read(skill_dir, metadata_filename):
            if skill_dir.name == "locked":
                raise PermissionError(13, "Permission denied", str(skill_dir / "SKILL.md"))
            return real_read(skill_dir, metadata_filename)

        monkeypatch.setattr(scanner, "read_skill_metadata", read)

        skills = scan_local_skills(registry, home)
        assert [(s.agent, s.id) for s in skills] == [("cursor", "good"), ("roo", "other")]


class TestGlobalSkills:
    @pytest.fixture(autouse=True)
    def no_git(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(scanner, "query_git_remote", lambda path: None)

    def test_used_by_counts_only_symlinks(self, home: Path, registry: AgentRegistry):
        shared = write_skill(home / ".agents" / "skills", "shared")
        link_skill(shared, home / ".cursor" / "skills")
        link_skill(shared, home / ".claude" / "skills")
        # A same-named copy is an independent install
        write_skill(home / ".roo" / "skills", "shared")

        skills = list_global_skills(registry, home)

        assert len(skills) == 1
        assert skills[0].id == "shared"
        assert skills[0].used_by == ["claude-code", "cursor"]

    def test_unused_global_skill(self, home: Path, registry: AgentRegistry):
        write_skill(home / ".agents" / "skills", "lonely")
        skills = list_global_skills(registry, home)
        assert skills[0].used_by == []
        assert skills[0].name == "lonely"

    def test_skips_directories_without_metadata(self, home: Path, registry: AgentRegistry):
        write_skill(home / ".agents" / "skills", "stub", content=None)
        assert list_global_skills(registry, home) == []

    def test_missing_global_directory(self, home: Path, registry: AgentRegistry):
        assert list_global_skills(registry, home) == []

    def test_source_from_git_not_ledger(
        self, home: Path, registry: AgentRegistry, ledger: SourceLedger, monkeypatch: pytest.MonkeyPatch
    ):
        write_skill(home / ".agents" / "skills", "tracked", git_url="https://x/tracked.git")
        write_skill(home / ".agents" / "skills", "untracked")
        ledger.save_source("untracked", "owner/repo")
        monkeypatch.setattr(
            scanner,
            "query_git_remote",
            lambda path: "https://x/tracked.git" if (path / ".git").exists() else None,
        )

        skills = {s.id: s for s in list_global_skills(registry, home)}
        assert skills["tracked"].source == "https://x/tracked.git"
        assert skills["untracked"].source is None

    def test_custom_global_dir(self, home: Path, registry: AgentRegistry):
        write_skill(home / "shared-skills", "s")
        assert [s.id for s in list_global_skills(registry, home, global_dir="shared-skills")] == ["s"]

    def test_unreadable_global_entry_is_skipped(
        self, home: Path, registry: AgentRegistry, monkeypatch: pytest.MonkeyPatch
    ):
        write_skill(home / ".agents" / "skills", "good")
        write_skill(home / ".agents" / "skills", "locked")
        real_read = scanner.read_skill_metadata

        def read(skill_dir, metadata_filename):
            if skill_dir.name == "locked":
                raise PermissionError(13, "Permission denied")
            return real_read(skill_dir, metadata_filename)

        monkeypatch.setattr(scanner, "read_skill_metadata", read)

        assert [s.id for s in list_global_skills(registry, home)] == ["good"]


def test_linked_agents_requires_matching_id(home: Path, registry: AgentRegistry):
    shared = write_skill(home / ".agents" / "skills", "shared")
    other = write_skill(home / ".agents" / "skills", "other")
    link_skill(other, home / ".cursor" / "skills")
    link_skill(shared, home / ".roo" / "skills")

    assert linked_agents(registry, home, "shared") == ["roo"]
