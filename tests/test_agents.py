"""Tests for the agent registry."""

from pathlib import Path

import pytest

from skill_manager.agents import (
    DEFAULT_AGENT_PATHS,
    GLOBAL_AGENT_ID,
    AgentPath,
    AgentRegistry,
    is_link,
)


class TestAgentRegistry:
    def test_default_order_is_preserved(self):
        registry = AgentRegistry()
        assert registry.ids() == [entry.id for entry in DEFAULT_AGENT_PATHS]
        assert registry.ids()[0] == GLOBAL_AGENT_ID

    def test_lookup(self):
        registry = AgentRegistry()
        assert registry.get("cursor") == ".cursor/skills"
        assert registry.get("windsurf") == ".codeium/windsurf/skills"
        assert registry.get("no-such-agent") is None
        assert "claude-code" in registry
        assert "no-such-agent" not in registry

    def test_skills_dir(self, tmp_path: Path):
        registry = AgentRegistry()
        assert registry.skills_dir("cursor", tmp_path) == tmp_path / ".cursor" / "skills"
        assert registry.skills_dir("nope", tmp_path) is None

    def test_injected_entries(self):
        registry = AgentRegistry.from_pairs([("zed", ".zed/skills"), ("cursor", "c")])
        assert list(registry) == [("zed", ".zed/skills"), ("cursor", "c")]
        assert len(registry) == 2

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ValueError):
            AgentRegistry([AgentPath("a", "x"), AgentPath("a", "y")])

    def test_overrides_replace_in_place_and_append(self):
        registry = AgentRegistry.with_overrides(
            {"zed": ".zed/skills", "cursor": ".cursor/custom"},
        )
        ids = registry.ids()
        assert ids.index("cursor") == [e.id for e in DEFAULT_AGENT_PATHS].index("cursor")
        assert registry.get("cursor") == ".cursor/custom"
        assert ids[-1] == "zed"

    def test_no_overrides_matches_defaults(self):
        assert list(AgentRegistry.with_overrides(None)) == list(AgentRegistry())


def test_is_link(tmp_path: Path):
    target = tmp_path / "real"
    target.mkdir()
    link = tmp_path / "link"
    link.symlink_to(target, target_is_directory=True)

    assert is_link(link)
    assert not is_link(target)
    assert not is_link(tmp_path / "missing")
