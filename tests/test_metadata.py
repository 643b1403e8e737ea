"""Tests for SKILL.md parsing and git source lookup."""

import subprocess
from pathlib import Path

import pytest

from skill_manager import metadata
from skill_manager.metadata import (
    DEFAULT_DESCRIPTION,
    parse_skill_metadata,
    query_git_remote,
    read_git_config_url,
    read_skill_metadata,
    split_frontmatter,
)

from conftest import write_skill


class TestParseSkillMetadata:
    def test_plain_lines(self):
        meta = parse_skill_metadata("name: My Skill\ndescription: Does things\n", "dir")
        assert meta.name == "My Skill"
        assert meta.description == "Does things"

    def test_frontmatter(self):
        content = (
            "---\n"
            "name: pdf\n"
            "description: Work with PDF files.\n"
            "license: MIT\n"
            "---\n\n"
            "# PDF\n"
        )
        meta = parse_skill_metadata(content, "dir")
        assert meta.name == "pdf"
        assert meta.description == "Work with PDF files."

    def test_multiline_description_in_frontmatter(self):
        content = (
            "---\n"
            "name: pdf\n"
            "description: >\n"
            "  Folded across\n"
            "  two lines.\n"
            "---\n"
        )
        assert parse_skill_metadata(content, "dir").description == "Folded across two lines."

    def test_invalid_yaml_falls_back_to_line_scan(self):
        content = "---\nname: web\ndescription: Use when: the user asks\n---\n"
        meta = parse_skill_metadata(content, "dir")
        assert meta.name == "web"
        assert meta.description == "Use when: the user asks"

    def test_first_matching_line_wins(self):
        content = "name: first\nname: second\ndescription: one\ndescription: two\n"
        meta = parse_skill_metadata(content, "dir")
        assert meta.name == "first"
        assert meta.description == "one"

    def test_indented_lines_are_not_fields(self):
        meta = parse_skill_metadata("  name: nested\n", "dir")
        assert meta.name == "dir"

    def test_defaults(self):
        meta = parse_skill_metadata("# Just a heading\n", "my-dir")
        assert meta.name == "my-dir"
        assert meta.description == DEFAULT_DESCRIPTION

    def test_empty_values_count_as_missing(self):
        meta = parse_skill_metadata("name:\ndescription:   \n", "my-dir")
        assert meta.name == "my-dir"
        assert meta.description == DEFAULT_DESCRIPTION

    def test_frontmatter_missing_field_uses_body_line(self):
        content = "---\nname: x\n---\ndescription: from body\n"
        meta = parse_skill_metadata(content, "dir")
        assert meta.name == "x"
        assert meta.description == "from body"


def test_split_frontmatter():
    assert split_frontmatter("---\na: 1\n---\nbody") == "a: 1"
    assert split_frontmatter("no fences") is None
    assert split_frontmatter("---\nnever closed\n") is None


class TestReadSkillMetadata:
    def test_no_metadata_file(self, tmp_path: Path):
        skill_dir = write_skill(tmp_path, "empty", content=None)
        assert read_skill_metadata(skill_dir) is None

    def test_reads_file(self, tmp_path: Path):
        skill_dir = write_skill(tmp_path, "demo")
        meta = read_skill_metadata(skill_dir)
        assert meta.name == "demo"
        assert meta.description == "Test skill demo"

    def test_custom_filename(self, tmp_path: Path):
        skill_dir = tmp_path / "alt"
        skill_dir.mkdir()
        (skill_dir / "skill.yaml").write_text("name: Alt\n")
        assert read_skill_metadata(skill_dir) is None
        assert read_skill_metadata(skill_dir, "skill.yaml").name == "Alt"


class TestGitSources:
    def test_read_git_config_url(self, tmp_path: Path):
        skill_dir = write_skill(tmp_path, "g", git_url="https://github.com/o/g.git")
        assert read_git_config_url(skill_dir) == "https://github.com/o/g.git"

    def test_read_git_config_url_missing(self, tmp_path: Path):
        assert read_git_config_url(write_skill(tmp_path, "plain")) is None

    def test_query_git_remote_needs_git_config(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        def fail(*args, **kwargs):
            raise AssertionError("git should not run")

        monkeypatch.setattr(metadata.subprocess, "run", fail)
        assert query_git_remote(write_skill(tmp_path, "plain")) is None

    def test_query_git_remote_success(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        skill_dir = write_skill(tmp_path, "g", git_url="ignored")
        calls = []

        def fake_run(args, **kwargs):
            calls.append(args)
            return subprocess.CompletedProcess(args, 0, stdout="https://github.com/o/g.git\n", stderr="")

        monkeypatch.setattr(metadata.subprocess, "run", fake_run)
        assert query_git_remote(skill_dir) == "https://github.com/o/g.git"
        assert calls == [["git", "-C", str(skill_dir), "remote", "get-url", "origin"]]

    def test_query_git_remote_failure(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        skill_dir = write_skill(tmp_path, "g", git_url="ignored")
        monkeypatch.setattr(
            metadata.subprocess,
            "run",
            lambda args, **kw: subprocess.CompletedProcess(args, 2, stdout="", stderr="error: No such remote"),
        )
        assert query_git_remote(skill_dir) is None

    def test_query_git_remote_git_missing(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        skill_dir = write_skill(tmp_path, "g", git_url="ignored")

        def missing(*args, **kwargs):
            raise FileNotFoundError("git")

        monkeypatch.setattr(metadata.subprocess, "run", missing)
        assert query_git_remote(skill_dir) is None
