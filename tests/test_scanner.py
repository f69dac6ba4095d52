"""Tests for the rules directory scanner."""

from __future__ import annotations

import errno
from pathlib import Path

import pytest

from rulebook.repository.errors import GroupReadFailure, RootNotFound
from rulebook.repository.scanner import scan


@pytest.fixture
def rules_dir(tmp_path: Path) -> Path:
    root = tmp_path / "rules"
    general = root / "general"
    general.mkdir(parents=True)
    (general / "README.md").write_text("# Overview", encoding="utf-8")
    (general / "RULES.md").write_text("# Rules", encoding="utf-8")
    return root


class TestScan:
    def test_basic_layout(self, rules_dir: Path):
        result = scan(rules_dir)
        assert set(result.snapshot.keys()) == {"GENERAL-OVERVIEW", "GENERAL-RULES"}
        assert result.snapshot.entries["GENERAL-OVERVIEW"].content == "# Overview"
        assert result.warnings == []

    def test_entry_metadata(self, rules_dir: Path):
        entry = scan(rules_dir).snapshot.entries["GENERAL-RULES"]
        assert entry.group == "general"
        assert entry.path == rules_dir / "general" / "RULES.md"
        assert entry.title == "Rules"

    def test_entries_are_read_only(self, rules_dir: Path):
        snapshot = scan(rules_dir).snapshot
        with pytest.raises(TypeError):
            snapshot.entries["GENERAL-EXTRA"] = snapshot.entries["GENERAL-RULES"]
        assert "GENERAL-EXTRA" not in snapshot

    def test_timestamp_from_clock(self, rules_dir: Path):
        result = scan(rules_dir, clock=lambda: 42.0)
        assert result.snapshot.created_at == 42.0

    def test_missing_root(self, tmp_path: Path):
        with pytest.raises(RootNotFound):
            scan(tmp_path / "nope")

    def test_root_is_file(self, tmp_path: Path):
        path = tmp_path / "rules"
        path.write_text("not a directory")
        with pytest.raises(RootNotFound):
            scan(path)

    def test_empty_root(self, tmp_path: Path):
        result = scan(tmp_path)
        assert len(result.snapshot) == 0

    def test_top_level_files_ignored(self, rules_dir: Path):
        (rules_dir / "STRAY.md").write_text("# Stray")
        assert "STRAY" not in " ".join(scan(rules_dir).snapshot.keys())

    def test_nested_directories_ignored(self, rules_dir: Path):
        nested = rules_dir / "general" / "deeper"
        nested.mkdir()
        (nested / "HIDDEN.md").write_text("# Hidden")
        keys = scan(rules_dir).snapshot.keys()
        assert "GENERAL-HIDDEN" not in keys
        assert "DEEPER-HIDDEN" not in keys

    def test_non_markdown_ignored(self, rules_dir: Path):
        (rules_dir / "general" / "notes.txt").write_text("text")
        assert len(scan(rules_dir).snapshot) == 2

    def test_hidden_group_ignored(self, rules_dir: Path):
        hidden = rules_dir / ".git"
        hidden.mkdir()
        (hidden / "README.md").write_text("# git")
        assert ".GIT-OVERVIEW" not in scan(rules_dir).snapshot

    def test_empty_file_skipped(self, rules_dir: Path):
        (rules_dir / "general" / "EMPTY.md").write_text("")
        assert "GENERAL-EMPTY" not in scan(rules_dir).snapshot

    def test_invalid_key_skipped(self, rules_dir: Path):
        (rules_dir / "general" / "my notes.md").write_text("# Notes")
        assert len(scan(rules_dir).snapshot) == 2

    def test_multiple_groups(self, rules_dir: Path):
        python = rules_dir / "python"
        python.mkdir()
        (python / "STYLE.md").write_text("# Style")
        keys = scan(rules_dir).snapshot.keys()
        assert "PYTHON-STYLE" in keys
        assert "GENERAL-OVERVIEW" in keys

    def test_collision_last_wins_in_sorted_order(self, rules_dir: Path):
        # README.md and OVERVIEW.md both map to GENERAL-OVERVIEW; OVERVIEW.md sorts first
        (rules_dir / "general" / "OVERVIEW.md").write_text("# Other overview")
        snapshot = scan(rules_dir).snapshot
        assert snapshot.entries["GENERAL-OVERVIEW"].content == "# Overview"
        assert len(snapshot) == 2

    def test_unreadable_group_is_warning(self, rules_dir: Path, monkeypatch):
        broken = rules_dir / "broken"
        broken.mkdir()
        (broken / "README.md").write_text("# Broken")

        original_iterdir = Path.iterdir

        def iterdir(self):
            if self == broken:
                raise PermissionError("permission denied")
            return original_iterdir(self)

        monkeypatch.setattr(Path, "iterdir", iterdir)
        result = scan(rules_dir)

        assert "BROKEN-OVERVIEW" not in result.snapshot
        assert "GENERAL-OVERVIEW" in result.snapshot
        assert len(result.warnings) == 1
        warning = result.warnings[0]
        assert isinstance(warning, GroupReadFailure)
        assert warning.group == "broken"
        assert "permission denied" in str(warning)

    def test_unstattable_files_are_warnings(self, rules_dir: Path, monkeypatch):
        locked = rules_dir / "locked"
        locked.mkdir()
        (locked / "RULES.md").write_text("# Locked")

        original_stat = Path.stat

        def stat(self, *, follow_symlinks=True):
            if self.parent == locked:
                raise PermissionError(errno.EACCES, "Permission denied", str(self))
            return original_stat(self, follow_symlinks=follow_symlinks)

        monkeypatch.setattr(Path, "stat", stat)
        result = scan(rules_dir)

        assert set(result.snapshot.keys()) == {"GENERAL-OVERVIEW", "GENERAL-RULES"}
        assert [(w.group, w.path.name) for w in result.warnings] == [("locked", "RULES.md")]

    def test_unstattable_group_is_warning(self, rules_dir: Path, monkeypatch):
        locked = rules_dir / "locked"
        locked.mkdir()

        original_stat = Path.stat

        def stat(self, *, follow_symlinks=True):
            if self == locked:
                raise PermissionError(errno.EACCES, "Permission denied", str(self))
            return original_stat(self, follow_symlinks=follow_symlinks)

        monkeypatch.setattr(Path, "stat", stat)
        result = scan(rules_dir)

        assert "GENERAL-OVERVIEW" in result.snapshot
        assert [w.group for w in result.warnings] == ["locked"]

    def test_undecodable_file_is_warning(self, rules_dir: Path):
        (rules_dir / "general" / "BINARY.md").write_bytes(b"\xff\xfe\xfa")
        result = scan(rules_dir)
        assert "GENERAL-BINARY" not in result.snapshot
        assert "GENERAL-RULES" in result.snapshot
        assert [w.path.name for w in result.warnings] == ["BINARY.md"]


class TestTitles:
    def test_front_matter_title(self, rules_dir: Path):
        (rules_dir / "general" / "API.md").write_text(
            "---\ntitle: API Conventions\n---\n\n# Heading\n", encoding="utf-8"
        )
        entry = scan(rules_dir).snapshot.entries["GENERAL-API"]
        assert entry.title == "API Conventions"
        # Content is served raw, front matter included
        assert entry.content.startswith("---\ntitle: API Conventions")

    def test_heading_after_front_matter(self, rules_dir: Path):
        (rules_dir / "general" / "API.md").write_text(
            "---\ntags: [api]\n---\n\n# REST Design\n", encoding="utf-8"
        )
        assert scan(rules_dir).snapshot.entries["GENERAL-API"].title == "REST Design"

    def test_malformed_front_matter(self, rules_dir: Path):
        (rules_dir / "general" / "BAD.md").write_text(
            "---\ntitle: [unclosed\n---\n# Still Works\n", encoding="utf-8"
        )
        entry = scan(rules_dir).snapshot.entries["GENERAL-BAD"]
        assert entry.title == "Still Works"

    def test_fallback_to_key(self, rules_dir: Path):
        (rules_dir / "general" / "PLAIN.md").write_text("no heading here")
        assert scan(rules_dir).snapshot.entries["GENERAL-PLAIN"].title == "GENERAL-PLAIN"
