from pathlib import Path

import pytest

from promptfiles.core.discovery.models import Decision
from promptfiles.core.discovery.pattern_matching import IgnoreFile, compile_exclude_patterns
from promptfiles.exceptions import ConfigError


class TestExcludeSet:
    def test_empty_set_matches_nothing(self):
        assert not compile_exclude_patterns([]).matches(Path("anything.txt"))

    def test_any_pattern_matching_excludes(self):
        exclude = compile_exclude_patterns(["*.lock", "target/**"])
        assert exclude.matches(Path("Cargo.lock"))
        assert exclude.matches(Path("nested/poetry.lock"))
        assert exclude.matches(Path("target/debug/app"))
        assert not exclude.matches(Path("src/main.rs"))
        assert len(exclude) == 2

    def test_pattern_is_tested_against_the_whole_fragment(self):
        exclude = compile_exclude_patterns(["docs/*.md"])
        assert exclude.matches(Path("docs/readme.md"))
        assert exclude.matches(Path("docs/guide/intro.md"))
        assert not exclude.matches(Path("src/docs/readme.md"))

    def test_bare_name_is_exact(self):
        exclude = compile_exclude_patterns(["notes.txt"])
        assert exclude.matches(Path("notes.txt"))
        assert not exclude.matches(Path("sub/notes.txt"))

    def test_recursive_segment_matches_zero_or_more_directories(self):
        exclude = compile_exclude_patterns(["src/**/test_*.py"])
        assert exclude.matches(Path("src/test_a.py"))
        assert exclude.matches(Path("src/pkg/sub/test_b.py"))
        assert not exclude.matches(Path("lib/test_c.py"))

    def test_character_classes(self):
        exclude = compile_exclude_patterns(["log[0-9].txt", "[!a]*.bak", "[]]x"])
        assert exclude.matches(Path("log7.txt"))
        assert not exclude.matches(Path("logx.txt"))
        assert exclude.matches(Path("b.bak"))
        assert not exclude.matches(Path("a.bak"))
        assert exclude.matches(Path("]x"))

    def test_matching_is_case_sensitive(self):
        assert not compile_exclude_patterns(["*.MD"]).matches(Path("readme.md"))

    @pytest.mark.parametrize("pattern", ["[oops", "[!", "a**", "**b", "a/***/b"])
    def test_malformed_globs_are_rejected(self, pattern):
        with pytest.raises(ConfigError):
            compile_exclude_patterns([pattern])


class TestIgnoreFile:
    def test_missing_file_gives_none(self, tmp_path):
        assert IgnoreFile.from_file(tmp_path / ".promptignore") is None

    def test_comment_only_file_gives_none(self, tmp_path):
        (tmp_path / ".promptignore").write_text("# nothing here\n\n")
        assert IgnoreFile.from_file(tmp_path / ".promptignore") is None

    def test_parse_failure_degrades_to_none(self, tmp_path, monkeypatch):
        (tmp_path / ".promptignore").write_text("*.log\n")

        def broken(*args, **kwargs):
            raise ValueError("cannot compile")

        monkeypatch.setattr("pathspec.PathSpec.from_lines", broken)

        assert IgnoreFile.from_file(tmp_path / ".promptignore") is None

    def test_last_matching_pattern_wins(self, tmp_path):
        matcher = IgnoreFile.from_lines(tmp_path, ["*.log", "!keep.log"])
        assert matcher.matched(tmp_path / "drop.log") is Decision.IGNORE
        assert matcher.matched(tmp_path / "keep.log") is Decision.WHITELIST
        assert matcher.matched(tmp_path / "notes.txt") is Decision.NONE

    def test_paths_outside_root_never_match(self, tmp_path):
        matcher = IgnoreFile.from_lines(tmp_path / "inner", ["*"])
        assert matcher.matched(tmp_path / "outer.txt") is Decision.NONE
        assert matcher.matched_path_or_any_parents(tmp_path / "outer.txt") is Decision.NONE

    def test_directory_pattern_needs_directory_flag(self, tmp_path):
        matcher = IgnoreFile.from_lines(tmp_path, ["cache/"])
        assert matcher.matched(tmp_path / "cache", is_dir=True) is Decision.IGNORE
        assert matcher.matched(tmp_path / "cache", is_dir=False) is Decision.NONE

    def test_parent_directory_match_applies_to_contents(self, tmp_path):
        matcher = IgnoreFile.from_lines(tmp_path, ["/vendor/"])
        path = tmp_path / "vendor" / "lib" / "x.js"
        assert matcher.matched_path_or_any_parents(path) is Decision.IGNORE

    @pytest.mark.parametrize("name,expected", [
        ("keep.log", Decision.WHITELIST),
        ("other.log", Decision.IGNORE),
    ])
    def test_own_path_checked_before_parents(self, tmp_path, name, expected):
        matcher = IgnoreFile.from_lines(tmp_path, ["logs/", "!logs/keep.log"])
        assert matcher.matched_path_or_any_parents(tmp_path / "logs" / name) is expected
