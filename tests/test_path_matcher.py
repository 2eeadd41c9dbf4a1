"""
Unit tests for glob matching and exclusion checks.
"""

from pathlib import PurePosixPath, PureWindowsPath

from file_organizer.utils.path_matcher import (
    is_excluded,
    matches,
    matches_any,
    normalize_path,
)


class TestMatches:
    """Test glob matching."""

    def test_normalize_path(self):
        assert normalize_path("C:\\Users\\Max\\Downloads") == "c:/users/max/downloads"
        assert normalize_path(PurePosixPath("/Home/A")) == "/home/a"

    def test_star_and_question_mark(self):
        assert matches("report.pdf", "*.pdf")
        assert matches("report.pdf", "repor?.pdf")
        assert not matches("report.pdf", "rep?.pdf")
        assert not matches("report.pdf.bak", "*.pdf")

    def test_case_insensitive(self):
        assert matches("Rechnung_2024.PDF", "rechnung*.pdf")
        assert matches("SCREENSHOTS", "Screenshots")

    def test_separators_normalized(self):
        windows = PureWindowsPath("C:\\Users\\Max\\node_modules")
        assert matches(windows, "c:/users/*/node_modules")
        assert matches("/home/max/node_modules", "*\\node_modules")

    def test_star_spans_separators(self):
        assert matches("/a/b/c/.git", "*/.git")
        assert matches("/a/b/c/.git/objects", "*/.git/*")
        assert not matches("/a/b/c/.github", "*/.git")

    def test_other_characters_are_literal(self):
        assert matches("file[1].txt", "file[1].txt")
        assert not matches("file1.txt", "file[1].txt")
        assert matches("a+b (copy).txt", "a+b (*).txt")

    def test_blank_pattern_never_matches(self):
        assert not matches("anything", "")
        assert not matches("anything", "   ")

    def test_matches_any(self):
        assert matches_any("invoice_7.pdf", ["rechnung*", "invoice*"])
        assert not matches_any("notes.txt", ["rechnung*", "invoice*"])
        assert not matches_any("notes.txt", [])


class TestIsExcluded:
    """Test exclusion checks."""

    def test_excluded_by_pattern(self):
        assert is_excluded("/data/root/tmp/file.tmp", ["*.tmp"])
        assert not is_excluded("/data/root/file.txt", ["*.tmp"])

    def test_empty_inputs(self):
        assert not is_excluded("", ["*"])
        assert not is_excluded("/data/file.txt", [])
        assert not is_excluded("/data/file.txt", None)

    def test_blank_patterns_ignored(self):
        assert not is_excluded("/data/file.txt", ["", "  "])
        assert is_excluded("/data/file.txt", ["", "*.txt"])

    def test_fail_open_on_error(self, mocker):
        mocker.patch(
            "file_organizer.utils.path_matcher.matches",
            side_effect=RuntimeError("broken pattern"),
        )
        assert is_excluded("/data/file.txt", ["*.txt"]) is False
