"""Tests for the section title scanner."""
from __future__ import annotations

from wikicheck.analysis import DocumentAnalysis
from wikicheck.comment_index import build_comment_index
from wikicheck.interval import Interval
from wikicheck.title_index import analyze_title, scan_titles


class TestScanTitles:
    def test_two_levels(self) -> None:
        first, second = scan_titles("== A ==\ntext\n=== B ===\n")
        assert (first.begin, first.end, first.level, first.title) == (0, 7, 2, "A")
        assert (second.begin, second.end, second.level, second.title) == (13, 22, 3, "B")
        assert first.coherent and second.coherent

    def test_unbalanced_levels_recorded(self) -> None:
        (title,) = scan_titles("===Title==\ntext")
        assert (title.first_level, title.second_level) == (3, 2)
        assert title.level == 2
        assert not title.coherent
        assert title.title == "Title"
        assert (title.begin, title.end) == (0, 10)

    def test_text_after_closing_run_is_not_a_title(self) -> None:
        assert scan_titles("== A == b") == []

    def test_no_closing_run(self) -> None:
        assert analyze_title("=x", 0) is None
        assert analyze_title("==\n", 0) is None
        assert analyze_title("==", 0) is None

    def test_trailing_comment(self) -> None:
        text = "== A == <!-- c -->"
        (title,) = scan_titles(text, build_comment_index(text))
        assert title.title == "A"
        assert title.after_interval == Interval(7, 18)
        assert title.after_title_index == 7

    def test_leading_comment(self) -> None:
        text = "<!-- c -->== A =="
        (title,) = scan_titles(text, build_comment_index(text))
        assert title.begin == 10


class TestTitlesInAnalysis:
    def test_trailing_ref_kept_on_the_line(self) -> None:
        (title,) = DocumentAnalysis("== A ==<ref>x</ref>").titles()
        assert title.end == 19
        assert title.after_interval == Interval(7, 19)

    def test_titles_inside_comments_ignored(self) -> None:
        assert DocumentAnalysis("<!--\n== A ==\n-->").titles() == ()

    def test_titles_inside_verbatim_ignored(self) -> None:
        assert DocumentAnalysis("<nowiki>\n== A ==\n</nowiki>").titles() == ()

    def test_title_at(self) -> None:
        analysis = DocumentAnalysis("x\n== A ==\n")
        title = analysis.title_at(4)
        assert title is not None and title.begin == 2
        assert analysis.title_at(0) is None
