"""Tests for the 008 unbalanced heading detector."""
from __future__ import annotations

import pytest

from wikicheck.analysis import DocumentAnalysis
from wikicheck.detectors.heading_close import HeadingCloseDetector, build_heading
from wikicheck.findings import DELETE_LABEL, Finding, FindingSink


def _detect(text: str) -> list[Finding]:
    sink = FindingSink()
    HeadingCloseDetector().detect(DocumentAnalysis(text), sink)
    return list(sink.sorted())


def _replacements(finding: Finding) -> list[str]:
    return [fix.replacement for fix in finding.fixes]


def test_build_heading() -> None:
    assert build_heading(2, " A ") == "== A =="


class TestUnbalanced:
    def test_closing_run_shorter(self) -> None:
        (finding,) = _detect("===Title==\ntext")
        assert (finding.begin, finding.end) == (0, 10)
        assert finding.category == "008"
        assert _replacements(finding) == ["===Title===", "==Title=="]
        assert finding.automatic_fix is None

    def test_closing_run_longer(self) -> None:
        (finding,) = _detect("==Title===")
        assert _replacements(finding)[:2] == ["==Title==", "===Title==="]

    def test_no_closing_run(self) -> None:
        (finding,) = _detect("== Title\n")
        assert _replacements(finding) == ["== Title=="]

    def test_equal_signs_only(self) -> None:
        (finding,) = _detect("text\n==\nmore")
        assert (finding.begin, finding.end) == (5, 7)
        assert _replacements(finding) == [""]
        assert finding.fixes[0].label == DELETE_LABEL

    def test_text_after_closing_run(self) -> None:
        (finding,) = _detect("== A == b")
        assert "== A ==\nb" in _replacements(finding)
        assert "== A ==" in _replacements(finding)


class TestTrailingContent:
    def test_reference_after_heading(self) -> None:
        (finding,) = _detect("== A ==<ref>x</ref>\n")
        assert (finding.begin, finding.end) == (0, 19)
        assert _replacements(finding) == [
            "== A ==\n<ref>x</ref>",
            "== A <ref>x</ref>==",
        ]

    def test_comment_after_heading_is_fine(self) -> None:
        assert _detect("== A == <!-- note -->\n") == []


class TestIgnored:
    def test_balanced_headings(self) -> None:
        assert _detect("== A ==\ntext\n=== B ===\n") == []

    def test_inside_excluded_tag(self) -> None:
        assert _detect("<pre>\n===A==\n</pre>") == []
        assert _detect("<math>\n===A==\n</math>") == []

    @pytest.mark.parametrize("tag", ["timeline", "hiero", "graph", "templatedata"])
    def test_inside_verbatim_tag(self, tag: str) -> None:
        assert _detect(f"<{tag}>\n== X ==\n</{tag}>") == []
        assert _detect(f"<{tag}>\n===X==\n</{tag}>") == []

    def test_inside_comment(self) -> None:
        assert _detect("<!--\n===A==\n-->") == []

    def test_equal_sign_not_at_line_start(self) -> None:
        assert _detect("a == b\n") == []


def test_fast_path() -> None:
    detector = HeadingCloseDetector()
    assert detector.detect(DocumentAnalysis("x\n===A==\n"), None)
    assert not detector.detect(DocumentAnalysis("== A ==\n"), None)


def test_no_automatic_rewrite() -> None:
    analysis = DocumentAnalysis("===Title==\n")
    assert HeadingCloseDetector().auto_rewrite(analysis) == analysis.text
