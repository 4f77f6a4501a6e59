"""Tests for Finding, Fix and FindingSink."""
from __future__ import annotations

import pytest

from wikicheck.findings import DELETE_LABEL, Finding, FindingSink, sort_findings
from wikicheck.interval import Interval


def _finding(begin: int = 0, end: int = 3, category: str = "T") -> Finding:
    return Finding(category, Interval(begin, end))


class TestFixes:
    def test_add_fix_trims_and_labels(self) -> None:
        finding = _finding().add_fix("  abc \n")
        (fix,) = finding.fixes
        assert fix.replacement == "abc"
        assert fix.label == "Replace with abc"
        assert not fix.automatic

    def test_empty_replacement_is_delete(self) -> None:
        (fix,) = _finding().add_fix("   ").fixes
        assert fix.replacement == ""
        assert fix.label == DELETE_LABEL

    def test_duplicate_replacements_ignored(self) -> None:
        finding = _finding().add_fix("a", automatic=True).add_fix(" a")
        assert len(finding.fixes) == 1
        assert finding.fixes[0].automatic

    def test_custom_label(self) -> None:
        (fix,) = _finding().add_fix("x", label="Trim text").fixes
        assert fix.label == "Trim text"

    def test_automatic_fix_is_first_fix_only(self) -> None:
        finding = _finding().add_fix("a").add_fix("b", automatic=True)
        assert finding.primary_fix is not None
        assert finding.primary_fix.replacement == "a"
        assert finding.automatic_fix is None

        auto = _finding().add_fix("a", automatic=True)
        assert auto.automatic_fix is auto.fixes[0]

    def test_no_fixes(self) -> None:
        assert _finding().primary_fix is None
        assert _finding().automatic_fix is None


class TestFinding:
    def test_default_severity_is_error(self) -> None:
        assert _finding().severity == "error"

    def test_unknown_severity_rejected(self) -> None:
        with pytest.raises(ValueError, match="severity"):
            Finding("T", Interval(0, 1), "fatal")  # type: ignore[arg-type]

    def test_texts_deduplicated(self) -> None:
        finding = _finding().add_text("x").add_text("y").add_text("x")
        assert finding.texts == ["x", "y"]

    def test_with_severity_copies(self) -> None:
        original = _finding().add_fix("a").add_text("t")
        changed = original.with_severity("warning")
        assert changed.severity == "warning"
        assert original.severity == "error"
        assert changed.fixes == original.fixes
        assert changed.texts == ["t"]
        changed.add_fix("b")
        assert len(original.fixes) == 1

    def test_as_record(self) -> None:
        record = _finding(2, 5, "056").add_fix("→", automatic=True).as_record()
        assert record == {
            "category": "056",
            "begin": 2,
            "end": 5,
            "severity": "error",
            "fixes": [{"replacement": "→", "label": "Replace with →", "automatic": True}],
            "texts": [],
        }


class TestOrdering:
    def test_sort_by_range_then_category(self) -> None:
        findings = [_finding(5, 6, "A"), _finding(0, 4, "B"), _finding(0, 4, "A"), _finding(0, 2)]
        ordered = sort_findings(findings)
        assert [(f.begin, f.end, f.category) for f in ordered] == [
            (0, 2, "T"), (0, 4, "A"), (0, 4, "B"), (5, 6, "A"),
        ]

    def test_sink(self) -> None:
        sink = FindingSink()
        late = sink.add(_finding(4, 5))
        early = sink.add(_finding(0, 1))
        assert len(sink) == 2
        assert list(sink) == [late, early]
        assert sink.sorted() == (early, late)
