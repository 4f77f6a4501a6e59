"""Tests for the UNC unclosed/padded tag detector."""
from __future__ import annotations

from wikicheck.analysis import DocumentAnalysis
from wikicheck.detector import DetectorConfig
from wikicheck.detectors.unclosed_tags import UnclosedTagsDetector, rebuild_tag
from wikicheck.findings import Finding, FindingSink
from wikicheck.tag_index import build_tag_index


def _detect(
    text: str, detector: UnclosedTagsDetector | None = None, only_automatic: bool = False,
) -> list[Finding]:
    sink = FindingSink()
    (detector or UnclosedTagsDetector()).detect(DocumentAnalysis(text), sink, only_automatic)
    return list(sink.sorted())


def test_rebuild_tag() -> None:
    opener, closer = build_tag_index("< small>x</ small >").all()
    assert rebuild_tag("< small>", opener) == "<small>"
    assert rebuild_tag("</ small >", closer) == "</small>"


class TestUnclosed:
    def test_open_tag_never_closed(self) -> None:
        (finding,) = _detect("a<small>b")
        assert (finding.begin, finding.end, finding.severity) == (1, 8, "error")
        assert [f.replacement for f in finding.fixes] == [""]
        assert finding.automatic_fix is None

    def test_closed_tag_is_fine(self) -> None:
        assert _detect("<small>b</small>") == []

    def test_tags_outside_the_list_ignored(self) -> None:
        assert _detect("<b>x") == []
        detector = UnclosedTagsDetector(DetectorConfig("UNC", {"tags": "b"}))
        assert len(_detect("<b>x", detector)) == 1

    def test_inside_nowiki_ignored(self) -> None:
        assert _detect("<nowiki><small></nowiki>") == []


class TestPadded:
    def test_space_after_bracket(self) -> None:
        (finding,) = _detect("< small>b</small>")
        assert (finding.begin, finding.end, finding.severity) == (0, 8, "warning")
        assert finding.fixes[0].replacement == "<small>"
        assert finding.automatic_fix is not None

    def test_padded_close_tag(self) -> None:
        (finding,) = _detect("<small>b</ small >")
        assert (finding.begin, finding.end) == (8, 18)
        assert finding.fixes[0].replacement == "</small>"

    def test_padded_tag_with_attributes_not_automatic(self) -> None:
        (finding,) = _detect('< span style="x">b</span>', UnclosedTagsDetector(
            DetectorConfig("UNC", {"tags": "span"}),
        ))
        assert finding.automatic_fix is None


class TestAutomaticScope:
    def test_only_automatic_skips_unclosed(self) -> None:
        findings = _detect("a<small>b < sup>c</sup>", only_automatic=True)
        assert [(f.begin, f.severity) for f in findings] == [(10, "warning")]

    def test_auto_rewrite(self) -> None:
        analysis = DocumentAnalysis("< small>b</ small > <small>open")
        assert UnclosedTagsDetector().auto_rewrite(analysis) == "<small>b</small> <small>open"

    def test_fast_path(self) -> None:
        assert UnclosedTagsDetector().detect(DocumentAnalysis("<sup>x"), None)
        assert not UnclosedTagsDetector().detect(DocumentAnalysis("<sup>x</sup>"), None)
