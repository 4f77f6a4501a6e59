"""Tests for the 558 duplicate reference detector."""
from __future__ import annotations

from wikicheck.analysis import NS_USER, DocumentAnalysis, PageMetadata
from wikicheck.detector import DetectorConfig
from wikicheck.detectors.duplicate_reference import DuplicateReferenceDetector
from wikicheck.findings import Finding, FindingSink


def _detector(**params: str) -> DuplicateReferenceDetector:
    return DuplicateReferenceDetector(DetectorConfig("558", params))


def _detect(text: str, detector: DuplicateReferenceDetector | None = None) -> list[Finding]:
    sink = FindingSink()
    (detector or _detector()).detect(DocumentAnalysis(text), sink)
    return list(sink.sorted())


class TestIdentical:
    def test_adjacent_identical_refs(self) -> None:
        (finding,) = _detect("Text<ref>A</ref><ref>A</ref>.")
        assert (finding.begin, finding.end) == (4, 28)
        assert finding.fixes[0].replacement == "<ref>A</ref>"
        assert finding.automatic_fix is not None

    def test_punctuation_between(self) -> None:
        (finding,) = _detect("<ref>A</ref>, <ref>A</ref>")
        assert finding.fixes[0].replacement == "<ref>A</ref>"

    def test_text_between_breaks_group(self) -> None:
        assert _detect("<ref>A</ref> and <ref>A</ref>") == []

    def test_italics_between_not_automatic(self) -> None:
        (finding,) = _detect("<ref>A</ref>''<ref>A</ref>")
        assert finding.automatic_fix is None

    def test_small_tags_are_separators(self) -> None:
        assert len(_detect("<ref>A</ref><small>,</small><ref>A</ref>")) == 1

    def test_configured_separator(self) -> None:
        text = "<ref>A</ref>{{,}}<ref>A</ref>"
        assert _detect(text) == []
        assert len(_detect(text, _detector(separator="{{,}}"))) == 1

    def test_reference_templates(self) -> None:
        text = "{{sfn|X|2000}}{{sfn|X|2000}}"
        assert _detect(text) == []
        (finding,) = _detect(text, _detector(templates="sfn"))
        assert (finding.begin, finding.end) == (0, 28)


class TestNamed:
    def test_full_tag_repeat(self) -> None:
        (finding,) = _detect('<ref name="n">A</ref><ref name="n" />')
        assert finding.fixes[0].replacement == '<ref name="n">A</ref>'
        assert finding.automatic_fix is not None

    def test_full_tag_first(self) -> None:
        (finding,) = _detect('<ref name="n" /><ref name="n">A</ref>')
        assert finding.fixes[0].replacement == '<ref name="n">A</ref>'

    def test_different_groups(self) -> None:
        assert _detect('<ref name="n" group="a">A</ref><ref name="n">B</ref>') == []

    def test_same_name_different_content_has_no_fix(self) -> None:
        (finding,) = _detect('<ref name="a">x</ref><ref name="a">y</ref>')
        assert finding.fixes == []


class TestNormalizedContent:
    def test_runs_of_spaces_ignored(self) -> None:
        (finding,) = _detect("<ref>A  b</ref><ref>A b</ref>")
        assert finding.fixes[0].replacement == "<ref>A  b</ref>"
        assert finding.automatic_fix is not None

    def test_different_content(self) -> None:
        assert _detect("<ref>A</ref><ref>B</ref>") == []


class TestRewrite:
    def test_auto_rewrite(self) -> None:
        analysis = DocumentAnalysis("Text<ref>A</ref><ref>A</ref>.")
        assert _detector().auto_rewrite(analysis) == "Text<ref>A</ref>."

    def test_rewrite_only_in_articles(self) -> None:
        analysis = DocumentAnalysis(
            "Text<ref>A</ref><ref>A</ref>.", PageMetadata("User:A", NS_USER),
        )
        assert _detector().auto_rewrite(analysis) == analysis.text

    def test_fast_path(self) -> None:
        assert _detector().detect(DocumentAnalysis("<ref>A</ref><ref>A</ref>"), None)
        assert not _detector().detect(DocumentAnalysis("<ref>A</ref>"), None)
