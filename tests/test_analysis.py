"""Tests for DocumentAnalysis: lazy indices, snapshots and composite queries."""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from wikicheck.analysis import NS_MAIN, NS_TALK, NS_USER, DocumentAnalysis, PageMetadata
from wikicheck.interval import Interval


class TestPageMetadata:
    def test_namespaces(self) -> None:
        assert PageMetadata("A").is_main_namespace
        assert PageMetadata("Talk:A", NS_TALK).is_talk_page
        assert not PageMetadata("User:A", NS_USER).is_talk_page
        assert not PageMetadata("User:A", NS_USER).is_main_namespace


class TestSnapshot:
    def test_rejects_non_text(self) -> None:
        with pytest.raises(TypeError, match="str"):
            DocumentAnalysis(b"bytes")  # type: ignore[arg-type]

    def test_indices_built_lazily(self) -> None:
        analysis = DocumentAnalysis("x")
        assert analysis.built_families() == ()
        analysis.titles()
        assert analysis.built_families() == ("comment", "tag", "title")

    def test_indices_cached(self) -> None:
        analysis = DocumentAnalysis("== A ==\n")
        assert analysis.titles() is analysis.titles()

    def test_with_text_leaves_original(self) -> None:
        original = DocumentAnalysis("[[A]]", PageMetadata("Page", NS_MAIN))
        assert len(original.internal_links()) == 1
        edited = original.with_text("no links")
        assert edited is not original
        assert edited.internal_links() == ()
        assert original.text == "[[A]]"
        assert len(original.internal_links()) == 1
        assert edited.page_title == "Page"

    def test_substring(self) -> None:
        assert DocumentAnalysis("abcdef").substring(Interval(1, 3)) == "bc"

    def test_concurrent_first_access_builds_once(self) -> None:
        analysis = DocumentAnalysis("== A ==\n[[B]] {{C}}\n" * 50)
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: analysis.titles(), range(16)))
        assert all(r is results[0] for r in results)
        assert len(results[0]) == 50


class TestGenericQueries:
    def test_element_at_and_enclosing(self) -> None:
        analysis = DocumentAnalysis("a<b>x</b> [[L]]")
        tag = analysis.element_at("tag", 2)
        assert tag is not None and tag.tag_type == "b"
        link = analysis.enclosing_of("internal", 12)
        assert link is not None and link.target == "L"

    def test_unknown_family(self) -> None:
        with pytest.raises(ValueError, match="unknown construct family"):
            DocumentAnalysis("x").elements_of("bogus")  # type: ignore[arg-type]


class TestCompositeQueries:
    def test_surrounding_tag(self) -> None:
        analysis = DocumentAnalysis("a<ref>b</ref>")
        ref = analysis.surrounding_tag("ref", 6)
        assert ref is not None and ref.begin == 1
        assert analysis.surrounding_tag("ref", 0) is None
        assert analysis.surrounding_any(("pre", "ref"), 6) is ref

    def test_complete_tags_excludes_close(self) -> None:
        analysis = DocumentAnalysis("<ref>a</ref><ref>b")
        refs = analysis.complete_tags("ref")
        assert [t.complete for t in refs] == [True, False]
        assert analysis.matching_tag(refs[0]) is not None

    def test_is_in_verbatim(self) -> None:
        analysis = DocumentAnalysis("<nowiki>x</nowiki> y")
        assert analysis.is_in_verbatim(8)
        assert not analysis.is_in_verbatim(0)
        assert not analysis.is_in_verbatim(20)
        assert not analysis.is_in_verbatim(8, ("pre",))

    def test_comment_queries(self) -> None:
        analysis = DocumentAnalysis("a<!-- b -->c")
        assert analysis.is_in_comment(3)
        assert not analysis.is_in_comment(11)
        comment = analysis.comment_at(3)
        assert comment is not None and comment.complete

    def test_titles_reliable(self) -> None:
        assert DocumentAnalysis("== A ==\n").titles_reliable()
        assert not DocumentAnalysis("<!-- x\n== A ==\n").titles_reliable()
        assert not DocumentAnalysis("<pre>\n== A ==\n").titles_reliable()
