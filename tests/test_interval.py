"""Tests for wikicheck.interval: ranges, crossing resolution, ElementIndex."""
from __future__ import annotations

import pytest

from wikicheck.interval import ElementIndex, Interval, drop_crossing


class TestInterval:
    def test_rejects_negative_begin(self) -> None:
        with pytest.raises(ValueError, match="begin"):
            Interval(-1, 2)

    def test_rejects_end_before_begin(self) -> None:
        with pytest.raises(ValueError, match="end"):
            Interval(3, 1)

    def test_empty_interval_allowed(self) -> None:
        assert Interval(4, 4).length == 0

    def test_contains_is_half_open(self) -> None:
        iv = Interval(2, 5)
        assert iv.contains(2)
        assert iv.contains(4)
        assert not iv.contains(5)
        assert not iv.strictly_contains(2)

    def test_overlaps(self) -> None:
        assert Interval(0, 4).overlaps(Interval(3, 5))
        assert not Interval(0, 3).overlaps(Interval(3, 5))

    def test_encloses_and_crosses(self) -> None:
        outer, inner = Interval(0, 6), Interval(2, 4)
        assert outer.encloses(inner)
        assert not inner.encloses(outer)
        assert not outer.crosses(inner)
        assert Interval(0, 4).crosses(Interval(2, 6))

    def test_ordering_by_begin_then_end(self) -> None:
        ivs = [Interval(3, 4), Interval(1, 9), Interval(1, 2)]
        assert sorted(ivs) == [Interval(1, 2), Interval(1, 9), Interval(3, 4)]

    def test_text(self) -> None:
        assert Interval(2, 5).text("abcdefg") == "cde"


class TestDropCrossing:
    def test_outer_earlier_element_wins(self) -> None:
        kept = drop_crossing([Interval(0, 10), Interval(5, 15), Interval(2, 4)])
        assert kept == [Interval(0, 10), Interval(2, 4)]

    def test_disjoint_elements_all_kept(self) -> None:
        ivs = [Interval(6, 8), Interval(0, 2), Interval(3, 5)]
        assert drop_crossing(ivs) == [Interval(0, 2), Interval(3, 5), Interval(6, 8)]


@pytest.fixture()
def index() -> ElementIndex[Interval]:
    return ElementIndex([
        Interval(10, 12), Interval(3, 5), Interval(0, 20), Interval(2, 8),
    ])


class TestElementIndex:
    def test_document_order(self, index: ElementIndex[Interval]) -> None:
        assert index.all() == (
            Interval(0, 20), Interval(2, 8), Interval(3, 5), Interval(10, 12),
        )
        assert len(index) == 4

    def test_at_returns_innermost(self, index: ElementIndex[Interval]) -> None:
        assert index.at(4) == Interval(3, 5)
        assert index.at(6) == Interval(2, 8)
        assert index.at(9) == Interval(0, 20)
        assert index.at(11) == Interval(10, 12)

    def test_at_outside_everything(self, index: ElementIndex[Interval]) -> None:
        assert index.at(20) is None
        assert index.at(25) is None

    def test_enclosing_is_strict(self, index: ElementIndex[Interval]) -> None:
        assert index.enclosing(3) == Interval(2, 8)
        assert index.enclosing(0) is None

    def test_covering_outermost_first(self, index: ElementIndex[Interval]) -> None:
        assert index.covering(4) == (Interval(0, 20), Interval(2, 8), Interval(3, 5))
        assert index.covering(30) == ()

    def test_boundary_lookups(self, index: ElementIndex[Interval]) -> None:
        assert index.begins_at(2) == Interval(2, 8)
        assert index.begins_at(1) is None
        assert index.ends_at(5) == Interval(3, 5)
        assert index.ends_at(6) is None

    def test_between(self, index: ElementIndex[Interval]) -> None:
        assert index.between(1, 9) == (Interval(2, 8), Interval(3, 5))

    def test_empty_index_is_falsy(self) -> None:
        empty: ElementIndex[Interval] = ElementIndex([])
        assert not empty
        assert empty.at(0) is None

    def test_custom_span(self) -> None:
        spans = {Interval(5, 6): (0, 10), Interval(1, 2): (1, 3)}
        idx = ElementIndex(spans, span=lambda e: spans[e])
        assert idx.at(7) == Interval(5, 6)
        assert idx.at(2) == Interval(1, 2)
        assert idx.span(0) == (0, 10)
