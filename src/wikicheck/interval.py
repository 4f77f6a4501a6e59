"""Half-open text intervals and the positional index shared by every family.

All offsets are global char positions in the document text. Every structural
element is an ``Interval`` subclass, so containment and ordering logic lives
here and nowhere else.

``ElementIndex`` keeps elements in document order (ancestors before
descendants) with a parent table computed in one stack pass, so that
"innermost element containing offset X" is a bisect plus a short walk up the
nesting chain instead of a linear scan.
"""
from __future__ import annotations

from bisect import bisect_left, bisect_right
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass


@dataclass(frozen=True, slots=True, order=True)
class Interval:
    """Half-open ``[begin, end)`` range of text.

    Invariants (enforced in __post_init__):
        - begin >= 0
        - end >= begin
    """

    begin: int
    end: int

    def __post_init__(self) -> None:
        if self.begin < 0:
            raise ValueError(f"Interval.begin must be >= 0, got {self.begin}")
        if self.end < self.begin:
            raise ValueError(
                f"Interval.end ({self.end}) must be >= begin ({self.begin})"
            )

    @property
    def length(self) -> int:
        return self.end - self.begin

    @property
    def interval(self) -> Interval:
        """Plain range of this element, without construct-specific fields."""
        return Interval(self.begin, self.end)

    def contains(self, offset: int) -> bool:
        return self.begin <= offset < self.end

    def strictly_contains(self, offset: int) -> bool:
        return self.begin < offset < self.end

    def encloses(self, other: Interval) -> bool:
        return self.begin <= other.begin and other.end <= self.end

    def overlaps(self, other: Interval) -> bool:
        return self.begin < other.end and other.begin < self.end

    def crosses(self, other: Interval) -> bool:
        """True when the two ranges partially overlap (neither encloses the other)."""
        return (
            self.overlaps(other)
            and not self.encloses(other)
            and not other.encloses(self)
        )

    def text(self, contents: str) -> str:
        return contents[self.begin:self.end]


def span_of(element: Interval) -> tuple[int, int]:
    """Default span accessor for ``ElementIndex``."""
    return element.begin, element.end


def document_order_key(element: Interval) -> tuple[int, int]:
    """Sort key placing enclosing elements before the elements they contain."""
    return element.begin, -element.end


def drop_crossing[T: Interval](elements: Iterable[T]) -> list[T]:
    """Keep elements in document order, discarding any that crosses a kept one.

    The earlier (outer) candidate wins, which is the nearest-valid-pairing
    rule used by every scanner.
    """
    kept: list[T] = []
    stack: list[T] = []
    for element in sorted(elements, key=document_order_key):
        while stack and stack[-1].end <= element.begin:
            stack.pop()
        if stack and element.end > stack[-1].end:
            continue
        kept.append(element)
        stack.append(element)
    return kept


class ElementIndex[T: Interval]:
    """Read-only positional index over one construct family.

    ``span`` selects which range of an element is indexed. Tags use it to
    index their complete ``<x>...</x>`` range in the pair index while the
    plain tag index uses the tag's own ``<x>`` range.
    """

    __slots__ = ("_elements", "_spans", "_begins", "_parents", "_by_end")

    def __init__(
        self,
        elements: Iterable[T],
        *,
        span: Callable[[T], tuple[int, int]] = span_of,
    ) -> None:
        decorated = sorted(
            ((span(e), e) for e in elements),
            key=lambda pair: (pair[0][0], -pair[0][1]),
        )
        self._elements: tuple[T, ...] = tuple(e for _, e in decorated)
        self._spans: tuple[tuple[int, int], ...] = tuple(s for s, _ in decorated)
        self._begins: list[int] = [s[0] for s in self._spans]
        self._parents: list[int] = self._compute_parents()
        self._by_end: dict[int, int] = {}
        for i, (_, end) in enumerate(self._spans):
            self._by_end.setdefault(end, i)

    def _compute_parents(self) -> list[int]:
        parents: list[int] = []
        stack: list[int] = []
        for i, (begin, end) in enumerate(self._spans):
            while stack:
                top_begin, top_end = self._spans[stack[-1]]
                if top_begin <= begin and end <= top_end:
                    break
                stack.pop()
            parents.append(stack[-1] if stack else -1)
            stack.append(i)
        return parents

    def __len__(self) -> int:
        return len(self._elements)

    def __iter__(self) -> Iterator[T]:
        return iter(self._elements)

    def __bool__(self) -> bool:
        return bool(self._elements)

    def all(self) -> tuple[T, ...]:
        return self._elements

    def span(self, element_index: int) -> tuple[int, int]:
        return self._spans[element_index]

    def _chain(self, offset: int) -> Iterator[int]:
        """Yield candidate indices from the innermost outwards."""
        i = bisect_right(self._begins, offset) - 1
        while i >= 0:
            yield i
            i = self._parents[i]

    def at(self, offset: int) -> T | None:
        """Innermost element whose span contains ``offset`` (half-open)."""
        for i in self._chain(offset):
            begin, end = self._spans[i]
            if begin <= offset < end:
                return self._elements[i]
        return None

    def enclosing(self, offset: int) -> T | None:
        """Nearest ancestor whose span strictly contains ``offset``."""
        for i in self._chain(offset):
            begin, end = self._spans[i]
            if begin < offset < end:
                return self._elements[i]
        return None

    def covering(self, offset: int) -> tuple[T, ...]:
        """Every element containing ``offset``, outermost first."""
        found = [
            self._elements[i]
            for i in self._chain(offset)
            if self._spans[i][0] <= offset < self._spans[i][1]
        ]
        found.reverse()
        return tuple(found)

    def begins_at(self, offset: int) -> T | None:
        i = bisect_left(self._begins, offset)
        if i < len(self._begins) and self._begins[i] == offset:
            return self._elements[i]
        return None

    def ends_at(self, offset: int) -> T | None:
        i = self._by_end.get(offset)
        return self._elements[i] if i is not None else None

    def between(self, begin: int, end: int) -> tuple[T, ...]:
        """Elements whose span lies entirely inside ``[begin, end)``."""
        lo = bisect_left(self._begins, begin)
        hi = bisect_left(self._begins, end)
        return tuple(
            self._elements[i]
            for i in range(lo, hi)
            if self._spans[i][1] <= end
        )
