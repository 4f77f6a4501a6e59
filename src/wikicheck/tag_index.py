"""Tag scanner: open, close and self-closing tags, paired by a stack walk.

3-phase approach:
    1. Find every ``<name ...>`` / ``</name>`` / ``<name />`` occurrence of a
       known tag name outside comments. Content of verbatim tags (nowiki,
       pre, math, ...) is skipped up to the matching close tag.
    2. Pair open and close tags with a stack. A close tag pairs with the
       nearest open tag of the same name; open tags left above it on the
       stack are implicitly closed and stay incomplete. Tags that never nest
       (``ref``) mark a still-open sibling incomplete when a new one opens.
    3. Freeze every tag with its pairing (``match_index``), completeness and
       complete/value ranges.

Unknown tag names are left as plain text.
"""
from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from wikicheck.elements import (
    VERBATIM_TAGS,
    VOID_TAGS,
    Comment,
    Tag,
    TagParameter,
    TagRole,
    tag_type_for,
)
from wikicheck.interval import ElementIndex, Interval

# A tag name must be followed by whitespace, "/" or ">" so that "<brx" is
# not read as "<br".
_TAG_RE = re.compile(
    r"<(?P<lead>\s*)(?P<close>/?)\s*(?P<name>[A-Za-z][A-Za-z0-9]*)(?=[\s/>])"
    r"(?P<attrs>[^<>]*?)(?P<full>/?)\s*>",
)

_ATTRIBUTE_RE = re.compile(
    r"(?P<name>[^\s=/>\"']+)"
    r"(?:\s*=\s*(?:\"(?P<dq>[^\"]*)\"|'(?P<sq>[^']*)'|(?P<bare>(?:[^\s>/]|/(?!\s*$))*)))?",
)

# Tags that never nest: opening one while another is open means the
# previous one was never closed.
NON_NESTING_TAGS: frozenset[str] = frozenset({"ref", "references", "gallery", "p"})


@dataclass(slots=True)
class _RawTag:
    """Mutable tag used during pairing (frozen into ``Tag`` at the end)."""

    begin: int
    end: int
    name: str
    role: TagRole
    parameters: tuple[TagParameter, ...]
    match_index: int = -1
    complete: bool = False


def parse_attributes(attrs: str, base: int) -> tuple[TagParameter, ...]:
    """Parse ``name="value"`` pairs; offsets are global (``base`` + local)."""
    params: list[TagParameter] = []
    for m in _ATTRIBUTE_RE.finditer(attrs):
        name = m.group("name")
        name_interval = Interval(base + m.start("name"), base + m.end("name"))
        value: str | None = None
        value_interval: Interval | None = None
        for group in ("dq", "sq", "bare"):
            if m.group(group) is not None:
                value = m.group(group)
                value_interval = Interval(base + m.start(group), base + m.end(group))
                break
        params.append(TagParameter(name, value, name_interval, value_interval))
    return tuple(params)


def _skip_comment(comments: ElementIndex[Comment] | None, pos: int) -> int:
    if comments is None:
        return pos
    comment = comments.begins_at(pos)
    return comment.end if comment is not None else pos


def _find_verbatim_close(text: str, name: str, start: int) -> re.Match[str] | None:
    pattern = re.compile(r"<\s*/\s*" + re.escape(name) + r"\s*>", re.IGNORECASE)
    return pattern.search(text, start)


def scan_raw_tags(
    text: str, comments: ElementIndex[Comment] | None = None,
) -> list[_RawTag]:
    """Phase 1: find tag occurrences in document order."""
    raw: list[_RawTag] = []
    pos = text.find("<")
    while pos >= 0:
        skipped = _skip_comment(comments, pos)
        if skipped != pos:
            pos = text.find("<", skipped)
            continue
        m = _TAG_RE.match(text, pos)
        tag_type = tag_type_for(m.group("name")) if m else None
        if m is None or tag_type is None:
            pos = text.find("<", pos + 1)
            continue
        if m.group("close"):
            role: TagRole = "close"
            params: tuple[TagParameter, ...] = ()
        else:
            role = "full" if m.group("full") else "open"
            params = parse_attributes(m.group("attrs"), m.start("attrs"))
        raw.append(_RawTag(m.start(), m.end(), tag_type, role, params))
        next_pos = m.end()
        if role == "open" and tag_type in VERBATIM_TAGS:
            close = _find_verbatim_close(text, tag_type, m.end())
            if close is not None:
                raw.append(_RawTag(close.start(), close.end(), tag_type, "close", ()))
                next_pos = close.end()
        pos = text.find("<", next_pos)
    return raw


def pair_tags(raw: list[_RawTag]) -> None:
    """Phase 2: stack discipline pairing, in place."""
    stack: list[int] = []
    for i, tag in enumerate(raw):
        if tag.role == "full":
            tag.complete = True
            continue
        if tag.role == "open":
            if tag.name in VOID_TAGS:
                tag.complete = True
                continue
            if tag.name in NON_NESTING_TAGS:
                for j in range(len(stack) - 1, -1, -1):
                    if raw[stack[j]].name == tag.name:
                        del stack[j:]
                        break
            stack.append(i)
            continue
        # close tag: nearest open of the same name
        for j in range(len(stack) - 1, -1, -1):
            opener = raw[stack[j]]
            if opener.name == tag.name:
                opener.match_index = i
                opener.complete = True
                tag.match_index = stack[j]
                tag.complete = True
                del stack[j:]
                break


def _freeze(raw: list[_RawTag]) -> list[Tag]:
    """Phase 3: build frozen tags with complete/value ranges."""
    tags: list[Tag] = []
    for tag in raw:
        complete_begin, complete_end = tag.begin, tag.end
        value_begin = value_end = tag.end
        if tag.match_index >= 0:
            other = raw[tag.match_index]
            opener, closer = (tag, other) if tag.role == "open" else (other, tag)
            complete_begin, complete_end = opener.begin, closer.end
            value_begin, value_end = opener.end, closer.begin
        tags.append(Tag(
            tag.begin, tag.end,
            name=tag.name,
            tag_type=tag.name,
            role=tag.role,
            parameters=tag.parameters,
            match_index=tag.match_index,
            complete=tag.complete,
            complete_begin=complete_begin,
            complete_end=complete_end,
            value_begin=value_begin,
            value_end=value_end,
        ))
    return tags


def _complete_span(tag: Tag) -> tuple[int, int]:
    return tag.complete_begin, tag.complete_end


class TagIndex:
    """All tags of a document plus an index of their complete ranges."""

    __slots__ = ("tags", "pairs", "_by_type")

    def __init__(self, tags: Iterable[Tag]) -> None:
        self.tags: ElementIndex[Tag] = ElementIndex(tags)
        # Opening and full tags, indexed by their whole <x>...</x> range.
        self.pairs: ElementIndex[Tag] = ElementIndex(
            (t for t in self.tags if t.role != "close" and t.complete),
            span=_complete_span,
        )
        by_type: dict[str, list[Tag]] = {}
        for tag in self.tags:
            if tag.tag_type is not None:
                by_type.setdefault(tag.tag_type, []).append(tag)
        self._by_type = {k: tuple(v) for k, v in by_type.items()}

    def all(self) -> tuple[Tag, ...]:
        return self.tags.all()

    def of_type(self, tag_type: str) -> tuple[Tag, ...]:
        return self._by_type.get(tag_type, ())

    def matching(self, tag: Tag) -> Tag | None:
        if tag.match_index < 0:
            return None
        return self.tags.all()[tag.match_index]

    def surrounding(self, tag_type: str, offset: int) -> Tag | None:
        """Nearest complete tag of ``tag_type`` whose whole range contains offset."""
        for tag in reversed(self.pairs.covering(offset)):
            if tag.tag_type == tag_type:
                return tag
        return None


def build_tag_index(
    text: str, comments: ElementIndex[Comment] | None = None,
) -> TagIndex:
    raw = scan_raw_tags(text, comments)
    pair_tags(raw)
    return TagIndex(_freeze(raw))
