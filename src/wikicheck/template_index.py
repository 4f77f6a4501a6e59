"""Template scanner: ``{{Name|positional|named=value}}``.

Templates are found at every ``{{`` outside comments and verbatim tags, so
nested templates are indexed too. Parameter boundaries are computed with
bracket-depth counters (``{{``, ``{{{``, ``[[``) so that pipes inside nested
constructs do not split the outer template.
"""
from __future__ import annotations

from collections.abc import Callable

from wikicheck.elements import (
    VERBATIM_TAGS,
    Comment,
    Template,
    TemplateParameter,
    normalize_template_name,
)
from wikicheck.interval import ElementIndex, Interval, drop_crossing
from wikicheck.tag_index import TagIndex

# Characters that end a template name.
_NAME_STOP_CHARS = "{}[]|<>"

# Tags whose whole content is skipped when looking for parameter pipes.
_OPAQUE_TAGS: frozenset[str] = VERBATIM_TAGS | {"ref"}


class _Scanner:
    """Single-template parser bound to one document."""

    def __init__(
        self,
        text: str,
        comments: ElementIndex[Comment] | None,
        tags: TagIndex | None,
    ) -> None:
        self.text = text
        self.comments = comments
        self.tags = tags

    def _skip_blank_and_comments(self, pos: int) -> int | None:
        """Skip spaces, newlines and comments; None when a non-comment ``<`` is hit."""
        text = self.text
        moved = True
        while moved:
            moved = False
            while pos < len(text) and text[pos] in " \n":
                pos += 1
                moved = True
            if pos < len(text) and text[pos] == "<":
                comment = self.comments.begins_at(pos) if self.comments else None
                if comment is None:
                    return None
                pos = comment.end
                moved = True
        return pos

    def _limit(self, begin: int) -> int:
        """Templates that start inside a ref tag must end inside it."""
        if self.tags is None:
            return len(self.text)
        ref = self.tags.surrounding("ref", begin)
        return ref.complete_end if ref is not None else len(self.text)

    def parse(self, begin: int) -> Template | None:
        text = self.text
        pos = self._skip_blank_and_comments(begin + 2)
        if pos is None:
            return None
        name_begin = pos
        while pos < len(text) and text[pos] not in _NAME_STOP_CHARS:
            pos += 1
        if pos >= len(text):
            return None
        raw_name = text[name_begin:pos]
        name = normalize_template_name(raw_name)
        if not name:
            return None
        stripped = len(raw_name) - len(raw_name.lstrip())
        name_interval = Interval(
            name_begin + stripped, name_begin + len(raw_name.rstrip()),
        )
        pos = self._skip_blank_and_comments(pos)
        if pos is None or pos >= len(text):
            return None
        if text.startswith("}}", pos):
            return Template(begin, pos + 2, name=name, name_interval=name_interval)
        if text[pos] != "|":
            return None
        params: list[TemplateParameter] = []
        end = self._parse_parameters(begin, pos, params)
        if end < 0:
            return None
        return Template(
            begin, end, name=name, name_interval=name_interval,
            parameters=tuple(params),
        )

    def _skip_tag_or_comment(self, pos: int) -> int:
        if self.tags is not None:
            tag = self.tags.tags.begins_at(pos)
            if tag is not None:
                if tag.role == "open" and tag.tag_type in _OPAQUE_TAGS:
                    return max(tag.complete_end, tag.end)
                return tag.end
        if self.comments is not None:
            comment = self.comments.begins_at(pos)
            if comment is not None:
                return comment.end
        return pos + 1

    def _parse_parameters(
        self, template_begin: int, pipe: int, params: list[TemplateParameter],
    ) -> int:
        """Fill ``params`` and return the template end, or -1 when unterminated."""
        text = self.text
        limit = self._limit(template_begin)
        pos = pipe + 1
        param_begin = pos
        equal = -1
        depth2 = depth3 = square = 0
        while pos < limit:
            if text.startswith("{{{", pos):
                depth3 += 1
                pos += 3
            elif text.startswith("{{", pos):
                depth2 += 1
                pos += 2
            elif text.startswith("}}", pos):
                if depth3 > 0 and text.startswith("}}}", pos):
                    depth3 -= 1
                    pos += 3
                elif depth2 > 0:
                    depth2 -= 1
                    pos += 2
                else:
                    self._add_parameter(params, pipe, pos, param_begin, equal)
                    return pos + 2
            elif text.startswith("[[", pos):
                square += 1
                pos += 2
            elif text.startswith("]]", pos):
                if square == 0:
                    return -1
                square -= 1
                pos += 2
            elif text[pos] == "<":
                pos = self._skip_tag_or_comment(pos)
            elif depth2 == 0 and depth3 == 0 and square == 0 and text[pos] == "|":
                self._add_parameter(params, pipe, pos, param_begin, equal)
                pipe = pos
                pos += 1
                param_begin = pos
                equal = -1
            elif depth2 == 0 and depth3 == 0 and square == 0 and text[pos] == "=" and equal < 0:
                equal = pos
                pos += 1
            else:
                pos += 1
        return -1

    def _add_parameter(
        self,
        params: list[TemplateParameter],
        pipe: int,
        end: int,
        param_begin: int,
        equal: int,
    ) -> None:
        text = self.text
        name: str | None = None
        name_interval: Interval | None = None
        value_begin = param_begin
        if equal >= 0 and text[param_begin:equal].strip():
            name = text[param_begin:equal].strip()
            name_interval = Interval(param_begin, equal)
            value_begin = equal + 1
        if name is None:
            positional = sum(1 for p in params if p.name is None) + 1
            computed = str(positional)
        else:
            computed = name
        params.append(TemplateParameter(
            pipe, end,
            name=name,
            computed_name=computed,
            name_interval=name_interval,
            value=text[value_begin:end].strip(),
            value_interval=Interval(value_begin, end),
        ))


def scan_templates(
    text: str,
    comments: ElementIndex[Comment] | None = None,
    tags: TagIndex | None = None,
    is_verbatim: Callable[[int], bool] | None = None,
) -> list[Template]:
    scanner = _Scanner(text, comments, tags)
    found: list[Template] = []
    pos = text.find("{{")
    while pos >= 0:
        if text.startswith("{{{", pos):
            # template argument placeholder, not a transclusion
            pos = text.find("{{", pos + 3)
            continue
        comment = comments.at(pos) if comments is not None else None
        if comment is not None:
            pos = text.find("{{", comment.end)
            continue
        if is_verbatim is None or not is_verbatim(pos):
            template = scanner.parse(pos)
            if template is not None:
                found.append(template)
        pos = text.find("{{", pos + 2)
    return drop_crossing(found)


def build_template_index(
    text: str,
    comments: ElementIndex[Comment] | None = None,
    tags: TagIndex | None = None,
    is_verbatim: Callable[[int], bool] | None = None,
) -> ElementIndex[Template]:
    return ElementIndex(scan_templates(text, comments, tags, is_verbatim))
