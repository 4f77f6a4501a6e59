"""Section title scanner: ``== Heading ==`` lines.

A title is a line whose first non-comment character is ``=``. The opening
run length and the closing run length are recorded separately since a
mismatch between them is itself a defect class. Only whitespace, comments
and complete ``ref`` tags may follow the closing run; anything else means the
line is not a title.
"""
from __future__ import annotations

from collections.abc import Callable

from wikicheck.elements import Comment, Title
from wikicheck.interval import ElementIndex, Interval
from wikicheck.tag_index import TagIndex
from wikicheck.text_utils import line_end, run_length


def _skip_leading_comments(
    text: str, pos: int, comments: ElementIndex[Comment] | None,
) -> int:
    while comments is not None and pos < len(text) and text[pos] == "<":
        comment = comments.begins_at(pos)
        if comment is None:
            break
        pos = comment.end
    return pos


def analyze_title(
    text: str,
    begin: int,
    comments: ElementIndex[Comment] | None = None,
    tags: TagIndex | None = None,
) -> Title | None:
    """Parse the heading starting at ``begin`` (which holds ``=``), or None."""
    first_level = run_length(text, begin, "=")
    pos = begin + first_level
    if pos >= len(text) or first_level == 0:
        return None
    title_begin = pos
    end_found = False
    jumped = False
    second_level = 0
    last_equal = pos
    title_end = pos
    while pos < len(text) and text[pos] != "\n":
        ch = text[pos]
        next_pos = pos + 1
        if ch.isspace():
            pass
        elif ch == "=":
            if not end_found:
                title_end = pos
                end_found = True
                second_level = 0
            second_level += 1
            last_equal = pos
        elif ch == "<":
            comment = comments.begins_at(pos) if comments is not None else None
            ref = None
            if comment is None and tags is not None:
                tag = tags.tags.begins_at(pos)
                if tag is not None and tag.tag_type == "ref" and tag.complete and tag.role != "close":
                    ref = tag
            if comment is not None:
                next_pos = comment.end
                jumped = True
            elif ref is not None:
                next_pos = ref.complete_end
                jumped = True
            else:
                end_found = False
        else:
            end_found = False
        pos = next_pos
    if not end_found:
        return None
    end = pos
    multiline = jumped and "\n" in text[begin:end]
    while end > begin and text[end - 1] in " \t":
        end -= 1
    after_begin = min(last_equal + 1, end)
    return Title(
        begin, end,
        first_level=first_level,
        second_level=second_level,
        title=text[title_begin:title_end].strip(),
        title_interval=Interval(title_begin, title_end),
        after_interval=Interval(after_begin, end),
        multiline=multiline,
    )


def scan_titles(
    text: str,
    comments: ElementIndex[Comment] | None = None,
    tags: TagIndex | None = None,
    is_excluded: Callable[[int], bool] | None = None,
) -> list[Title]:
    """Find every title, one candidate per line."""
    titles: list[Title] = []
    pos = 0
    while pos < len(text):
        start = _skip_leading_comments(text, pos, comments)
        next_line = line_end(text, start) + 1
        if start < len(text) and text[start] == "=":
            inside_comment = comments is not None and comments.at(start) is not None
            if not inside_comment and (is_excluded is None or not is_excluded(start)):
                title = analyze_title(text, start, comments, tags)
                if title is not None:
                    titles.append(title)
                    next_line = line_end(text, title.end) + 1
        pos = next_line
    return titles


def build_title_index(
    text: str,
    comments: ElementIndex[Comment] | None = None,
    tags: TagIndex | None = None,
    is_excluded: Callable[[int], bool] | None = None,
) -> ElementIndex[Title]:
    return ElementIndex(scan_titles(text, comments, tags, is_excluded))
