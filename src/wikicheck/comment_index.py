"""Comment scanner: ``<!-- ... -->`` blocks.

Comments are the root family: they are found without consulting any other
index, and every other scanner skips over them.
"""
from __future__ import annotations

from wikicheck.elements import Comment
from wikicheck.interval import ElementIndex

COMMENT_OPEN = "<!--"
COMMENT_CLOSE = "-->"


def scan_comments(text: str) -> list[Comment]:
    """Find every comment in one left-to-right pass.

    An unterminated comment extends to end of text and is marked
    ``complete=False``.
    """
    comments: list[Comment] = []
    pos = text.find(COMMENT_OPEN)
    while pos >= 0:
        close = text.find(COMMENT_CLOSE, pos + len(COMMENT_OPEN))
        if close < 0:
            comments.append(Comment(pos, len(text), complete=False))
            break
        end = close + len(COMMENT_CLOSE)
        comments.append(Comment(pos, end))
        pos = text.find(COMMENT_OPEN, end)
    return comments


def build_comment_index(text: str) -> ElementIndex[Comment]:
    return ElementIndex(scan_comments(text))
