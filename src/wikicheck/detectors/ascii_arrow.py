"""056: arrows drawn in ASCII art (``-->``, ``<==``, ...).

Arrow replacements always need review; only the ``<ref name=>`` close is
fixed automatically.
"""
from __future__ import annotations

import re

from wikicheck.analysis import DocumentAnalysis
from wikicheck.detector import Detector, apply_automatic_fixes
from wikicheck.findings import FindingSink
from wikicheck.runner import register

# Longest spellings first so that "<--->" is never read as "<-" + "-->".
ARROWS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("<--->", ("↔",)), ("<-->", ("↔",)), ("<->", ("↔",)),
    ("<–––>", ("↔",)), ("<––>", ("↔",)), ("<–>", ("↔",)),
    ("<———>", ("↔",)), ("<——>", ("↔",)), ("<—>", ("↔",)),
    ("<---", ("←",)), ("<--", ("←",)), ("<-", ("←",)),
    ("<–––", ("←",)), ("<––", ("←",)), ("<–", ("←",)),
    ("<———", ("←",)), ("<——", ("←",)), ("<—", ("←",)),
    ("<===>", ("⇔",)), ("<==>", ("⇔",)), ("<=>", ("⇔",)),
    ("<===", ("⇐",)), ("<==", ("⇐",)), ("<=", ("⇐", "≤")),
    ("--->", ("→",)), ("-->", ("→",)), ("->", ("→",)),
    ("–––>", ("→",)), ("––>", ("→",)), ("–>", ("→",)),
    ("———>", ("→",)), ("——>", ("→",)), ("—>", ("→",)),
    ("===>", ("⇒",)), ("==>", ("⇒",)), ("=>", ("⇒", "≥")),
)

_REPLACEMENTS: dict[str, tuple[str, ...]] = dict(ARROWS)

_ARROW_RE = re.compile("|".join(re.escape(arrow) for arrow, _ in ARROWS))

EXCEPT_TAGS: tuple[str, ...] = (
    "code", "chem", "ce", "hiero", "math", "nowiki", "pre", "score",
    "source", "syntaxhighlight", "timeline", "tt",
)


@register
class AsciiArrowDetector(Detector):
    code = "056"
    name = "Arrow as ASCII art"

    def detect(
        self,
        analysis: DocumentAnalysis,
        sink: FindingSink | None,
        only_automatic: bool = False,
    ) -> bool:
        text = analysis.text
        found = False
        pos = 0
        while True:
            m = _ARROW_RE.search(text, pos)
            if m is None:
                return found
            begin, end = m.span()
            comment = analysis.comment_at(begin)
            if comment is not None:
                pos = max(comment.end, begin + 1)
                continue
            excluded = analysis.surrounding_any(EXCEPT_TAGS, begin)
            if excluded is not None:
                pos = max(excluded.complete_end, begin + 1)
                continue
            if sink is None:
                return True
            found = True
            if not self._report_attribute_close(analysis, sink, begin, end):
                finding = self.new_finding(begin, end)
                for replacement in _REPLACEMENTS[m.group()]:
                    finding.add_fix(replacement)
                sink.add(finding)
            pos = end

    def _report_attribute_close(
        self, analysis: DocumentAnalysis, sink: FindingSink, begin: int, end: int,
    ) -> bool:
        """``<ref name=>``: an attribute with no value closing the tag."""
        text = analysis.text
        if text[begin:end] != "=>":
            return False
        tag = analysis.tag_at(begin)
        if tag is None or tag.end != end:
            return False
        attr_begin = begin
        while attr_begin > 0 and text[attr_begin - 1].isalpha():
            attr_begin -= 1
        space = attr_begin - 1
        if attr_begin == begin or space <= 0 or text[space] != " ":
            return False
        attribute = text[attr_begin:begin]
        automatic = tag.tag_type == "ref" and attribute == "name"
        finding = self.new_finding(space, end)
        finding.add_fix(">", automatic=automatic)
        sink.add(finding)
        return True

    def auto_rewrite(self, analysis: DocumentAnalysis) -> str:
        return apply_automatic_fixes(analysis, self)
