"""092: the same heading repeated within one parent section.

A heading is a duplicate when an earlier heading of the same level carries
the same text and no shallower heading appeared in between. The earlier
heading gets a single ``correct`` marker so that a reviewer sees both ends.
"""
from __future__ import annotations

import sys

from wikicheck.analysis import DocumentAnalysis
from wikicheck.detector import Detector, DetectorConfig
from wikicheck.elements import Title
from wikicheck.findings import FindingSink
from wikicheck.interval import Interval
from wikicheck.runner import register
from wikicheck.text_utils import move_after_whitespace, move_before_whitespace, replace_ranges


@register
class DuplicateHeadingDetector(Detector):
    code = "092"
    name = "Headline double"

    def configure(self, config: DetectorConfig) -> None:
        self.max_level = config.get_int("max_level", sys.maxsize)
        self.only_consecutive = config.get_bool("only_consecutive", False)

    def detect(
        self,
        analysis: DocumentAnalysis,
        sink: FindingSink | None,
        only_automatic: bool = False,
    ) -> bool:
        if not analysis.is_article_namespace():
            return False

        found = False
        previous_level = 0
        # level -> title text -> first occurrence (None once marked)
        seen: dict[int, dict[str, Title | None]] = {}
        for title in analysis.titles():
            level = title.level
            for deeper in range(level + 1, previous_level + 1):
                seen.pop(deeper, None)
            previous_level = level
            if level > self.max_level:
                continue

            known = seen.setdefault(level, {})
            if title.title not in known:
                if self.only_consecutive:
                    known.clear()
                known[title.title] = title
                continue

            if sink is None:
                return True
            found = True
            first = known[title.title]
            if first is not None:
                sink.add(self.new_finding(first.begin, first.end, "correct"))
                known[title.title] = None
            sink.add(self.new_finding(title.begin, title.end))
        return found

    # -- automatic rewrite ---------------------------------------------------

    def _section_end(self, analysis: DocumentAnalysis, begin: int, end: int) -> int:
        """End of a section's content, trailing categories left out."""
        text = analysis.text
        section_end = end
        pos = end
        while pos > begin:
            pos = move_before_whitespace(text, pos, begin)
            if pos <= begin or text[pos - 1] != "]":
                break
            category = analysis.category_at(pos - 1)
            if category is None or category.end != pos:
                break
            section_end = pos = category.begin
        return section_end

    def _repeats(self, text: str, content: str, other_title: Title) -> bool:
        """True when ``content`` is empty or reappears right after ``other_title``."""
        if not content:
            return True
        start = move_after_whitespace(text, other_title.end)
        return start < len(text) and text.startswith(content, start)

    def auto_rewrite(self, analysis: DocumentAnalysis) -> str:
        text = analysis.text
        if not analysis.is_article_namespace() or not analysis.titles_reliable():
            return text
        titles = analysis.titles()
        if len(titles) < 2:
            return text

        removed: list[Interval] = []
        for i in range(1, len(titles)):
            previous, current = titles[i - 1], titles[i]
            if previous.level > self.max_level:
                continue
            if previous.level != current.level or previous.title != current.title:
                continue

            previous_end = self._section_end(analysis, previous.end, current.begin)
            between = text[previous.end:previous_end].strip()
            if self._repeats(text, between, current):
                removed.append(Interval(previous.begin, previous_end))
                continue

            next_begin = titles[i + 1].begin if i + 1 < len(titles) else len(text)
            current_end = self._section_end(analysis, current.end, next_begin)
            after = text[current.end:current_end].strip()
            if self._repeats(text, after, previous):
                removed.append(Interval(current.begin, current_end))

        if not removed:
            return text
        merged: list[Interval] = []
        for interval in removed:
            if merged and interval.begin <= merged[-1].end:
                last = merged.pop()
                interval = Interval(last.begin, max(last.end, interval.end))
            merged.append(interval)
        return replace_ranges(text, [(interval, "") for interval in merged])
