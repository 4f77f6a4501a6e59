"""008: a heading line must close with a balanced ``=`` run.

Two situations are reported:

  - the opening and closing runs differ (``===Title==``) or no closing run
    exists; the finding spans the whole line and offers the heading balanced
    at the opening level, at the closing level, and, when text follows a
    stray mid-line ``=`` run, a split into heading + new line;
  - a balanced heading is followed on the same line by content such as a
    ``<ref>``; the fixes move that content to its own line or inside the
    heading.
"""
from __future__ import annotations

from wikicheck.analysis import DocumentAnalysis
from wikicheck.detector import Detector
from wikicheck.elements import Title
from wikicheck.findings import FindingSink
from wikicheck.interval import Interval
from wikicheck.runner import register
from wikicheck.text_utils import iter_lines, move_after_whitespace, run_length

EXCLUDED_TAGS: tuple[str, ...] = (
    "code", "math", "chem", "ce", "nowiki", "pre", "score", "source",
    "syntaxhighlight",
)


def build_heading(level: int, content: str) -> str:
    marks = "=" * level
    return f"{marks}{content}{marks}"


@register
class HeadingCloseDetector(Detector):
    code = "008"
    name = 'Headline should end with "="'

    def detect(
        self,
        analysis: DocumentAnalysis,
        sink: FindingSink | None,
        only_automatic: bool = False,
    ) -> bool:
        found = False
        for line in iter_lines(analysis.text):
            if self._analyze_line(analysis, sink, line):
                found = True
                if sink is None:
                    return True
        return found

    def _only_comments(self, analysis: DocumentAnalysis, begin: int, end: int) -> bool:
        """True when ``[begin, end)`` holds nothing but whitespace and comments."""
        text = analysis.text
        pos = move_after_whitespace(text, begin)
        while pos < end:
            comment = analysis.comments().begins_at(pos)
            if comment is None:
                return False
            pos = move_after_whitespace(text, comment.end)
        return True

    def _analyze_line(
        self, analysis: DocumentAnalysis, sink: FindingSink | None, line: Interval,
    ) -> bool:
        text = analysis.text
        begin = line.begin
        if line.length == 0 or text[begin] != "=":
            return False
        if analysis.is_in_comment(begin) or analysis.is_in_verbatim(begin):
            return False
        if analysis.surrounding_any(EXCLUDED_TAGS, begin) is not None:
            return False

        title = analysis.title_at(begin)
        if title is not None and title.begin == begin and title.coherent:
            return self._analyze_trailing(analysis, sink, title)

        if sink is None:
            return True
        self._report_unbalanced(analysis, sink, line)
        return True

    def _analyze_trailing(
        self, analysis: DocumentAnalysis, sink: FindingSink | None, title: Title,
    ) -> bool:
        text = analysis.text
        after = title.after_interval
        if after.length == 0 or self._only_comments(analysis, after.begin, after.end):
            return False
        if sink is None:
            return True
        content_begin = move_after_whitespace(text, after.begin)
        closing_begin = after.begin - title.second_level
        finding = self.new_finding(title.begin, title.end)
        finding.add_fix(
            text[title.begin:content_begin] + "\n" + text[content_begin:title.end],
        )
        finding.add_fix(
            text[title.begin:closing_begin]
            + text[content_begin:title.end]
            + text[closing_begin:after.begin],
        )
        sink.add(finding)
        return True

    def _report_unbalanced(
        self, analysis: DocumentAnalysis, sink: FindingSink, line: Interval,
    ) -> None:
        text = analysis.text
        begin, end = line.begin, line.end
        opening = run_length(text, begin, "=")
        content_begin = begin + opening
        finding = self.new_finding(begin, end)

        if end > content_begin:
            content = text[content_begin:end].rstrip().rstrip("=")
            finding.add_fix(build_heading(opening, content))
        else:
            finding.add_fix("")

        equal_index = text.find("=", content_begin, end)
        if equal_index > content_begin:
            first_part = text[content_begin:equal_index]
            finding.add_fix(build_heading(opening, first_part))
            closing = run_length(text, equal_index, "=")
            finding.add_fix(build_heading(closing, first_part))
            rest_begin = min(equal_index + closing, end)
            rest = text[rest_begin:end].strip()
            if rest:
                finding.add_fix(build_heading(opening, first_part) + "\n" + rest)
        sink.add(finding)
