"""558: the same reference repeated in a run of adjacent references.

References are complete ``<ref>`` tags plus any configured reference
templates. Consecutive references separated only by punctuation, whitespace,
configured separators or ``<small>``/``<sub>`` tags form a group; inside a
group each pair is compared and the first duplicate pair is reported.
"""
from __future__ import annotations

import re
from dataclasses import dataclass

from wikicheck.analysis import DocumentAnalysis
from wikicheck.detector import Detector, DetectorConfig, apply_automatic_fixes
from wikicheck.elements import Tag, normalize_template_name
from wikicheck.findings import FindingSink
from wikicheck.interval import Interval
from wikicheck.runner import register

PUNCTUATION = ",;.'′’-&"
TAG_SEPARATORS: frozenset[str] = frozenset({"small", "sub"})

_SPACES_RE = re.compile(r"  +")


@dataclass(frozen=True, slots=True)
class Reference(Interval):
    """One reference construct; ``tag`` is set for ``<ref>`` tags only."""

    tag: Tag | None = None

    @property
    def is_full_tag(self) -> bool:
        return self.tag is not None and self.tag.is_full_tag

    def attribute(self, name: str) -> str | None:
        if self.tag is None:
            return None
        param = self.tag.parameter(name)
        return param.value if param is not None else None


@register
class DuplicateReferenceDetector(Detector):
    code = "558"
    name = "Duplicated reference"
    suppressed_by = ("527",)

    def configure(self, config: DetectorConfig) -> None:
        self.separator = config.get_str("separator", "") or ""
        separators: list[str] = [self.separator] if self.separator else []
        for other in config.get_list("other_separators"):
            if other not in separators:
                separators.append(other)
        self.separators = tuple(separators)
        self.templates = frozenset(
            normalize_template_name(name) for name in config.get_list("templates")
        )

    # -- reference collection and grouping -----------------------------------

    def references(self, analysis: DocumentAnalysis) -> list[Reference]:
        refs = [
            Reference(tag.complete_begin, tag.complete_end, tag=tag)
            for tag in analysis.complete_tags("ref")
            if tag.complete
        ]
        if self.templates:
            refs.extend(
                Reference(template.begin, template.end)
                for template in analysis.templates()
                if template.name in self.templates
            )
        refs.sort(key=lambda ref: (ref.begin, ref.end))
        return refs

    def _separated_only(self, analysis: DocumentAnalysis, begin: int, end: int) -> bool:
        """True when ``[begin, end)`` holds only allowed separators."""
        if end < begin:
            return False
        text = analysis.text
        pos = begin
        while pos < end:
            ch = text[pos]
            if ch.isspace() or ch in PUNCTUATION:
                pos += 1
                continue
            separator = next(
                (s for s in self.separators
                 if text.startswith(s, pos) and pos + len(s) <= end),
                None,
            )
            if separator is not None:
                pos += len(separator)
                continue
            tag = analysis.tag_at(pos) if ch == "<" else None
            if (tag is not None and tag.begin == pos and tag.end <= end
                    and tag.tag_type in TAG_SEPARATORS):
                pos = tag.end
                continue
            return False
        return True

    def group_end(self, analysis: DocumentAnalysis, refs: list[Reference], first: int) -> int:
        """Index of the last reference in the group starting at ``first``."""
        last = first
        while (last + 1 < len(refs)
               and self._separated_only(analysis, refs[last].end, refs[last + 1].begin)):
            last += 1
        return last

    # -- detection -----------------------------------------------------------

    def detect(
        self,
        analysis: DocumentAnalysis,
        sink: FindingSink | None,
        only_automatic: bool = False,
    ) -> bool:
        refs = self.references(analysis)
        found = False
        index = 0
        while index < len(refs):
            last = self.group_end(analysis, refs, index)
            if self._analyze_group(analysis, sink, refs, index, last):
                if sink is None:
                    return True
                found = True
            index = last + 1
        return found

    def _analyze_group(
        self,
        analysis: DocumentAnalysis,
        sink: FindingSink | None,
        refs: list[Reference],
        first_index: int,
        last_index: int,
    ) -> bool:
        for i in range(first_index, last_index):
            for j in range(i + 1, last_index + 1):
                if self._analyze_pair(
                    analysis, sink, refs[i], refs[i + 1], refs[j - 1], refs[j],
                ):
                    return True
        return False

    @staticmethod
    def _can_remove_between(text: str, previous: Reference, following: Reference) -> bool:
        if following.begin < previous.end:
            return False
        return "''" not in text[previous.end:following.begin]

    def _analyze_pair(
        self,
        analysis: DocumentAnalysis,
        sink: FindingSink | None,
        first: Reference,
        after_first: Reference,
        before_second: Reference,
        second: Reference,
    ) -> bool:
        text = analysis.text
        keep_first = text[first.begin:before_second.end]
        remove_second_safe = self._can_remove_between(text, before_second, second)

        if first.text(text) == second.text(text):
            if sink is not None:
                finding = self.new_finding(first.begin, second.end)
                finding.add_fix(keep_first, automatic=remove_second_safe)
                sink.add(finding)
            return True

        if first.tag is None or second.tag is None:
            return False

        first_name, second_name = first.attribute("name"), second.attribute("name")
        first_group, second_group = first.attribute("group"), second.attribute("group")
        same_name = first_name is not None and first_name == second_name
        same_group = first_group == second_group

        if same_name and same_group:
            if sink is not None:
                finding = self.new_finding(first.begin, second.end)
                if second.is_full_tag:
                    finding.add_fix(keep_first, automatic=remove_second_safe)
                elif first.is_full_tag:
                    finding.add_fix(
                        text[after_first.begin:second.end],
                        automatic=self._can_remove_between(text, first, after_first),
                    )
                sink.add(finding)
            return True

        if first.is_full_tag or second.is_full_tag or not same_group:
            return False
        first_value = text[first.tag.value_begin:first.tag.value_end].strip()
        second_value = text[second.tag.value_begin:second.tag.value_end].strip()
        if not first_value or not second_value:
            return False
        if _SPACES_RE.sub(" ", first_value) != _SPACES_RE.sub(" ", second_value):
            return False
        if sink is not None:
            automatic = remove_second_safe and first_name is None and second_name is None
            finding = self.new_finding(first.begin, second.end)
            finding.add_fix(keep_first, automatic=automatic)
            sink.add(finding)
        return True

    def auto_rewrite(self, analysis: DocumentAnalysis) -> str:
        if not analysis.is_article_namespace() or not analysis.is_main_namespace():
            return analysis.text
        return apply_automatic_fixes(analysis, self)
