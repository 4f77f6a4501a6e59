"""UNC: formatting tags left open, and tags written with stray whitespace."""
from __future__ import annotations

import re

from wikicheck.analysis import DocumentAnalysis
from wikicheck.detector import Detector, DetectorConfig, apply_automatic_fixes
from wikicheck.elements import Tag, normalize_tag_name
from wikicheck.findings import FindingSink
from wikicheck.runner import register

DEFAULT_TAGS: tuple[str, ...] = ("code", "pre", "nowiki", "small", "sub", "sup", "center")
IGNORED_INSIDE: tuple[str, ...] = ("nowiki", "source", "syntaxhighlight")

_WHITESPACE_RE = re.compile(r"\s+")


def rebuild_tag(raw: str, tag: Tag) -> str:
    """Tag text with the whitespace after ``<`` (and inside a close tag) removed."""
    if tag.is_end_tag:
        return _WHITESPACE_RE.sub("", raw)
    return "<" + raw[1:].lstrip()


@register
class UnclosedTagsDetector(Detector):
    code = "UNC"
    name = "Unclosed tags"

    def configure(self, config: DetectorConfig) -> None:
        self.tags = frozenset(
            normalize_tag_name(name) for name in config.get_list("tags", DEFAULT_TAGS)
        )

    def detect(
        self,
        analysis: DocumentAnalysis,
        sink: FindingSink | None,
        only_automatic: bool = False,
    ) -> bool:
        text = analysis.text
        found = False
        for tag in analysis.tags():
            if tag.tag_type not in self.tags:
                continue
            if analysis.is_in_verbatim(tag.begin, IGNORED_INSIDE):
                continue
            raw = text[tag.begin:tag.end]
            rebuilt = rebuild_tag(raw, tag)
            padded = rebuilt != raw
            unclosed = tag.role == "open" and not tag.complete
            if only_automatic:
                padded = padded and not tag.parameters
                unclosed = False
            if not padded and not unclosed:
                continue
            if sink is None:
                return True
            found = True
            if padded:
                finding = self.new_finding(tag.begin, tag.end, "warning")
                finding.add_fix(rebuilt, automatic=not tag.parameters)
                sink.add(finding)
            if unclosed:
                finding = self.new_finding(tag.begin, tag.end)
                finding.add_fix("")
                sink.add(finding)
        return found

    def auto_rewrite(self, analysis: DocumentAnalysis) -> str:
        return apply_automatic_fixes(analysis, self)
