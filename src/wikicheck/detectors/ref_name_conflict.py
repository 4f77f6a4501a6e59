"""527: references sharing a name but carrying different content."""
from __future__ import annotations

from wikicheck.analysis import DocumentAnalysis
from wikicheck.detector import Detector, apply_automatic_fixes
from wikicheck.elements import Tag
from wikicheck.findings import FindingSink
from wikicheck.runner import register

TRIM_LABEL = "Trim text"


def reference_identifier(tag: Tag) -> str | None:
    """``group#name`` key of a named reference, or None when unnamed."""
    name = tag.parameter("name")
    if name is None or name.value is None:
        return None
    group = tag.parameter("group")
    if group is not None and group.value is not None:
        return f"{group.value}#{name.value}"
    return name.value


@register
class RefNameConflictDetector(Detector):
    code = "527"
    name = "Reference with same name but different content"

    def named_references(self, analysis: DocumentAnalysis) -> dict[str, list[Tag]]:
        """Complete named refs with content, grouped by identifier in document order."""
        text = analysis.text
        named: dict[str, list[Tag]] = {}
        for tag in analysis.complete_tags("ref"):
            if not tag.complete or tag.is_full_tag:
                continue
            identifier = reference_identifier(tag)
            if identifier is None or tag.value_end <= tag.value_begin:
                continue
            if not text[tag.value_begin:tag.value_end]:
                continue
            named.setdefault(identifier, []).append(tag)
        return named

    def detect(
        self,
        analysis: DocumentAnalysis,
        sink: FindingSink | None,
        only_automatic: bool = False,
    ) -> bool:
        text = analysis.text
        found = False
        for refs in self.named_references(analysis).values():
            if len(refs) < 2:
                continue
            values = [text[ref.value_begin:ref.value_end] for ref in refs]
            first_value = values[0]
            hard = any(value.strip() != first_value.strip() for value in values)
            soft = any(value != first_value for value in values)
            if not hard and not soft:
                continue
            if sink is None:
                return True
            found = True

            for position, (ref, value) in enumerate(zip(refs, values)):
                needs_trim = not hard and value != value.strip()
                severity = "correct" if position == 0 and not needs_trim else "error"
                finding = self.new_finding(ref.complete_begin, ref.complete_end, severity)
                if needs_trim:
                    finding.add_fix(
                        text[ref.complete_begin:ref.value_begin]
                        + value.strip()
                        + text[ref.value_end:ref.complete_end],
                        automatic=True,
                        label=TRIM_LABEL,
                    )
                else:
                    finding.add_text(value)
                    for other in values:
                        finding.add_text(other)
                sink.add(finding)
        return found

    def auto_rewrite(self, analysis: DocumentAnalysis) -> str:
        return apply_automatic_fixes(analysis, self)
