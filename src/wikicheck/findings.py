"""Findings: one located defect with its ordered candidate fixes.

A ``Finding`` carries only a plain range into the analysed text, never a
reference to the analysis itself, so callers can keep findings after the
analysis is dropped. Fix order matters: the first fix is the one a caller
offers as "fix automatically" when it is flagged ``automatic``.
"""
from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Literal

from wikicheck.interval import Interval

type Severity = Literal["correct", "warning", "error"]

SEVERITY_RANK: dict[Severity, int] = {"correct": 0, "warning": 1, "error": 2}

DELETE_LABEL = "Delete"


@dataclass(frozen=True, slots=True)
class Fix:
    """One candidate replacement for a finding's range."""

    replacement: str
    label: str
    automatic: bool = False


def default_label(replacement: str) -> str:
    return f"Replace with {replacement}" if replacement else DELETE_LABEL


@dataclass(slots=True)
class Finding:
    """A detected defect.

    ``texts`` holds informational alternatives shown to a human (for example
    the differing contents of conflicting references); they are not fixes.
    """

    category: str
    interval: Interval
    severity: Severity = "error"
    fixes: list[Fix] = field(default_factory=list[Fix])
    texts: list[str] = field(default_factory=list[str])

    def __post_init__(self) -> None:
        if self.severity not in SEVERITY_RANK:
            raise ValueError(f"unknown severity {self.severity!r}")

    @property
    def begin(self) -> int:
        return self.interval.begin

    @property
    def end(self) -> int:
        return self.interval.end

    def add_fix(
        self, replacement: str, automatic: bool = False, label: str | None = None,
    ) -> Finding:
        """Append a fix; trimmed, empty means delete, duplicates ignored."""
        replacement = replacement.strip()
        if any(f.replacement == replacement for f in self.fixes):
            return self
        self.fixes.append(Fix(
            replacement,
            label if label is not None else default_label(replacement),
            automatic,
        ))
        return self

    def with_severity(self, severity: Severity) -> Finding:
        """Copy of this finding at another severity (fixes and texts kept)."""
        return Finding(
            self.category, self.interval, severity, list(self.fixes), list(self.texts),
        )

    def add_text(self, text: str) -> Finding:
        if text not in self.texts:
            self.texts.append(text)
        return self

    @property
    def primary_fix(self) -> Fix | None:
        return self.fixes[0] if self.fixes else None

    @property
    def automatic_fix(self) -> Fix | None:
        """First fix when it is safe to apply unattended, else None."""
        first = self.primary_fix
        return first if first is not None and first.automatic else None

    def sort_key(self) -> tuple[int, int, str]:
        return self.interval.begin, self.interval.end, self.category

    def as_record(self) -> dict[str, object]:
        return {
            "category": self.category,
            "begin": self.interval.begin,
            "end": self.interval.end,
            "severity": self.severity,
            "fixes": [
                {
                    "replacement": f.replacement,
                    "label": f.label,
                    "automatic": f.automatic,
                }
                for f in self.fixes
            ],
            "texts": list(self.texts),
        }


class FindingSink:
    """Append-only collection owned by a single detector run."""

    __slots__ = ("_findings",)

    def __init__(self, findings: Iterable[Finding] = ()) -> None:
        self._findings: list[Finding] = list(findings)

    def add(self, finding: Finding) -> Finding:
        self._findings.append(finding)
        return finding

    def __len__(self) -> int:
        return len(self._findings)

    def __iter__(self) -> Iterator[Finding]:
        return iter(self._findings)

    def sorted(self) -> tuple[Finding, ...]:
        return tuple(sorted(self._findings, key=Finding.sort_key))


def sort_findings(findings: Iterable[Finding]) -> list[Finding]:
    return sorted(findings, key=Finding.sort_key)
