"""Detector contract, per-detector configuration, and shared fix helpers.

A detector implements one defect class. It reads a ``DocumentAnalysis``,
appends ``Finding`` objects to the sink it was given and returns whether the
defect was found. With ``sink=None`` it must return at the first confirmed
defect: that fast path answers "does this document have the defect at all"
for the runner's suppression checks.

Configuration is an explicit ``DetectorConfig`` built from a flat mapping of
string parameters. Malformed values never fail a run: they are logged,
recorded in ``config.problems``, and the documented default is used.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import ClassVar

from wikicheck.analysis import DocumentAnalysis
from wikicheck.findings import Finding, FindingSink, Severity
from wikicheck.interval import Interval
from wikicheck.text_utils import replace_ranges

log = logging.getLogger(__name__)

_TRUE_VALUES = frozenset({"true", "yes", "1", "on"})
_FALSE_VALUES = frozenset({"false", "no", "0", "off"})


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class DetectorConfig:
    """Flat string parameters for one detector."""

    code: str
    params: Mapping[str, str] = field(default_factory=dict[str, str])
    problems: list[str] = field(default_factory=list[str], compare=False)

    def _problem(self, name: str, raw: str, expected: str) -> None:
        message = f"{self.code}.{name}: expected {expected}, got {raw!r}; using default"
        log.warning("Invalid detector parameter %s", message)
        self.problems.append(message)

    def get_str(self, name: str, default: str | None = None) -> str | None:
        value = self.params.get(name)
        return default if value is None else value

    def get_int(self, name: str, default: int) -> int:
        raw = self.params.get(name)
        if raw is None or not raw.strip():
            return default
        try:
            return int(raw.strip(), 10)
        except ValueError:
            self._problem(name, raw, "an integer")
            return default

    def get_bool(self, name: str, default: bool) -> bool:
        raw = self.params.get(name)
        if raw is None or not raw.strip():
            return default
        lowered = raw.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        self._problem(name, raw, "true/false")
        return default

    def get_list(self, name: str, default: tuple[str, ...] = ()) -> tuple[str, ...]:
        """Comma or newline separated values, blanks dropped."""
        raw = self.params.get(name)
        if raw is None:
            return default
        items = [item.strip() for chunk in raw.split("\n") for item in chunk.split(",")]
        return tuple(item for item in items if item)


# ---------------------------------------------------------------------------
# Detector interface
# ---------------------------------------------------------------------------

class Detector(ABC):
    """One defect class: detection plus an optional whole-document rewrite.

    Subclasses set ``code`` and ``name``, read their parameters in
    ``configure`` and implement ``detect``. ``suppressed_by`` lists codes of
    more specific detectors whose findings take precedence over this one's
    when both report the same range.
    """

    code: ClassVar[str] = ""
    name: ClassVar[str] = ""
    suppressed_by: ClassVar[tuple[str, ...]] = ()

    def __init__(self, config: DetectorConfig | None = None) -> None:
        self.config = config if config is not None else DetectorConfig(self.code)
        self.configure(self.config)

    def configure(self, config: DetectorConfig) -> None:
        """Read parameters from ``config``; default is no parameters."""

    @abstractmethod
    def detect(
        self,
        analysis: DocumentAnalysis,
        sink: FindingSink | None,
        only_automatic: bool = False,
    ) -> bool:
        """Report findings to ``sink``; return True if the defect was found."""

    def auto_rewrite(self, analysis: DocumentAnalysis) -> str:
        """Whole-document automatic fix; default leaves the text unchanged."""
        return analysis.text

    def new_finding(
        self, begin: int, end: int, severity: Severity = "error",
    ) -> Finding:
        return Finding(self.code, Interval(begin, end), severity)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r})"


# ---------------------------------------------------------------------------
# Shared fix helpers
# ---------------------------------------------------------------------------

def automatic_replacements(findings: FindingSink) -> list[tuple[Interval, str]]:
    """Primary automatic fixes in increasing range order, overlaps dropped."""
    chosen: list[tuple[Interval, str]] = []
    last_end = -1
    for finding in findings.sorted():
        fix = finding.automatic_fix
        if fix is None or finding.severity == "correct":
            continue
        if finding.interval.begin < last_end:
            continue
        chosen.append((finding.interval, fix.replacement))
        last_end = finding.interval.end
    return chosen


def apply_automatic_fixes(analysis: DocumentAnalysis, detector: Detector) -> str:
    """Run ``detector`` and apply every automatic primary fix in range order."""
    sink = FindingSink()
    detector.detect(analysis, sink, only_automatic=True)
    replacements = automatic_replacements(sink)
    if not replacements:
        return analysis.text
    return replace_ranges(analysis.text, replacements)
