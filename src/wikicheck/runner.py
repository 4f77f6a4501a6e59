"""Detector registry and the runner that executes detectors over one document.

Each detector runs in isolation: an exception or a finding with an invalid
range turns into an ``Err(DetectorFailure)`` for that detector only, and the
other detectors still report. All detectors share one ``DocumentAnalysis``;
its indices are built once and then read concurrently.
"""
from __future__ import annotations

import importlib
import logging
from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from wikicheck.analysis import DocumentAnalysis
from wikicheck.detector import Detector, DetectorConfig
from wikicheck.findings import Finding, FindingSink, sort_findings
from wikicheck.interval import Interval
from wikicheck.results import Err, Ok

log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

REGISTRY: dict[str, type[Detector]] = {}

_BUILTIN_PACKAGE = "wikicheck.detectors"


def register[D: type[Detector]](cls: D) -> D:
    """Class decorator adding a detector to ``REGISTRY`` under its code."""
    if not cls.code:
        raise ValueError(f"{cls.__name__} has no code")
    existing = REGISTRY.get(cls.code)
    if existing is not None and existing is not cls:
        raise ValueError(
            f"code {cls.code!r} already registered by {existing.__name__}"
        )
    REGISTRY[cls.code] = cls
    return cls


def _load_builtin() -> None:
    # Importing the package runs every built-in @register decorator.
    importlib.import_module(_BUILTIN_PACKAGE)


def available_codes() -> tuple[str, ...]:
    _load_builtin()
    return tuple(sorted(REGISTRY))


def build_detectors(
    codes: Iterable[str] | None = None,
    params: Mapping[str, Mapping[str, str]] | None = None,
) -> list[Detector]:
    """Instantiate registered detectors with per-code ``DetectorConfig``.

    ``codes=None`` selects every registered detector. Unknown codes raise
    ``KeyError`` listing what is available.
    """
    _load_builtin()
    params = params or {}
    selected = sorted(REGISTRY) if codes is None else list(codes)
    unknown = [code for code in selected if code not in REGISTRY]
    if unknown:
        raise KeyError(
            f"unknown detector code(s) {', '.join(unknown)}; "
            f"available: {', '.join(sorted(REGISTRY))}"
        )
    return [
        REGISTRY[code](DetectorConfig(code, dict(params.get(code, {}))))
        for code in selected
    ]


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class DetectorFailure:
    """Why one detector produced no findings."""
    code: str
    reason: str


type DetectorOutcome = Ok[tuple[Finding, ...]] | Err[DetectorFailure]


@dataclass(slots=True)
class RunReport:
    """Per-detector outcomes of one run, keyed by code in run order."""

    outcomes: dict[str, DetectorOutcome] = field(default_factory=dict[str, DetectorOutcome])
    suppressed: dict[str, int] = field(default_factory=dict[str, int])

    def findings(self) -> list[Finding]:
        """Findings of every successful detector, ordered by range."""
        collected: list[Finding] = []
        for outcome in self.outcomes.values():
            if isinstance(outcome, Ok):
                collected.extend(outcome.value)
        return sort_findings(collected)

    def findings_for(self, code: str) -> tuple[Finding, ...]:
        outcome = self.outcomes.get(code)
        return outcome.value if isinstance(outcome, Ok) else ()

    def failures(self) -> list[DetectorFailure]:
        return [o.error for o in self.outcomes.values() if isinstance(o, Err)]

    def as_record(self) -> dict[str, object]:
        return {
            "findings": [f.as_record() for f in self.findings()],
            "failures": [
                {"code": failure.code, "reason": failure.reason}
                for failure in self.failures()
            ],
            "suppressed": dict(self.suppressed),
        }


@dataclass(frozen=True, slots=True)
class FixReport:
    """Result of the whole-document automatic rewrite loop."""
    text: str
    applied: tuple[str, ...]
    passes: int
    converged: bool = True


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------

def _overlaps_any(interval: Interval, claimed: Sequence[Interval]) -> bool:
    return any(interval.overlaps(other) for other in claimed)


class Runner:
    """Run a fixed set of detectors over documents."""

    def __init__(self, detectors: Sequence[Detector], max_workers: int | None = None) -> None:
        codes = [d.code for d in detectors]
        duplicates = sorted({c for c in codes if codes.count(c) > 1})
        if duplicates:
            raise ValueError(f"duplicate detector code(s): {', '.join(duplicates)}")
        self.detectors: tuple[Detector, ...] = tuple(detectors)
        self.max_workers = max_workers

    def _run_one(
        self, detector: Detector, analysis: DocumentAnalysis, only_automatic: bool,
    ) -> DetectorOutcome:
        sink = FindingSink()
        try:
            detector.detect(analysis, sink, only_automatic)
        except Exception as exc:
            log.exception("Detector %s failed", detector.code)
            return Err(DetectorFailure(detector.code, f"{type(exc).__name__}: {exc}"))
        length = len(analysis.text)
        for finding in sink:
            if finding.end > length:
                reason = (
                    f"finding range {finding.begin}-{finding.end} outside "
                    f"text of length {length}"
                )
                log.error("Detector %s produced an invalid range: %s", detector.code, reason)
                return Err(DetectorFailure(detector.code, reason))
        return Ok(sink.sorted())

    def _claimed_ranges(
        self,
        code: str,
        analysis: DocumentAnalysis,
        outcomes: Mapping[str, DetectorOutcome],
    ) -> tuple[Interval, ...]:
        """Ranges reported by suppressor ``code``, or () when it found nothing."""
        outcome = outcomes.get(code)
        if outcome is None:
            cls = REGISTRY.get(code)
            if cls is None:
                log.debug("Suppressor %s is not registered", code)
                return ()
            suppressor = cls()
            try:
                positive = suppressor.detect(analysis, None)
            except Exception:
                log.exception("Suppressor %s failed", code)
                return ()
            if not positive:
                return ()
            outcome = self._run_one(suppressor, analysis, only_automatic=False)
        if not isinstance(outcome, Ok):
            return ()
        return tuple(f.interval for f in outcome.value if f.severity != "correct")

    def _apply_suppression(
        self,
        analysis: DocumentAnalysis,
        outcomes: dict[str, DetectorOutcome],
        report: RunReport,
    ) -> None:
        for detector in self.detectors:
            outcome = outcomes[detector.code]
            if not detector.suppressed_by or not isinstance(outcome, Ok) or not outcome.value:
                continue
            claimed: list[Interval] = []
            for code in detector.suppressed_by:
                claimed.extend(self._claimed_ranges(code, analysis, outcomes))
            if not claimed:
                continue
            kept = tuple(f for f in outcome.value if not _overlaps_any(f.interval, claimed))
            dropped = len(outcome.value) - len(kept)
            if dropped:
                log.debug("Suppressed %d %s finding(s)", dropped, detector.code)
                report.suppressed[detector.code] = dropped
                outcomes[detector.code] = Ok(kept)

    def run(self, analysis: DocumentAnalysis, only_automatic: bool = False) -> RunReport:
        if self.max_workers is not None and self.max_workers > 1 and len(self.detectors) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                results = list(pool.map(
                    lambda d: self._run_one(d, analysis, only_automatic), self.detectors,
                ))
        else:
            results = [self._run_one(d, analysis, only_automatic) for d in self.detectors]

        report = RunReport()
        outcomes = {d.code: outcome for d, outcome in zip(self.detectors, results)}
        self._apply_suppression(analysis, outcomes, report)
        report.outcomes = outcomes
        failed = len(report.failures())
        log.debug(
            "Ran %d detector(s) on %r: %d finding(s), %d failure(s)",
            len(self.detectors), analysis.page_title, len(report.findings()), failed,
        )
        return report

    def auto_fix(self, analysis: DocumentAnalysis, max_passes: int = 5) -> FixReport:
        """Apply every detector's automatic rewrite until nothing changes.

        The text is re-analysed after each change, so a later detector never
        sees offsets from an earlier version.
        """
        if max_passes < 1:
            raise ValueError(f"max_passes must be >= 1, got {max_passes}")
        current = analysis
        applied: list[str] = []
        passes = 0
        changed = False
        for _ in range(max_passes):
            passes += 1
            changed = False
            for detector in self.detectors:
                try:
                    text = detector.auto_rewrite(current)
                except Exception:
                    log.exception("Automatic rewrite %s failed", detector.code)
                    continue
                if text == current.text:
                    continue
                log.debug("Rewrite %s changed the text (pass %d)", detector.code, passes)
                current = current.with_text(text)
                changed = True
                if detector.code not in applied:
                    applied.append(detector.code)
            if not changed:
                break
        if changed:
            log.warning("Automatic rewrites still changing text after %d passes", passes)
        return FixReport(current.text, tuple(applied), passes, converged=not changed)
