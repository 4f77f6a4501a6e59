"""Result ADT shared by the runner and its callers.

Usage::

    outcome: Result[tuple[Finding, ...], DetectorFailure] = Ok(findings)
    match outcome:
        case Ok(value=found): print(len(found))
        case Err(error=e): print(e.reason)
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Ok[T]:
    """Success case of Result[T, E]."""
    value: T


@dataclass(frozen=True, slots=True)
class Err[E]:
    """Failure case of Result[T, E]; keeps the typed reason."""
    error: E


type Result[T, E] = Ok[T] | Err[E]
