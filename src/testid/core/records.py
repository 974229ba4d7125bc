"""Internal record contracts shared by extraction, matching and persistence."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TestOccurrence:
    """One test declaration as found in source text during a collection pass."""

    __test__ = False  # not a pytest test class

    name: str
    body: str
    source: str
    containers: tuple[str, ...] = ()


@dataclass(frozen=True)
class RegistryEntry:
    identifier: str
    fingerprint: str
    last_location: str
    body_length: int
    created_at: int  # epoch ms
    last_seen: int  # epoch ms


@dataclass(frozen=True)
class MatchResult:
    identifier: str
    confidence: float
    is_exact: bool
    existing_fingerprint: str
    fingerprint: str


@dataclass(frozen=True)
class ScoredCandidate:
    entry: RegistryEntry
    similarity: float


@dataclass(frozen=True)
class MatchDetails:
    match: Optional[MatchResult]
    candidates: list[ScoredCandidate]


@dataclass(frozen=True)
class Assignment:
    identifier: str
    fingerprint: str
    location: str
    name: str
