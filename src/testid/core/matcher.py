"""Resolve a test occurrence to a registry identifier.

1. exact: fingerprint already in the registry -> that identifier, confidence 1.0
2. fuzzy: score every other entry (see `core.similarity`), accept the best
   at or above the threshold; ties go to the earliest registered entry
3. otherwise no match; `assign` mints a new identifier
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Optional

import structlog

from testid.core.fingerprint import TestFingerprinter
from testid.core.records import MatchDetails, MatchResult, ScoredCandidate, TestOccurrence
from testid.core.similarity import DEFAULT_WEIGHTS, SimilarityWeights, score_candidate
from testid.persistence.registry import TestRegistry


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class MatcherOptions:
    similarity_threshold: float = 0.8
    max_candidates: int = 20


class TestMatcher:
    __test__ = False  # not a pytest test class

    def __init__(
        self,
        fingerprinter: TestFingerprinter,
        registry: TestRegistry,
        options: MatcherOptions | None = None,
        *,
        weights: SimilarityWeights = DEFAULT_WEIGHTS,
    ) -> None:
        self.fingerprinter = fingerprinter
        self.registry = registry
        self.options = options or MatcherOptions()
        if not 0.0 <= self.options.similarity_threshold <= 1.0:
            raise ValueError(f"similarity_threshold must be within [0, 1], got {self.options.similarity_threshold}")
        self.weights = weights
        self._warn_on_foreign_digests()

    def _warn_on_foreign_digests(self) -> None:
        widths = Counter(len(fp) for fp in self.registry.all_fingerprints())
        foreign = sum(n for width, n in widths.items() if width != self.fingerprinter.digest_size)
        if foreign:
            # Stored digests are untagged: these entries can only match fuzzily from now on.
            logger.warning(
                "matcher.foreign_digest_width",
                hash_algorithm=self.fingerprinter.options.hash_algorithm,
                expected_width=self.fingerprinter.digest_size,
                foreign_entries=foreign,
            )

    def _search(
        self, occurrence: TestOccurrence, location: str, exclude: Iterable[str]
    ) -> tuple[str, Optional[MatchResult], list[ScoredCandidate]]:
        """Return (canonical body, match, scored candidates best-first)."""

        canonical = self.fingerprinter.canonical_form(occurrence.body)
        fingerprint = self.fingerprinter.digest(canonical)

        exact = self.registry.find_by_fingerprint(fingerprint)
        if exact is not None:
            match = MatchResult(
                identifier=exact.identifier,
                confidence=1.0,
                is_exact=True,
                existing_fingerprint=exact.fingerprint,
                fingerprint=fingerprint,
            )
            return canonical, match, []

        candidates = self._score_candidates(occurrence, location, fingerprint, len(canonical), set(exclude))
        best = next((c for c in candidates if c.similarity >= self.options.similarity_threshold), None)
        if best is None:
            return canonical, None, candidates
        match = MatchResult(
            identifier=best.entry.identifier,
            confidence=best.similarity,
            is_exact=False,
            existing_fingerprint=best.entry.fingerprint,
            fingerprint=fingerprint,
        )
        return canonical, match, candidates

    def _score_candidates(
        self,
        occurrence: TestOccurrence,
        location: str,
        fingerprint: str,
        body_length: int,
        exclude: set[str],
    ) -> list[ScoredCandidate]:
        scored: list[ScoredCandidate] = []
        for entry in self.registry.all_entries():
            if entry.fingerprint == fingerprint or entry.identifier in exclude:
                continue
            similarity = score_candidate(
                name=occurrence.name,
                location=location,
                body_length=body_length,
                entry=entry,
                weights=self.weights,
            )
            scored.append(ScoredCandidate(entry=entry, similarity=similarity))
        # sorted() is stable: equal scores keep registry insertion order.
        return sorted(scored, key=lambda c: c.similarity, reverse=True)

    def resolve(
        self, occurrence: TestOccurrence, location: str, *, exclude: Iterable[str] = ()
    ) -> Optional[MatchResult]:
        _, match, _ = self._search(occurrence, location, exclude)
        return match

    def assign(self, occurrence: TestOccurrence, location: str, *, exclude: Iterable[str] = ()) -> str:
        """Resolve an identifier for the occurrence, or mint one, and record it in the registry."""

        canonical, match, _ = self._search(occurrence, location, exclude)
        if match is not None:
            self.registry.update(match.identifier, match.fingerprint, location, len(canonical))
            if not match.is_exact:
                logger.info(
                    "matcher.fuzzy_match",
                    identifier=match.identifier,
                    confidence=round(match.confidence, 4),
                    location=location,
                )
            return match.identifier

        identifier = self.registry.add(self.fingerprinter.digest(canonical), location, len(canonical))
        logger.debug("matcher.new_identifier", identifier=identifier, location=location)
        return identifier

    def match_details(self, occurrence: TestOccurrence, location: str) -> MatchDetails:
        """Match plus the top scored candidates (below-threshold ones included)."""

        _, match, candidates = self._search(occurrence, location, ())
        return MatchDetails(match=match, candidates=candidates[: self.options.max_candidates])
