"""Similarity scoring for fuzzy identity matching.

Composite score of a candidate registry entry against a fresh occurrence:

    0.5 * name + 0.3 * location + 0.2 * body_length

- name: Levenshtein similarity between the declared name and the name
  recovered from the entry's last location (or the declared name itself
  when nothing can be recovered)
- location: Levenshtein similarity between location strings
- body_length: closeness of canonical body sizes, so a test that grew many
  new assertions scores lower than its unchanged name/location suggest
"""

from __future__ import annotations

from dataclasses import dataclass

from rapidfuzz.distance import Levenshtein

from testid.core.locations import name_from_location
from testid.core.records import RegistryEntry


@dataclass(frozen=True)
class SimilarityWeights:
    name: float = 0.5
    location: float = 0.3
    body_length: float = 0.2

    @property
    def total(self) -> float:
        return self.name + self.location + self.body_length


DEFAULT_WEIGHTS = SimilarityWeights()


def levenshtein_similarity(a: str, b: str) -> float:
    """`1 - distance / max(len)`; equal strings 1.0, one side empty 0.0."""

    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    return max(0.0, min(1.0, Levenshtein.normalized_similarity(a, b)))


def length_similarity(a: int, b: int) -> float:
    if a == b:
        return 1.0
    longest = max(a, b)
    if longest <= 0:
        return 0.0
    return max(0.0, 1.0 - abs(a - b) / longest)


def score_candidate(
    *,
    name: str,
    location: str,
    body_length: int,
    entry: RegistryEntry,
    weights: SimilarityWeights = DEFAULT_WEIGHTS,
) -> float:
    existing_name = name_from_location(entry.last_location) or name
    score = (
        weights.name * levenshtein_similarity(name, existing_name)
        + weights.location * levenshtein_similarity(location, entry.last_location)
        + weights.body_length * length_similarity(body_length, entry.body_length)
    )
    return score / weights.total if weights.total > 0 else 0.0
