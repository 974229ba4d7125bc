"""Test body fingerprinting.

fingerprint = hex(hash(normalize(body)))

- sha1 (default): 40 hex chars
- sha256: 64 hex chars

Digests are stored untagged. Switching algorithms means previously stored
fingerprints can never match exactly again; matching then falls back to
similarity scoring or a new identifier.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Literal

from testid.core.normalizer import normalize
from testid.core.records import TestOccurrence


HashAlgorithm = Literal["sha1", "sha256"]

DIGEST_SIZES: dict[str, int] = {"sha1": 40, "sha256": 64}


@dataclass(frozen=True)
class FingerprintOptions:
    hash_algorithm: HashAlgorithm = "sha1"
    preserve_identifiers: bool = False


class TestFingerprinter:
    __test__ = False  # not a pytest test class

    def __init__(self, options: FingerprintOptions | None = None) -> None:
        self.options = options or FingerprintOptions()
        if self.options.hash_algorithm not in DIGEST_SIZES:
            raise ValueError(
                f"Unsupported hash_algorithm={self.options.hash_algorithm!r}. Supported={sorted(DIGEST_SIZES)}"
            )

    @property
    def digest_size(self) -> int:
        """Width in hex characters of every fingerprint this instance produces."""

        return DIGEST_SIZES[self.options.hash_algorithm]

    def canonical_form(self, body: str) -> str:
        return normalize(body, preserve_identifiers=self.options.preserve_identifiers)

    def digest(self, canonical: str) -> str:
        data = canonical.encode("utf-8", errors="replace")
        return hashlib.new(self.options.hash_algorithm, data).hexdigest()

    def fingerprint(self, occurrence: TestOccurrence) -> str:
        """Fingerprint an occurrence by its normalized body only (name and location are ignored)."""

        return self.digest(self.canonical_form(occurrence.body))
