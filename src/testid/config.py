"""Engine configuration for stable test identities."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator

from testid.configuration.base_config import BaseConfig
from testid.core.fingerprint import FingerprintOptions
from testid.core.matcher import MatcherOptions


class IdentitySettings(BaseConfig):
    """Settings for fingerprinting, matching and registry persistence."""

    TESTID_REGISTRY_PATH: str = Field(
        default=".test-ids.json",
        description="Registry file path, resolved against the current working directory when relative.",
    )

    TESTID_HASH_ALGORITHM: Literal["sha1", "sha256"] = Field(
        default="sha1",
        description="Digest used for fingerprints. Changing it invalidates every stored fingerprint.",
    )

    TESTID_PRESERVE_IDENTIFIERS: bool = Field(
        default=False,
        description="Hash local identifier names verbatim instead of folding them to placeholders.",
    )

    TESTID_SIMILARITY_THRESHOLD: float = Field(
        default=0.8,
        description="Minimum composite score for accepting a fuzzy match.",
        ge=0.0,
        le=1.0,
    )

    TESTID_MAX_CANDIDATES: int = Field(
        default=20,
        description="Number of scored candidates reported by match details.",
        ge=1,
    )

    TESTID_MAX_PARSE_ERROR_RATIO: float = Field(
        default=0.0,
        description="Max Tree-sitter parse error ratio tolerated before a source file yields no tests.",
        ge=0.0,
        le=1.0,
    )

    TESTID_AUTO_SAVE: bool = Field(
        default=True,
        description="Write the registry back to disk when a run finishes.",
    )

    TESTID_AUTO_CLEANUP: bool = Field(
        default=True,
        description="Drop registry entries not assigned during the run when it finishes.",
    )

    TESTID_LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Log level passed to configure_logging.",
    )

    @field_validator("TESTID_LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: object) -> object:
        """Accept level names in any case."""
        return v.strip().upper() if isinstance(v, str) else v

    def fingerprint_options(self) -> FingerprintOptions:
        return FingerprintOptions(
            hash_algorithm=self.TESTID_HASH_ALGORITHM,
            preserve_identifiers=self.TESTID_PRESERVE_IDENTIFIERS,
        )

    def matcher_options(self) -> MatcherOptions:
        return MatcherOptions(
            similarity_threshold=self.TESTID_SIMILARITY_THRESHOLD,
            max_candidates=self.TESTID_MAX_CANDIDATES,
        )


@lru_cache()
def get_identity_settings() -> IdentitySettings:
    """Return cached engine settings instance."""

    return IdentitySettings()
