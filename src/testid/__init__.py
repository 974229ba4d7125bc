"""Stable, content-derived identities for JavaScript test cases."""

from __future__ import annotations

from typing import Optional

from testid.config import IdentitySettings, get_identity_settings
from testid.configuration.logging_config import configure_logging
from testid.core.engine import FinishReport, IdentityEngine
from testid.core.fingerprint import FingerprintOptions, TestFingerprinter
from testid.core.locations import build_location, name_from_location, relative_location_path
from testid.core.matcher import MatcherOptions, TestMatcher
from testid.core.normalizer import normalize
from testid.core.records import Assignment, MatchDetails, MatchResult, RegistryEntry, TestOccurrence
from testid.observability.tracing import init_tracing
from testid.persistence.registry import TestRegistry
from testid.plugins.javascript.extractor import extract_tests

__version__ = "0.1.0"


def create_engine(settings: Optional[IdentitySettings] = None) -> IdentityEngine:
    """Configure logging and tracing from settings, then build an engine."""

    settings = settings or get_identity_settings()
    configure_logging(log_level=settings.TESTID_LOG_LEVEL)
    init_tracing()
    return IdentityEngine(settings)


__all__ = [
    "Assignment",
    "FingerprintOptions",
    "FinishReport",
    "IdentityEngine",
    "IdentitySettings",
    "MatchDetails",
    "MatchResult",
    "MatcherOptions",
    "RegistryEntry",
    "TestFingerprinter",
    "TestMatcher",
    "TestOccurrence",
    "TestRegistry",
    "build_location",
    "create_engine",
    "extract_tests",
    "get_identity_settings",
    "name_from_location",
    "normalize",
    "relative_location_path",
]
