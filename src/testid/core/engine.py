"""Identity engine: the contract a host test runner drives.

Per run:
collection -> `assign` (or `process_source`) per test occurrence
run end    -> `finish` (cleanup of unseen identifiers, then save)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import structlog

from testid.config import IdentitySettings, get_identity_settings
from testid.core.fingerprint import TestFingerprinter
from testid.core.locations import build_location
from testid.core.matcher import TestMatcher
from testid.core.records import Assignment, TestOccurrence
from testid.observability.tracing import get_tracer, traced
from testid.persistence.registry import TestRegistry
from testid.plugins.javascript.extractor import extract_tests


logger = structlog.get_logger(__name__)
tracer = get_tracer(__name__)


@dataclass(frozen=True)
class FinishReport:
    removed: int
    saved: bool
    size: int


class IdentityEngine:
    """Owns one registry for the duration of a run."""

    def __init__(
        self,
        settings: Optional[IdentitySettings] = None,
        *,
        registry: Optional[TestRegistry] = None,
    ) -> None:
        self.settings = settings or get_identity_settings()
        self.fingerprinter = TestFingerprinter(self.settings.fingerprint_options())
        self.registry = registry if registry is not None else TestRegistry(self.settings.TESTID_REGISTRY_PATH)
        self.matcher = TestMatcher(self.fingerprinter, self.registry, self.settings.matcher_options())
        # Insertion-ordered set of identifiers handed out during this run.
        self._assigned: dict[str, None] = {}
        logger.info("engine.start", registry_path=str(self.registry.path), registry_size=self.registry.size())

    @property
    def active_identifiers(self) -> list[str]:
        return list(self._assigned)

    def extract(self, source_text: str) -> list[TestOccurrence]:
        return extract_tests(source_text, max_error_ratio=self.settings.TESTID_MAX_PARSE_ERROR_RATIO)

    def assign(self, occurrence: TestOccurrence, location: str) -> Assignment:
        """Resolve or mint the identifier for one occurrence.

        Identifiers already handed out this run are not offered again by the
        fuzzy search, so two similar new tests never collapse onto one entry.
        Identical bodies still share an identifier through the exact path.
        """

        with traced(tracer, "testid.assign", location=location, name=occurrence.name) as span:
            identifier = self.matcher.assign(occurrence, location, exclude=self._assigned)
            entry = self.registry.find_by_identifier(identifier)
            fingerprint = entry.fingerprint if entry is not None else self.fingerprinter.fingerprint(occurrence)
            span.set_attribute("testid.identifier", identifier)

        self._assigned[identifier] = None
        logger.debug("engine.assigned", identifier=identifier, location=location)
        return Assignment(identifier=identifier, fingerprint=fingerprint, location=location, name=occurrence.name)

    def process_source(self, relative_path: str, source_text: str) -> list[Assignment]:
        """Extract every test declaration in a file and assign identifiers to all of them."""

        with traced(tracer, "testid.extract", file_path=relative_path) as span:
            occurrences = self.extract(source_text)
            span.set_attribute("testid.occurrences", len(occurrences))
        logger.debug("engine.extracted", file_path=relative_path, count=len(occurrences))

        return [
            self.assign(occ, build_location(relative_path, *occ.containers, occ.name))
            for occ in occurrences
        ]

    def finish(self) -> FinishReport:
        """Close the run: drop identifiers not seen this run, then persist."""

        removed = 0
        if self.settings.TESTID_AUTO_CLEANUP:
            removed = self.registry.cleanup(self._assigned)
            if removed:
                logger.info("engine.cleanup", removed=removed)

        saved = False
        if self.settings.TESTID_AUTO_SAVE:
            saved = self.registry.save()

        report = FinishReport(removed=removed, saved=saved, size=self.registry.size())
        logger.info("engine.finish", removed=report.removed, saved=report.saved, size=report.size)
        self._assigned = {}
        return report
