"""JSON test registry (`.test-ids.json`).

Persists identifier -> {hash, lastNodeId, bodyLength, createdAt, lastSeen}.
Pure storage: entries are only created through the matcher, and all
mutations stay in memory until `save()`.

A single run owns the file. Concurrent runs against the same path race on
the final write (last writer wins).
"""

from __future__ import annotations

import json
import time
import uuid
from dataclasses import replace
from pathlib import Path
from typing import Callable, Iterable, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from testid.core.records import RegistryEntry


logger = structlog.get_logger(__name__)


class StoredEntry(BaseModel):
    """On-disk shape of one registry entry."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    hash: str = Field(min_length=1)
    last_node_id: str = Field(alias="lastNodeId")
    body_length: int = Field(default=0, alias="bodyLength", ge=0)
    created_at: int = Field(alias="createdAt")
    last_seen: int = Field(alias="lastSeen")


_REGISTRY_ADAPTER = TypeAdapter(dict[str, StoredEntry])


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def registry_json_text(entries: Iterable[RegistryEntry]) -> str:
    """Serialize entries into the persisted registry layout."""

    doc = {
        e.identifier: StoredEntry(
            hash=e.fingerprint,
            last_node_id=e.last_location,
            body_length=e.body_length,
            created_at=e.created_at,
            last_seen=e.last_seen,
        ).model_dump(by_alias=True)
        for e in entries
    }
    return json.dumps(doc, indent=2, ensure_ascii=False) + "\n"


class TestRegistry:
    __test__ = False  # not a pytest test class

    def __init__(self, path: str | Path = ".test-ids.json", *, clock: Optional[Callable[[], int]] = None) -> None:
        self.path = Path(path).resolve()
        self._clock = clock or _now_ms
        self._entries: dict[str, RegistryEntry] = {}
        self._by_fingerprint: dict[str, str] = {}
        self.load()

    def load(self) -> None:
        """(Re)load the mapping from disk; never raises."""

        self._entries = {}
        if self.path.exists():
            try:
                raw = self.path.read_text(encoding="utf-8")
                stored = _REGISTRY_ADAPTER.validate_json(raw)
            except (OSError, UnicodeDecodeError, ValidationError) as e:
                logger.warning("registry.load_failed", path=str(self.path), error=str(e))
                stored = {}
            self._entries = {
                identifier: RegistryEntry(
                    identifier=identifier,
                    fingerprint=s.hash,
                    last_location=s.last_node_id,
                    body_length=s.body_length,
                    created_at=s.created_at,
                    last_seen=s.last_seen,
                )
                for identifier, s in stored.items()
            }
        self._reindex()
        logger.debug("registry.loaded", path=str(self.path), size=len(self._entries))

    def save(self) -> bool:
        """Write the full mapping back to disk. Failures are logged, not raised."""

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(registry_json_text(self._entries.values()), encoding="utf-8")
        except OSError as e:
            logger.error("registry.save_failed", path=str(self.path), error=str(e))
            return False
        logger.debug("registry.saved", path=str(self.path), size=len(self._entries))
        return True

    def _reindex(self) -> None:
        # First entry in insertion order wins, same as a linear scan.
        self._by_fingerprint = {}
        for identifier, entry in self._entries.items():
            self._by_fingerprint.setdefault(entry.fingerprint, identifier)

    def find_by_fingerprint(self, fingerprint: str) -> Optional[RegistryEntry]:
        identifier = self._by_fingerprint.get(fingerprint)
        return self._entries.get(identifier) if identifier is not None else None

    def find_by_identifier(self, identifier: str) -> Optional[RegistryEntry]:
        return self._entries.get(identifier)

    def add(self, fingerprint: str, location: str, body_length: int) -> str:
        identifier = str(uuid.uuid4())
        now = self._clock()
        self._entries[identifier] = RegistryEntry(
            identifier=identifier,
            fingerprint=fingerprint,
            last_location=location,
            body_length=body_length,
            created_at=now,
            last_seen=now,
        )
        self._by_fingerprint.setdefault(fingerprint, identifier)
        return identifier

    def update(self, identifier: str, fingerprint: str, location: str, body_length: int) -> None:
        entry = self._entries.get(identifier)
        if entry is None:
            return
        self._entries[identifier] = replace(
            entry,
            fingerprint=fingerprint,
            last_location=location,
            body_length=body_length,
            last_seen=self._clock(),
        )
        if entry.fingerprint != fingerprint:
            self._reindex()

    def cleanup(self, active_identifiers: Iterable[str]) -> int:
        """Remove every entry whose identifier is not active; return the count removed."""

        active = set(active_identifiers)
        stale = [identifier for identifier in self._entries if identifier not in active]
        for identifier in stale:
            del self._entries[identifier]
        if stale:
            self._reindex()
        return len(stale)

    def size(self) -> int:
        return len(self._entries)

    def all_entries(self) -> list[RegistryEntry]:
        return list(self._entries.values())

    def all_fingerprints(self) -> list[str]:
        return [e.fingerprint for e in self._entries.values()]

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._entries
