import itertools
import json
import re
from pathlib import Path

from structlog.testing import capture_logs

from testid.persistence.registry import TestRegistry


UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$")


def _clock(start: int = 1_000):
    return itertools.count(start).__next__


def test_missing_file_yields_empty_registry(tmp_path: Path) -> None:
    reg = TestRegistry(tmp_path / "ids.json")
    assert reg.size() == 0
    assert reg.all_entries() == []
    assert reg.find_by_fingerprint("a" * 40) is None


def test_add_mints_uuid_and_timestamps(tmp_path: Path) -> None:
    reg = TestRegistry(tmp_path / "ids.json", clock=_clock())
    identifier = reg.add("a" * 40, "a.test.js::adds", 25)

    assert UUID_RE.match(identifier)
    entry = reg.find_by_identifier(identifier)
    assert entry is not None
    assert entry.fingerprint == "a" * 40
    assert entry.last_location == "a.test.js::adds"
    assert entry.body_length == 25
    assert entry.created_at == entry.last_seen == 1_000
    assert identifier in reg
    assert len(reg) == 1


def test_update_refreshes_metadata_and_keeps_created_at(tmp_path: Path) -> None:
    reg = TestRegistry(tmp_path / "ids.json", clock=_clock())
    identifier = reg.add("a" * 40, "old.test.js::t", 10)
    reg.update(identifier, "b" * 40, "new.test.js::t", 12)

    entry = reg.find_by_identifier(identifier)
    assert entry.fingerprint == "b" * 40
    assert entry.last_location == "new.test.js::t"
    assert entry.body_length == 12
    assert entry.created_at == 1_000
    assert entry.last_seen == 1_001
    assert reg.find_by_fingerprint("a" * 40) is None
    assert reg.find_by_fingerprint("b" * 40).identifier == identifier


def test_update_of_unknown_identifier_is_a_noop(tmp_path: Path) -> None:
    reg = TestRegistry(tmp_path / "ids.json")
    reg.update("00000000-0000-0000-0000-000000000000", "a" * 40, "x::y", 1)
    assert reg.size() == 0


def test_find_by_fingerprint_returns_first_inserted(tmp_path: Path) -> None:
    path = tmp_path / "ids.json"
    doc = {
        "first": {"hash": "dup", "lastNodeId": "a::1", "bodyLength": 1, "createdAt": 1, "lastSeen": 1},
        "second": {"hash": "dup", "lastNodeId": "a::2", "bodyLength": 1, "createdAt": 2, "lastSeen": 2},
    }
    path.write_text(json.dumps(doc), encoding="utf-8")

    reg = TestRegistry(path)
    assert reg.find_by_fingerprint("dup").identifier == "first"

    reg.update("first", "other", "a::1", 1)
    assert reg.find_by_fingerprint("dup").identifier == "second"


def test_cleanup_removes_inactive_entries_once(tmp_path: Path) -> None:
    reg = TestRegistry(tmp_path / "ids.json")
    keep = reg.add("a" * 40, "a::keep", 1)
    reg.add("b" * 40, "a::drop1", 1)
    reg.add("c" * 40, "a::drop2", 1)

    assert reg.cleanup({keep}) == 2
    assert reg.cleanup({keep}) == 0
    assert [e.identifier for e in reg.all_entries()] == [keep]
    assert reg.all_fingerprints() == ["a" * 40]
    assert reg.find_by_fingerprint("b" * 40) is None


def test_save_and_reload_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "ids.json"
    reg = TestRegistry(path, clock=_clock())
    first = reg.add("a" * 40, "a.test.js::one", 11)
    second = reg.add("b" * 40, "a.test.js::two", 22)
    reg.update(second, "c" * 40, "b.test.js::two", 23)
    assert reg.save() is True

    reloaded = TestRegistry(path)
    assert reloaded.all_entries() == reg.all_entries()
    assert reloaded.find_by_fingerprint("c" * 40).identifier == second
    assert reloaded.find_by_identifier(first) == reg.find_by_identifier(first)


def test_persisted_layout_and_stable_bytes(tmp_path: Path) -> None:
    path = tmp_path / "ids.json"
    reg = TestRegistry(path, clock=_clock(5))
    identifier = reg.add("a" * 40, "a.test.js::one", 11)
    reg.save()
    first_bytes = path.read_bytes()

    doc = json.loads(first_bytes)
    assert doc == {
        identifier: {
            "hash": "a" * 40,
            "lastNodeId": "a.test.js::one",
            "bodyLength": 11,
            "createdAt": 5,
            "lastSeen": 5,
        }
    }

    TestRegistry(path).save()
    assert path.read_bytes() == first_bytes


def test_unparseable_file_resets_with_warning(tmp_path: Path) -> None:
    path = tmp_path / "ids.json"
    path.write_text("{not json", encoding="utf-8")

    with capture_logs() as logs:
        reg = TestRegistry(path)

    assert reg.size() == 0
    assert any(e["event"] == "registry.load_failed" and e["log_level"] == "warning" for e in logs)


def test_wrong_shape_resets_to_empty(tmp_path: Path) -> None:
    path = tmp_path / "ids.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")
    assert TestRegistry(path).size() == 0

    path.write_text(json.dumps({"x": {"hash": "h"}}), encoding="utf-8")
    assert TestRegistry(path).size() == 0


def test_save_failure_is_logged_not_raised(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("file, not a directory", encoding="utf-8")
    reg = TestRegistry(blocker / "ids.json")
    reg.add("a" * 40, "a::b", 1)

    with capture_logs() as logs:
        assert reg.save() is False

    assert reg.size() == 1
    assert any(e["event"] == "registry.save_failed" for e in logs)
