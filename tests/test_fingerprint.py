import hashlib

import pytest

from testid.core.fingerprint import FingerprintOptions, TestFingerprinter
from testid.core.normalizer import normalize
from testid.core.records import TestOccurrence


def _occ(body: str, name: str = "t") -> TestOccurrence:
    return TestOccurrence(name=name, body=body, source="")


def test_default_is_sha1_over_normalized_body() -> None:
    fp = TestFingerprinter()
    body = "{ expect(1+1).toBe(2) }"
    expected = hashlib.sha1(normalize(body).encode("utf-8")).hexdigest()

    assert fp.fingerprint(_occ(body)) == expected
    assert fp.digest_size == 40
    assert len(expected) == 40


def test_sha256_digest_width() -> None:
    fp = TestFingerprinter(FingerprintOptions(hash_algorithm="sha256"))
    h = fp.fingerprint(_occ("{ expect(1).toBe(1) }"))
    assert len(h) == 64
    assert fp.digest_size == 64
    assert all(c in "0123456789abcdef" for c in h)


def test_fingerprint_is_deterministic() -> None:
    a = TestFingerprinter().fingerprint(_occ("{ expect(getValue()).toBe(42) }"))
    b = TestFingerprinter().fingerprint(_occ("{ expect(getValue()).toBe(42) }"))
    assert a == b


def test_whitespace_and_comments_do_not_change_fingerprint() -> None:
    fp = TestFingerprinter()
    assert fp.fingerprint(_occ("{ expect(1+1).toBe(2) }")) == fp.fingerprint(
        _occ("{ /* c */ expect(1 + 1).toBe(2) /* c */ }")
    )


def test_content_change_changes_fingerprint() -> None:
    fp = TestFingerprinter()
    assert fp.fingerprint(_occ("{ expect(1+1).toBe(2) }")) != fp.fingerprint(_occ("{ expect(1+1).toBe(3) }"))


def test_identifier_preservation_toggle() -> None:
    a = _occ("{ const result = compute(2); expect(result).toBe(4) }")
    b = _occ("{ const value = compute(2); expect(value).toBe(4) }")

    folded = TestFingerprinter()
    preserved = TestFingerprinter(FingerprintOptions(preserve_identifiers=True))

    assert folded.fingerprint(a) == folded.fingerprint(b)
    assert preserved.fingerprint(a) != preserved.fingerprint(b)


def test_declared_name_does_not_affect_fingerprint() -> None:
    fp = TestFingerprinter()
    body = "{ expect(2 + 2).toBe(4) }"
    assert fp.fingerprint(_occ(body, name="adds")) == fp.fingerprint(_occ(body, name="sums"))


def test_unknown_algorithm_is_rejected() -> None:
    with pytest.raises(ValueError):
        TestFingerprinter(FingerprintOptions(hash_algorithm="md5"))  # type: ignore[arg-type]


def test_url_in_string_does_not_hide_rest_of_line() -> None:
    fp = TestFingerprinter()
    a = fp.fingerprint(_occ('{ expect(fetchUrl("http://a.example")).toBe(1) }'))
    b = fp.fingerprint(_occ('{ expect(fetchUrl("http://a.example")).toBe(2) }'))
    assert a != b


def test_expected_string_literal_changes_fingerprint() -> None:
    fp = TestFingerprinter()
    assert fp.fingerprint(_occ('{ expect(greet()).toBe("hello") }')) != fp.fingerprint(
        _occ('{ expect(greet()).toBe("goodbye") }')
    )
