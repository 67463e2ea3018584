import hashlib

from spec_store.core.hashing import digest, digests_equal, is_valid_digest, short_digest


def test_digest_is_sha256_hex():
    assert digest(b"abc") == hashlib.sha256(b"abc").hexdigest()
    assert digest("abc") == digest(b"abc")
    assert len(digest("")) == 64


def test_digest_encodes_text_as_utf8():
    assert digest("명세") == hashlib.sha256("명세".encode("utf-8")).hexdigest()


def test_short_digest():
    assert short_digest("abc") == digest("abc")[:16]


def test_digests_equal():
    value = digest("abc")

    assert digests_equal(value, digest("abc"))
    assert not digests_equal(value, digest("abd"))
    assert not digests_equal(None, value)
    assert not digests_equal("", value)
    assert not digests_equal(value, None)


def test_is_valid_digest():
    assert is_valid_digest(digest("abc"))
    assert not is_valid_digest("abc")
    assert not is_valid_digest(None)
