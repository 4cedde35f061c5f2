"""Test bcrypt password hashing."""

from ssobroker.auth.passwords import PasswordHasher


def test_hash_and_verify(hasher):
    hashed = hasher.hash("correct horse")

    assert hashed != "correct horse"
    assert hasher.verify("correct horse", hashed)
    assert not hasher.verify("wrong horse", hashed)


def test_hashes_are_salted(hasher):
    assert hasher.hash("same") != hasher.hash("same")


def test_verify_without_hash():
    assert not PasswordHasher.verify("anything", None)
    assert not PasswordHasher.verify("anything", "")


def test_verify_malformed_hash():
    assert not PasswordHasher.verify("anything", "not-a-bcrypt-hash")


def test_long_password(hasher):
    """Passwords beyond bcrypt's 72-byte limit hash and verify."""
    password = "p" * 100
    assert hasher.verify(password, hasher.hash(password))
