"""Tests for password hashing."""

from workday.core.auth.password import hash_password, verify_password


class TestPasswordHashing:
    """Test bcrypt helpers."""

    def test_hash_and_verify(self) -> None:
        """Correct password verifies."""
        hashed = hash_password("s3cret-pass", rounds=4)  # pragma: allowlist secret

        assert hashed != "s3cret-pass"
        assert verify_password("s3cret-pass", hashed)

    def test_wrong_password(self) -> None:
        """Wrong password does not verify."""
        hashed = hash_password("s3cret-pass", rounds=4)  # pragma: allowlist secret

        assert not verify_password("other-pass", hashed)

    def test_salted(self) -> None:
        """Hashing twice yields different hashes."""
        assert hash_password("same", rounds=4) != hash_password("same", rounds=4)

    def test_malformed_hash_is_mismatch(self) -> None:
        """A corrupt stored hash fails closed instead of raising."""
        assert not verify_password("anything", "not-a-bcrypt-hash")

    def test_empty_inputs(self) -> None:
        """Empty password or hash never verifies."""
        hashed = hash_password("x", rounds=4)

        assert not verify_password("", hashed)
        assert not verify_password("x", "")

    def test_long_passwords_truncated_consistently(self) -> None:
        """Inputs beyond bcrypt's 72 bytes hash and verify without error."""
        long_password = "p" * 100
        hashed = hash_password(long_password, rounds=4)

        assert verify_password(long_password, hashed)
