"""
Unit tests for core.security module.
Tests password hashing, temporary passwords and session token lifecycle.
"""
import hashlib
import string

from dissertation_portal.config import settings
from dissertation_portal.core.security import (
    MS_PER_HOUR,
    TEMP_PASSWORD_CHARS,
    generate_temporary_password,
    hash_password,
    issue_token,
    now_ms,
    refresh_token,
    remaining_ms,
    validate_token,
    verify_password,
)


class TestPasswordHashing:
    """Tests for password hashing and verification."""

    def test_hash_is_deterministic(self):
        """Same password and email always give the same digest."""
        first = hash_password("TestPassword123", "a@u.edu")
        for _ in range(5):
            assert hash_password("TestPassword123", "a@u.edu") == first

    def test_hash_matches_salted_sha256(self):
        """Digest is SHA-256 over password + salt + lowercased email."""
        expected = hashlib.sha256(
            ("demo123" + settings.password_salt + "student@university.edu").encode("utf-8")
        ).hexdigest()
        assert hash_password("demo123", "Student@University.edu") == expected

    def test_hash_is_hex_digest(self):
        hashed = hash_password("TestPassword123", "a@u.edu")
        assert len(hashed) == 64
        assert set(hashed) <= set(string.hexdigits.lower())

    def test_hash_changes_with_password(self):
        assert hash_password("one", "a@u.edu") != hash_password("two", "a@u.edu")

    def test_hash_changes_with_email(self):
        assert hash_password("same", "a@u.edu") != hash_password("same", "b@u.edu")

    def test_email_case_does_not_matter(self):
        assert hash_password("same", "A@U.EDU") == hash_password("same", "a@u.edu")

    def test_verify_password_correct_password(self):
        hashed = hash_password("TestPassword123", "a@u.edu")
        assert verify_password("TestPassword123", "a@u.edu", hashed) is True

    def test_verify_password_incorrect_password(self):
        hashed = hash_password("TestPassword123", "a@u.edu")
        assert verify_password("WrongPassword456", "a@u.edu", hashed) is False

    def test_verify_password_wrong_email(self):
        """The digest is bound to the email it was created for."""
        hashed = hash_password("TestPassword123", "a@u.edu")
        assert verify_password("TestPassword123", "b@u.edu", hashed) is False

    def test_verify_password_empty_digest(self):
        assert verify_password("anything", "a@u.edu", "") is False


class TestTemporaryPasswords:
    def test_default_length(self):
        assert len(generate_temporary_password()) == 12

    def test_uses_mixed_alphabet(self):
        for _ in range(20):
            password = generate_temporary_password()
            assert set(password) <= set(TEMP_PASSWORD_CHARS)

    def test_passwords_differ(self):
        assert len({generate_temporary_password() for _ in range(10)}) == 10


class TestSessionTokens:
    """Tests for token issue, validation and refresh."""

    def test_issue_token_shape(self):
        token = issue_token("user-1", "student", now=1_000_000)
        assert len(token.token) == 64
        assert set(token.token) <= set(string.hexdigits.lower())
        assert token.user_id == "user-1"
        assert token.role == "student"
        assert token.session_id
        assert token.issued_at == 1_000_000
        assert token.expires_at == 1_000_000 + 24 * MS_PER_HOUR

    def test_expiry_after_issue(self):
        token = issue_token("user-1", "student")
        assert token.expires_at > token.issued_at

    def test_valid_right_after_issue(self):
        assert validate_token(issue_token("user-1", "guide")) is True

    def test_expired_token_is_invalid(self):
        token = issue_token("user-1", "guide", now=now_ms() - 25 * MS_PER_HOUR)
        assert validate_token(token) is False

    def test_token_invalid_exactly_at_expiry(self):
        token = issue_token("user-1", "guide", now=0)
        assert validate_token(token, now=token.expires_at) is False
        assert validate_token(token, now=token.expires_at - 1) is True

    def test_missing_token_is_invalid(self):
        assert validate_token(None) is False

    def test_blank_secret_is_invalid(self):
        token = issue_token("user-1", "guide").model_copy(update={"token": ""})
        assert validate_token(token) is False

    def test_refresh_rotates_secret_and_session(self):
        original = issue_token("user-9", "examiner", now=5_000)
        snapshot = original.model_copy()
        refreshed = refresh_token(original, now=6_000)

        assert refreshed.token != original.token
        assert refreshed.session_id != original.session_id
        assert refreshed.expires_at > original.expires_at
        assert refreshed.user_id == "user-9"
        assert refreshed.role == "examiner"
        # Input is not mutated
        assert original == snapshot

    def test_different_users_get_different_tokens(self):
        first = issue_token("user-1", "student")
        second = issue_token("user-2", "student")
        assert first.token != second.token
        assert first.session_id != second.session_id

    def test_remaining_ms(self):
        token = issue_token("user-1", "student", now=0)
        assert remaining_ms(token, now=MS_PER_HOUR) == 23 * MS_PER_HOUR
