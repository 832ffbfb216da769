"""
Unit tests for core.security module.
Tests password hashing, JWT token creation/validation and the
password-changed-after-token check.
"""
import datetime as dt

import jwt
import pytest

from account_service.config import Settings
from account_service.core.errors import TokenExpired, TokenInvalid, Unauthenticated
from account_service.core.security import (
    PasswordHasher,
    TokenClaims,
    TokenService,
    changed_password_after,
)


@pytest.fixture
def hasher():
    return PasswordHasher(rounds=4)


@pytest.fixture
def token_service():
    return TokenService(secret="unit-secret", algorithm="HS256", expires_in=dt.timedelta(minutes=30))


class TestPasswordHashing:
    """Tests for password hashing and verification."""

    def test_hash_password_returns_different_hash_each_time(self, hasher):
        """Password hashing should produce different hashes (salt included)."""
        password = "TestPassword123"
        assert hasher.hash_password(password) != hasher.hash_password(password)

    def test_hash_is_not_plain_text(self, hasher):
        password = "TestPassword123"
        hashed = hasher.hash_password(password)
        assert isinstance(hashed, str)
        assert hashed != password
        assert password not in hashed

    def test_hash_embeds_cost_factor(self):
        hashed = PasswordHasher(rounds=5).hash_password("TestPassword123")
        assert hashed.startswith("$2b$05$")

    def test_default_cost_factor_is_twelve(self):
        assert PasswordHasher().hash_password("TestPassword123").startswith("$2b$12$")

    def test_verify_password_correct_password(self, hasher):
        hashed = hasher.hash_password("TestPassword123")
        assert hasher.verify_password("TestPassword123", hashed) is True

    def test_verify_password_incorrect_password(self, hasher):
        hashed = hasher.hash_password("TestPassword123")
        assert hasher.verify_password("WrongPassword456", hashed) is False

    def test_dummy_hash_uses_configured_cost(self):
        assert PasswordHasher(rounds=5).dummy_hash.startswith("$2b$05$")

    def test_dummy_hash_rejects_passwords(self, hasher):
        assert hasher.verify_password("TestPassword123", hasher.dummy_hash) is False

    def test_verify_password_malformed_hash(self, hasher):
        """A corrupt stored hash never verifies."""
        assert hasher.verify_password("TestPassword123", "not-a-hash") is False

    @pytest.mark.asyncio
    async def test_async_variants(self, hasher):
        hashed = await hasher.hash("AsyncPassword1")
        assert await hasher.verify("AsyncPassword1", hashed) is True
        assert await hasher.verify("AsyncPassword2", hashed) is False


class TestJWTTokens:
    """Tests for JWT token creation and validation."""

    def test_issue_returns_string(self, token_service):
        token = token_service.issue("test-user-123")
        assert isinstance(token, str)
        assert token.count(".") == 2

    def test_decode_returns_subject_and_issued_at(self, token_service):
        before = int(dt.datetime.now(dt.timezone.utc).timestamp())
        claims = token_service.decode(token_service.issue("test-user-456"))
        assert isinstance(claims, TokenClaims)
        assert claims.subject == "test-user-456"
        assert claims.issued_at >= before

    def test_token_expiration_time(self, token_service):
        """exp - iat should match the configured lifetime."""
        token = token_service.issue("test-user-time")
        payload = jwt.decode(token, "unit-secret", algorithms=["HS256"])
        assert payload["exp"] - payload["iat"] == pytest.approx(30 * 60)

    def test_issued_at_can_be_backdated(self, token_service):
        issued = dt.datetime(2024, 1, 1, tzinfo=dt.timezone.utc)
        service = TokenService(secret="unit-secret", expires_in=dt.timedelta(days=36500))
        claims = service.decode(service.issue("u1", issued_at=issued))
        assert claims.issued_at == issued.timestamp()

    def test_issued_at_keeps_sub_second_precision(self, token_service):
        issued = dt.datetime.now(dt.timezone.utc).replace(microsecond=250_000)
        payload = jwt.decode(token_service.issue("u1", issued_at=issued), "unit-secret", algorithms=["HS256"])
        assert payload["iat"] == pytest.approx(issued.timestamp())
        assert payload["iat"] % 1 == pytest.approx(0.25)

    def test_expired_token_raises_token_expired(self, token_service):
        issued = dt.datetime.now(dt.timezone.utc) - dt.timedelta(hours=1)
        token = token_service.issue("test-user-exp", issued_at=issued)
        with pytest.raises(TokenExpired):
            token_service.decode(token)

    def test_wrong_secret_raises_token_invalid(self, token_service):
        other = TokenService(secret="another-secret")
        with pytest.raises(TokenInvalid):
            token_service.decode(other.issue("test-user-secret"))

    def test_malformed_token_raises_token_invalid(self, token_service):
        with pytest.raises(TokenInvalid):
            token_service.decode("invalid.token.here")

    def test_missing_subject_raises_token_invalid(self, token_service):
        now = dt.datetime.now(dt.timezone.utc)
        token = jwt.encode({"iat": now, "exp": now + dt.timedelta(minutes=5)}, "unit-secret", algorithm="HS256")
        with pytest.raises(TokenInvalid):
            token_service.decode(token)

    def test_expired_and_invalid_share_status_but_not_code(self):
        """Both surface as 401 but remain distinguishable."""
        assert issubclass(TokenExpired, Unauthenticated)
        assert issubclass(TokenInvalid, Unauthenticated)
        assert TokenExpired.status_code == TokenInvalid.status_code == 401
        assert TokenExpired.code != TokenInvalid.code

    @pytest.mark.asyncio
    async def test_verify_offloads_decode(self, token_service):
        claims = await token_service.verify(token_service.issue("async-user"))
        assert claims.subject == "async-user"

    def test_from_settings(self):
        settings = Settings(jwt_secret="from-settings", access_token_expire_minutes=15)
        service = TokenService.from_settings(settings)
        assert service.secret == "from-settings"
        assert service.algorithm == "HS256"
        assert service.expires_in == dt.timedelta(minutes=15)


class TestChangedPasswordAfter:
    def test_never_changed(self):
        assert changed_password_after(None, 1_700_000_000) is False

    def test_changed_after_issue(self):
        changed = dt.datetime.fromtimestamp(1_700_000_100, tz=dt.timezone.utc)
        assert changed_password_after(changed, 1_700_000_000) is True

    def test_changed_before_issue(self):
        changed = dt.datetime.fromtimestamp(1_699_999_900, tz=dt.timezone.utc)
        assert changed_password_after(changed, 1_700_000_000) is False

    def test_change_later_in_the_same_second_is_stale(self):
        changed = dt.datetime.fromtimestamp(1_700_000_000.9, tz=dt.timezone.utc)
        assert changed_password_after(changed, 1_700_000_000.0) is True

    def test_token_issued_just_after_change_is_fresh(self):
        changed = dt.datetime.fromtimestamp(1_700_000_000.5, tz=dt.timezone.utc)
        assert changed_password_after(changed, 1_700_000_000.6) is False

    def test_token_from_service_is_stale_after_change(self, token_service):
        claims = token_service.decode(token_service.issue("u1"))
        changed = dt.datetime.now(dt.timezone.utc) + dt.timedelta(microseconds=1)
        assert changed_password_after(changed, claims.issued_at) is True

    def test_naive_timestamp_is_treated_as_utc(self):
        changed = dt.datetime(2024, 1, 1, 0, 0, 10)
        issued = int(dt.datetime(2024, 1, 1, tzinfo=dt.timezone.utc).timestamp())
        assert changed_password_after(changed, issued) is True
