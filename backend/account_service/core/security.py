# account_service/core/security.py
"""
Security module for authentication.
Handles password hashing and JWT token creation/validation.

Both primitives are CPU-bound, so the async entry points run them in the
threadpool to keep the event loop free for other requests.
"""
import datetime as dt
from dataclasses import dataclass

import jwt  # PyJWT
from fastapi.concurrency import run_in_threadpool
from passlib.context import CryptContext

from account_service.config import Settings
from account_service.core.errors import TokenExpired, TokenInvalid


class PasswordHasher:
    """
    One-way password hashing with bcrypt.

    The salt and cost factor travel inside the hash string, so verification
    needs nothing but the stored hash. passlib performs the comparison in
    constant time.
    """

    def __init__(self, rounds: int = 12):
        self.context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,  # Work factor (2**rounds iterations)
        )
        # Stand-in hash at the same cost, verified when no account matches a login
        self.dummy_hash = self.context.hash("account-service-timing-guard")

    def hash_password(self, plain: str) -> str:
        """
        Hash a plain text password.

        Args:
            plain: Plain text password to hash

        Returns:
            Hashed password string (safe to store in database)
        """
        return self.context.hash(plain)

    def verify_password(self, plain: str, hashed: str) -> bool:
        """
        Verify a plain text password against a stored hash.

        Returns:
            True if password matches, False otherwise (including malformed hashes)
        """
        try:
            return self.context.verify(plain, hashed)
        except (ValueError, TypeError):
            return False

    async def hash(self, plain: str) -> str:
        return await run_in_threadpool(self.hash_password, plain)

    async def verify(self, plain: str, hashed: str) -> bool:
        return await run_in_threadpool(self.verify_password, plain, hashed)


@dataclass(frozen=True)
class TokenClaims:
    """Identity extracted from a verified token."""
    subject: str  # User id
    issued_at: float  # Unix timestamp of issuance, with sub-second precision


class TokenService:
    """
    Issues and verifies signed, time-limited identity tokens.

    Secret, algorithm and lifetime are fixed at construction time; one
    instance is built per application from Settings.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", expires_in: dt.timedelta = dt.timedelta(days=90)):
        self.secret = secret
        self.algorithm = algorithm
        self.expires_in = expires_in

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            expires_in=dt.timedelta(minutes=settings.access_token_expire_minutes),
        )

    def issue(self, user_id: str, issued_at: dt.datetime | None = None) -> str:
        """
        Create a JWT for the given user.

        Args:
            user_id: Unique user identifier, stored as the "sub" claim
            issued_at: Issuance time (defaults to now, UTC)

        Returns:
            Encoded JWT token string

        Token payload includes:
            - sub: Subject (user ID)
            - iat: Issued at timestamp
            - exp: Expiration timestamp
        """
        now = issued_at or dt.datetime.now(dt.timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=dt.timezone.utc)
        # Fractional NumericDate, compared against password_changed_at at full precision
        iat = now.timestamp()
        payload = {
            "sub": str(user_id),
            "iat": iat,
            "exp": iat + self.expires_in.total_seconds(),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode(self, token: str) -> TokenClaims:
        """
        Decode and validate a token.

        Raises:
            TokenExpired: If the token is past its expiry
            TokenInvalid: If the signature is wrong, the token is malformed,
                or a required claim is missing
        """
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "iat", "exp"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpired() from exc
        except jwt.InvalidTokenError as exc:
            raise TokenInvalid() from exc
        return TokenClaims(subject=str(payload["sub"]), issued_at=float(payload["iat"]))

    async def verify(self, token: str) -> TokenClaims:
        return await run_in_threadpool(self.decode, token)


def changed_password_after(password_changed_at: dt.datetime | None, issued_at: float) -> bool:
    """
    Return True if the password was changed strictly after the token was issued.

    Both sides keep sub-second precision, so any token minted before the
    change is stale and the token minted right after it is not.
    """
    if password_changed_at is None:
        return False
    if password_changed_at.tzinfo is None:
        password_changed_at = password_changed_at.replace(tzinfo=dt.timezone.utc)
    return password_changed_at.timestamp() > issued_at
