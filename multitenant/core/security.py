"""
Security Module

Handles password hashing and JWT token generation/validation.
Uses industry-standard libraries (passlib with bcrypt, python-jose).

SECURITY NOTES:
- Passwords are hashed with bcrypt (slow by design to prevent brute force)
- Tokens expire; there is no revocation list, so a leaked token stays
  valid until its exp claim passes
- Token payload carries tenant_id and role next to the user id
"""
from datetime import datetime, timedelta, timezone
from typing import NamedTuple, Optional

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from multitenant.core.exceptions import TokenExpiredError, TokenInvalidError


class PasswordHasher:
    """
    Salted one-way password hashing.

    Rounds default to 12 in production settings; tests drop to 4 to keep
    the suite fast.
    """

    def __init__(self, rounds: int = 12):
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    def hash(self, password: str) -> str:
        """
        Hash a password using bcrypt.

        NOTE: This is intentionally slow (100ms+ at 12 rounds).
        """
        return self._context.hash(password)

    def dummy_verify(self) -> None:
        """Spend the time of a real verification; used when there is no hash to check."""
        self._context.dummy_verify()

    def verify(self, plain_password: str, hashed_password: Optional[str]) -> bool:
        """Constant-time check of a password against its hash."""
        if not hashed_password:
            return False
        try:
            return self._context.verify(plain_password, hashed_password)
        except (ValueError, TypeError):
            # Malformed stored hash
            return False


class TokenClaims(NamedTuple):
    """Identity decoded from a verified access token."""

    user_id: str
    tenant_id: str
    role: str


class TokenService:
    """
    Issues and verifies signed, time-limited session tokens.

    Claims:
    - sub: user id
    - tenant_id: owning tenant
    - role: role at issue time
    - iat / exp: issued at / expiration
    """

    def __init__(self, secret: str, algorithm: str = "HS256", expire_minutes: int = 60 * 24 * 7):
        self.secret = secret
        self.algorithm = algorithm
        self.expires_in = timedelta(minutes=expire_minutes)

    def issue(
        self,
        user_id: str,
        tenant_id: str,
        role: str,
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "tenant_id": str(tenant_id),
            "role": getattr(role, "value", role),
            "iat": now,
            "exp": now + (expires_delta if expires_delta is not None else self.expires_in),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """
        Decode and verify a token.

        Raises TokenExpiredError past expiration and TokenInvalidError for
        anything else wrong: signature, structure, missing claims.
        """
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except ExpiredSignatureError as exc:
            raise TokenExpiredError() from exc
        except JWTError as exc:
            raise TokenInvalidError() from exc

        user_id = payload.get("sub")
        tenant_id = payload.get("tenant_id")
        role = payload.get("role")
        if not user_id or not tenant_id or not role:
            raise TokenInvalidError()

        return TokenClaims(user_id=user_id, tenant_id=tenant_id, role=role)
