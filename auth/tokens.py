"""
auth/tokens.py -- Password hashing and bearer-token signing.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with the configured secret
       and carry the username, issued-at and expiry claims. Verification
       raises TokenInvalid on any failure -- the route layer turns that into
       a 403. A missing token is a different failure (TokenMissing, 401) and
       is detected before the signer is ever called.

  Passwords: bcrypt used directly (no passlib wrapper). Bcrypt is the right
       choice for low-entropy secrets because its cost factor makes
       brute-force expensive. The cost factor is a constructor argument so
       tests can run with the minimum of 4 rounds.

Both collaborators take their secrets and policy through the constructor.
Nothing here reads settings at import time.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from auth.errors import TokenInvalid

logger = logging.getLogger("contrib.auth")

# bcrypt only looks at the first 72 bytes of its input; bcrypt >= 5 raises
# instead of truncating. AuthService rejects longer passwords up front.
BCRYPT_MAX_BYTES = 72


# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


class PasswordHasher:
    """One-way salted hash + verify for account passwords."""

    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds

    def hash(self, plain: str) -> str:
        """Return a bcrypt hash of the given plaintext password."""
        return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, plain: str, hashed: str) -> bool:
        """Return True if the plaintext password matches the bcrypt hash.

        A malformed stored hash or an over-long candidate counts as a
        mismatch rather than an error.
        """
        try:
            return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
        except (ValueError, TypeError):
            return False


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


class TokenSigner:
    """Issues and verifies time-limited HS256 bearer tokens."""

    ALGORITHM = "HS256"

    def __init__(self, secret_key: str, expire_seconds: int = 3600) -> None:
        if not secret_key:
            raise ValueError("TokenSigner requires a non-empty secret key")
        self._secret_key = secret_key
        self.expire_seconds = expire_seconds

    def issue(self, username: str, now: datetime | None = None) -> str:
        """Encode a signed JWT for username, valid for expire_seconds from now.

        now is injectable so callers (and tests) can mint tokens that are
        already expired.
        """
        issued = now or datetime.now(timezone.utc)
        payload = {
            "username": username,
            "iat": issued,
            "exp": issued + timedelta(seconds=self.expire_seconds),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self.ALGORITHM)

    def verify(self, token: str) -> str:
        """Decode and verify a JWT and return its username claim.

        Raises TokenInvalid on any failure.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.ALGORITHM],
                options={"require_exp": True, "require_iat": True},
            )
        except ExpiredSignatureError as exc:
            logger.info("Rejected expired token")
            raise TokenInvalid() from exc
        except JWTError as exc:
            logger.info("Rejected token: %s", exc)
            raise TokenInvalid() from exc

        username = payload.get("username")
        if not isinstance(username, str) or not username:
            raise TokenInvalid()
        return username
