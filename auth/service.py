"""
auth/service.py -- Account policy: registration, login, tokens, contributions,
and password changes.

AuthService is the only component with rules of its own. It orchestrates the
three collaborators handed to its constructor:

  UserStore       -- persistence, uniqueness, atomic updates
  PasswordHasher  -- bcrypt hash / verify
  TokenSigner     -- JWT issue / verify

Every failure is raised as an AuthError subclass (auth/errors.py). Database
errors are logged and re-raised as InternalError; nothing is retried.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.errors import (
    InternalError,
    InvalidCredentials,
    InvalidInput,
    TokenMissing,
    UserExists,
    UserNotFound,
)
from auth.models import User
from auth.store import UserStore
from auth.tokens import BCRYPT_MAX_BYTES, PasswordHasher, TokenSigner

logger = logging.getLogger("contrib.auth")


class AuthService:
    """Account operations over injected store, hasher, and signer."""

    def __init__(
        self,
        store: UserStore,
        hasher: PasswordHasher,
        signer: TokenSigner,
        min_password_length: int = 6,
    ) -> None:
        self.store = store
        self.hasher = hasher
        self.signer = signer
        self.min_password_length = min_password_length

    # ------------------------------------------------------------------
    # Registration and login
    # ------------------------------------------------------------------

    def register(self, username: str, password: str) -> None:
        """Create a new account with an empty contributions list.

        The lookup before the insert is only a fast path. The UNIQUE
        constraint decides races: an IntegrityError on insert is reported as
        UserExists just like a pre-check hit.
        """
        with self._collaborator_errors("register"):
            if self.store.get_by_username(username) is not None:
                raise UserExists()
            self._check_password(password, "Password")
            try:
                self.store.create_user(User(username=username, hashed_password=self.hasher.hash(password)))
            except IntegrityError as exc:
                raise UserExists() from exc
        logger.info("Registered user %s", username)

    def login(self, username: str, password: str) -> str:
        """Verify credentials and return a signed bearer token."""
        with self._collaborator_errors("login"):
            user = self.store.get_by_username(username)
        if user is None:
            raise UserNotFound()
        if not self.hasher.verify(password, user.hashed_password):
            logger.warning("Failed login for %s", username)
            raise InvalidCredentials()
        return self.signer.issue(user.username)

    def verify_token(self, token: str | None) -> str:
        """Return the username claim of a valid token.

        Raises TokenMissing when no token was presented and TokenInvalid
        (from the signer) when one was presented but does not verify.
        """
        if not token:
            raise TokenMissing()
        return self.signer.verify(token)

    # ------------------------------------------------------------------
    # Contributions
    # ------------------------------------------------------------------

    def add_contribution(self, username: str, contribution: str | None) -> None:
        """Append contribution for username, stored verbatim.

        Only a missing or empty string is rejected. An append for a username
        with no record changes nothing and still succeeds.
        """
        if not contribution:
            raise InvalidInput("Contribution data is required")
        with self._collaborator_errors("add_contribution"):
            appended = self.store.append_contribution(username, contribution)
        if not appended:
            logger.warning("Contribution for unknown user %s dropped", username)

    def list_contributions(self, username: str) -> list[str]:
        with self._collaborator_errors("list_contributions"):
            contributions = self.store.list_contributions(username)
        if contributions is None:
            raise UserNotFound()
        return contributions

    # ------------------------------------------------------------------
    # Passwords
    # ------------------------------------------------------------------

    def update_password(self, username: str, current_password: str, new_password: str) -> None:
        """Replace the password after verifying the current one.

        The replacement is conditional on the stored hash still being the one
        that was verified. If another request changed it in between, the
        current password no longer holds and the call fails as
        InvalidCredentials.
        """
        self._check_password(new_password, "New password")
        with self._collaborator_errors("update_password"):
            user = self.store.get_by_username(username)
            if user is None:
                raise UserNotFound()
            if not self.hasher.verify(current_password, user.hashed_password):
                logger.warning("Password update for %s rejected: current password mismatch", username)
                raise InvalidCredentials("Current password is incorrect")
            swapped = self.store.replace_password_hash(
                username, self.hasher.hash(new_password), expected_hash=user.hashed_password
            )
        if not swapped:
            raise InvalidCredentials("Current password is incorrect")
        logger.info("Password updated for %s", username)

    def reset_password(self, username: str, new_password: str) -> None:
        """Replace the password without any proof of the current one.

        Anyone who knows a username can take over the account through this
        call. It is kept for compatibility and logged loudly; deployments
        can disable the route with ALLOW_PASSWORD_RESET=false.
        """
        self._check_password(new_password, "New password")
        with self._collaborator_errors("reset_password"):
            replaced = self.store.replace_password_hash(username, self.hasher.hash(new_password))
        if not replaced:
            raise UserNotFound()
        logger.warning("Password reset without current-password verification for %s", username)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check_password(self, password: str | None, label: str) -> None:
        if password is None or len(password) < self.min_password_length:
            raise InvalidInput(f"{label} must be at least {self.min_password_length} characters long")
        if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
            raise InvalidInput(f"{label} must be at most {BCRYPT_MAX_BYTES} bytes long")

    @contextmanager
    def _collaborator_errors(self, operation: str) -> Iterator[None]:
        """Translate unexpected database failures into InternalError."""
        try:
            yield
        except SQLAlchemyError as exc:
            logger.exception("Database error during %s", operation)
            raise InternalError() from exc
