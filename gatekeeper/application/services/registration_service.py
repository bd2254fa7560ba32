"""Self-registration, login and status lookups for design tool users."""

from __future__ import annotations

import asyncio
import logging
import re
import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from ...domain.errors import (
    AccountPending,
    AccountRejected,
    DuplicateEmail,
    InvalidCredentials,
    MissingProof,
    NotFound,
    UserNotFound,
    ValidationError,
)
from ...domain.models import PaymentMethod, Rejected, User
from ...domain.ports.persistence import UserRepository
from ...infrastructure.storage.screenshot_store import LocalScreenshotStore, ScreenshotUpload
from .credential_service import MAX_PASSWORD_BYTES, Audience, CredentialService
from .guards import store_errors

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")
NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100
PASSWORD_MIN_LENGTH = 8


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class LoginResult:
    token: str
    user: User


@dataclass(frozen=True, slots=True)
class _Registration:
    name: str
    email: str
    password: str
    payment_method: PaymentMethod


class RegistrationService:
    """Creates pending accounts and lets approved users sign in."""

    def __init__(
        self,
        users: UserRepository,
        credentials: CredentialService,
        screenshots: LocalScreenshotStore,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._users = users
        self._credentials = credentials
        self._screenshots = screenshots
        self._clock = clock

    # Registration --------------------------------------------------------
    async def register(
        self,
        name: str,
        email: str,
        password: str,
        payment_method: str,
        screenshot_ref: Optional[str],
    ) -> User:
        with store_errors("Registration"):
            registration = self._prepare(name, email, password, payment_method, has_proof=bool(screenshot_ref))
            return await self._create(registration, screenshot_ref or "")

    async def register_with_upload(
        self,
        name: str,
        email: str,
        password: str,
        payment_method: str,
        upload: Optional[ScreenshotUpload],
    ) -> User:
        """Validate the form, store the proof, then create the pending account.

        The stored file is removed again if account creation fails.
        """
        with store_errors("Registration"):
            has_proof = upload is not None and bool(upload.data)
            registration = self._prepare(name, email, password, payment_method, has_proof=has_proof)
            reference = self._screenshots.save(
                upload.data, upload.filename, upload.content_type  # type: ignore[union-attr]
            )
            try:
                return await self._create(registration, reference)
            except Exception:
                self._screenshots.delete(reference)
                raise

    # Login ---------------------------------------------------------------
    async def login(self, email: str, password: str) -> LoginResult:
        email_clean = (email or "").strip().lower()
        if not email_clean or not password:
            raise ValidationError("Please provide email and password")

        with store_errors("Login"):
            user = self._users.get_user_by_email(email_clean)
            if user is None:
                logger.warning("Login failed for unknown email %s", email_clean)
                raise InvalidCredentials()
            matches = await asyncio.to_thread(self._credentials.verify_password, password, user.password_hash)
            if not matches:
                logger.warning("Login failed for user %s: wrong password", user.id)
                raise InvalidCredentials()

            state = user.lifecycle
            if isinstance(state, Rejected):
                raise AccountRejected(
                    data={"status": state.status.value, "isApproved": user.is_approved, "reason": state.reason}
                )
            if not user.can_access_designer():
                raise AccountPending(data={"status": user.status.value, "isApproved": user.is_approved})

            user = self._users.record_user_login(user.id, self._clock())
            token = self._credentials.issue_token(user.id, Audience.USER)
        logger.info("User %s logged in (login #%d)", user.id, user.login_count)
        return LoginResult(token=token, user=user)

    # Lookups -------------------------------------------------------------
    def get_status(self, email: Optional[str]) -> User:
        email_clean = (email or "").strip().lower()
        if not email_clean:
            raise ValidationError("Email is required")
        with store_errors("Status lookup"):
            user = self._users.get_user_by_email(email_clean)
        if user is None:
            raise NotFound("User not found")
        return user

    def get_profile(self, user_id: int) -> User:
        with store_errors("Profile lookup"):
            user = self._users.get_user_by_id(user_id)
        if user is None:
            raise UserNotFound()
        return user

    def update_profile(self, user_id: int, name: Optional[str]) -> User:
        with store_errors("Profile update"):
            user = self._users.get_user_by_id(user_id)
            if user is None:
                raise UserNotFound()
            if not name or not name.strip():
                return user
            return self._users.update_user_name(user_id, self._clean_name(name))

    # Helpers -------------------------------------------------------------
    def _prepare(
        self,
        name: str,
        email: str,
        password: str,
        payment_method: str,
        *,
        has_proof: bool,
    ) -> _Registration:
        email_clean = (email or "").strip().lower()
        if not email_clean:
            raise ValidationError("Email is required")
        if not EMAIL_PATTERN.match(email_clean):
            raise ValidationError("Please provide a valid email")
        if self._users.get_user_by_email(email_clean) is not None:
            raise DuplicateEmail()
        if not has_proof:
            raise MissingProof()

        if not password or len(password) < PASSWORD_MIN_LENGTH:
            raise ValidationError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError(f"Password cannot exceed {MAX_PASSWORD_BYTES} bytes")
        try:
            method = PaymentMethod((payment_method or "").strip().lower())
        except ValueError as exc:
            allowed = ", ".join(item.value for item in PaymentMethod)
            raise ValidationError(f"Payment method must be one of: {allowed}") from exc
        return _Registration(
            name=self._clean_name(name),
            email=email_clean,
            password=password,
            payment_method=method,
        )

    async def _create(self, registration: _Registration, screenshot_ref: str) -> User:
        password_hash = await asyncio.to_thread(self._credentials.hash_password, registration.password)
        try:
            user = self._users.create_user(
                name=registration.name,
                email=registration.email,
                password_hash=password_hash,
                payment_method=registration.payment_method,
                payment_screenshot=screenshot_ref,
            )
        except sqlite3.IntegrityError as exc:
            # Lost a race with a concurrent registration of the same address.
            if "users.email" not in str(exc):
                raise
            raise DuplicateEmail() from exc
        logger.info("Registered user %s (%s) pending approval", user.id, user.email)
        return user

    @staticmethod
    def _clean_name(name: Optional[str]) -> str:
        clean = (name or "").strip()
        if len(clean) < NAME_MIN_LENGTH:
            raise ValidationError(f"Name must be at least {NAME_MIN_LENGTH} characters")
        if len(clean) > NAME_MAX_LENGTH:
            raise ValidationError(f"Name cannot exceed {NAME_MAX_LENGTH} characters")
        return clean
