from __future__ import annotations

import asyncio
import logging
import sqlite3
from datetime import datetime, timezone
from typing import Callable, Optional, Tuple

from ...domain.errors import InvalidAdminCredentials, ValidationError
from ...domain.models import Admin, AdminRole
from ...domain.ports.persistence import AdminRepository
from .credential_service import Audience, CredentialService
from .guards import store_errors

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_NAME = "Administrator"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AdminAuthService:
    """Manages administrator accounts and token-based authentication."""

    def __init__(
        self,
        admins: AdminRepository,
        credentials: CredentialService,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._admins = admins
        self._credentials = credentials
        self._clock = clock

    # ------------------------------------------------------------------
    def ensure_default_admin(
        self,
        email: Optional[str],
        password: Optional[str],
        name: str = DEFAULT_ADMIN_NAME,
    ) -> Optional[Admin]:
        if not email or not password:
            return None
        email_clean = email.strip().lower()
        existing = self._admins.get_admin_by_email(email_clean)
        if existing:
            logger.debug("Administrator %s already provisioned", email_clean)
            return existing
        hashed = self._credentials.hash_password(password)
        logger.info("Creating default administrator account for %s", email_clean)
        try:
            return self._admins.create_admin(
                email=email_clean,
                password_hash=hashed,
                name=name or DEFAULT_ADMIN_NAME,
                role=AdminRole.ADMIN,
            )
        except sqlite3.IntegrityError:
            # Another worker seeded the same account first.
            return self._admins.get_admin_by_email(email_clean)

    async def authenticate(self, email: str, password: str) -> Tuple[str, Admin]:
        email_clean = (email or "").strip().lower()
        if not email_clean or not password:
            raise ValidationError("Please provide email and password")
        with store_errors("Admin login"):
            admin = self._admins.get_admin_by_email(email_clean)
            if not admin:
                logger.warning("Admin login failed for unknown email %s", email_clean)
                raise InvalidAdminCredentials()
            matches = await asyncio.to_thread(self._credentials.verify_password, password, admin.password_hash)
            if not matches:
                logger.warning("Admin login failed for %s: wrong password", admin.id)
                raise InvalidAdminCredentials()
            admin = self._admins.record_admin_login(admin.id, self._clock())
            token = self._credentials.issue_token(admin.id, Audience.ADMIN)
        logger.info("Administrator %s logged in", admin.id)
        return token, admin
