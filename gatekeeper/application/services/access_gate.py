from __future__ import annotations

from typing import Optional

from ...domain.errors import Forbidden, Unauthenticated
from ...domain.models import Admin, User
from ...domain.ports.persistence import PersistenceGateway
from .credential_service import Audience, CredentialService
from .guards import store_errors


class AccessGate:
    """Turns bearer tokens into users or administrators for protected routes."""

    def __init__(self, persistence: PersistenceGateway, credentials: CredentialService) -> None:
        self._persistence = persistence
        self._credentials = credentials

    def resolve_user(self, token: Optional[str]) -> User:
        if not token:
            raise Unauthenticated("Not authorized to access this route. Please login.")
        user_id = self._credentials.verify_token(token, Audience.USER)
        with store_errors("Authentication"):
            user = self._persistence.get_user_by_id(user_id)
        if user is None:
            raise Unauthenticated("User not found. Please login again.")
        return user

    def resolve_admin(self, token: Optional[str]) -> Admin:
        if not token:
            raise Unauthenticated("Not authorized. Admin access required.")
        admin_id = self._credentials.verify_token(token, Audience.ADMIN)
        with store_errors("Admin authentication"):
            admin = self._persistence.get_admin_by_id(admin_id)
        if admin is None:
            raise Unauthenticated("Admin not found. Please login again.")
        return admin

    @staticmethod
    def ensure_approved(user: User) -> User:
        if not user.can_access_designer():
            raise Forbidden(data={"status": user.status.value, "isApproved": user.is_approved})
        return user
