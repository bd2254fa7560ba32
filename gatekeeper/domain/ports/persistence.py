from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Protocol, Union

from ..models import Admin, AdminRole, Approved, Page, PaymentMethod, Rejected, User, UserQuery, UserStatus


class UserRepository(Protocol):
    """Persistence functions related to self-registered users."""

    def create_user(
        self,
        name: str,
        email: str,
        password_hash: str,
        payment_method: PaymentMethod,
        payment_screenshot: str,
    ) -> User:
        ...

    def get_user_by_email(self, email: str) -> Optional[User]:
        ...

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        ...

    def find_users(self, query: UserQuery) -> Page[User]:
        ...

    def update_user_name(self, user_id: int, name: str) -> User:
        ...

    def set_user_lifecycle(self, user_id: int, state: Union[Approved, Rejected]) -> User:
        """Record an administrator decision; users never go back to pending."""
        ...

    def record_user_login(self, user_id: int, at: datetime) -> User:
        ...

    def delete_user(self, user_id: int) -> bool:
        ...

    def count_users(
        self,
        *,
        status: Optional[UserStatus] = None,
        approved_only: bool = False,
        logged_in_since: Optional[datetime] = None,
        created_since: Optional[datetime] = None,
    ) -> int:
        ...

    def recent_users(self, limit: int, status: Optional[UserStatus] = None) -> List[User]:
        ...


class AdminRepository(Protocol):
    """Persistence functions related to administrator accounts."""

    def create_admin(self, email: str, password_hash: str, name: str, role: AdminRole) -> Admin:
        ...

    def get_admin_by_email(self, email: str) -> Optional[Admin]:
        ...

    def get_admin_by_id(self, admin_id: int) -> Optional[Admin]:
        ...

    def record_admin_login(self, admin_id: int, at: datetime) -> Admin:
        ...


class PersistenceGateway(UserRepository, AdminRepository, Protocol):
    """Composite gateway combining every persistence concern used by the app."""

    def ping(self) -> bool:
        ...

    def close(self) -> None:
        ...
