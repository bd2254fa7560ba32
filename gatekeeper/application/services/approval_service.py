from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from ...domain.errors import UserNotFound, ValidationError
from ...domain.models import (
    DEFAULT_REJECTION_REASON,
    Approved,
    Page,
    Rejected,
    User,
    UserQuery,
    UserStatus,
)
from ...domain.ports.persistence import UserRepository
from ...infrastructure.storage.screenshot_store import LocalScreenshotStore
from .guards import store_errors

logger = logging.getLogger(__name__)

SUBSCRIPTION_DAYS = 30
ACTIVITY_WINDOW = timedelta(days=7)
RECENT_USERS_LIMIT = 5
PENDING_USERS_LIMIT = 10
MAX_PAGE_SIZE = 100


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class DashboardSummary:
    total_users: int
    approved_users: int
    pending_users: int
    rejected_users: int
    active_users: int
    recent_registrations: int
    approval_rate: float
    recent_users: List[User] = field(default_factory=list)
    pending_users_list: List[User] = field(default_factory=list)


class ApprovalService:
    """Administrator transitions over the user lifecycle plus dashboard queries."""

    def __init__(
        self,
        users: UserRepository,
        screenshots: LocalScreenshotStore,
        *,
        subscription_days: int = SUBSCRIPTION_DAYS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._users = users
        self._screenshots = screenshots
        self._subscription = timedelta(days=subscription_days)
        self._clock = clock

    # Transitions ---------------------------------------------------------
    def approve(self, user_id: int) -> User:
        with store_errors("Approve user"):
            self._require_user(user_id)
            since = self._clock()
            user = self._users.set_user_lifecycle(user_id, Approved(since=since, until=since + self._subscription))
        logger.info("User %s approved until %s", user.id, user.subscription_end_date)
        return user

    def reject(self, user_id: int, reason: Optional[str] = None) -> User:
        clean_reason = (reason or "").strip() or DEFAULT_REJECTION_REASON
        with store_errors("Reject user"):
            self._require_user(user_id)
            user = self._users.set_user_lifecycle(user_id, Rejected(reason=clean_reason))
        logger.info("User %s rejected: %s", user.id, clean_reason)
        return user

    def delete_user(self, user_id: int) -> None:
        with store_errors("Delete user"):
            user = self._require_user(user_id)
            if not self._users.delete_user(user_id):
                raise UserNotFound()
        self._screenshots.delete(user.payment_screenshot)
        logger.info("User %s (%s) deleted", user.id, user.email)

    # Queries -------------------------------------------------------------
    def get_user(self, user_id: int) -> User:
        with store_errors("Get user"):
            return self._require_user(user_id)

    def list_users(
        self,
        status: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Page[User]:
        if page < 1:
            raise ValidationError("Page must be a positive integer")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"Limit must be between 1 and {MAX_PAGE_SIZE}")
        status_filter: Optional[UserStatus] = None
        if status and status.strip().lower() != "all":
            try:
                status_filter = UserStatus(status.strip().lower())
            except ValueError as exc:
                raise ValidationError("Status must be one of: all, pending, approved, rejected") from exc
        query = UserQuery(
            status=status_filter,
            search=(search or "").strip() or None,
            page=page,
            page_size=limit,
        )
        with store_errors("List users"):
            return self._users.find_users(query)

    def get_dashboard_summary(self) -> DashboardSummary:
        since = self._clock() - ACTIVITY_WINDOW
        with store_errors("Dashboard"):
            total = self._users.count_users()
            approved = self._users.count_users(status=UserStatus.APPROVED, approved_only=True)
            pending = self._users.count_users(status=UserStatus.PENDING)
            rejected = self._users.count_users(status=UserStatus.REJECTED)
            active = self._users.count_users(
                status=UserStatus.APPROVED, approved_only=True, logged_in_since=since
            )
            recent = self._users.count_users(created_since=since)
            recent_users = self._users.recent_users(RECENT_USERS_LIMIT)
            pending_list = self._users.recent_users(PENDING_USERS_LIMIT, status=UserStatus.PENDING)
        rate = round(approved / total * 100, 2) if total else 0.0
        return DashboardSummary(
            total_users=total,
            approved_users=approved,
            pending_users=pending,
            rejected_users=rejected,
            active_users=active,
            recent_registrations=recent,
            approval_rate=rate,
            recent_users=recent_users,
            pending_users_list=pending_list,
        )

    # Helpers -------------------------------------------------------------
    def _require_user(self, user_id: int) -> User:
        user = self._users.get_user_by_id(user_id)
        if user is None:
            raise UserNotFound()
        return user
