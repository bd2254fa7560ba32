"""JSON projections shared by the routers.

Every projection leaves out credential material; responses are wrapped in
the ``{success, message, data}`` envelope.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ...application.services.approval_service import DashboardSummary
from ...domain.models import Admin, Page, User


def envelope(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.replace(microsecond=0).isoformat() if value else None


def serialize_user_summary(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "status": user.status.value,
        "isApproved": user.is_approved,
        "rejectionReason": user.rejection_reason,
        "lastLogin": _iso(user.last_login),
    }


def serialize_user(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "paymentMethod": user.payment_method.value,
        "paymentScreenshot": user.payment_screenshot,
        "status": user.status.value,
        "isApproved": user.is_approved,
        "rejectionReason": user.rejection_reason,
        "subscriptionStartDate": _iso(user.subscription_start_date),
        "subscriptionEndDate": _iso(user.subscription_end_date),
        "lastLogin": _iso(user.last_login),
        "loginCount": user.login_count,
        "accountAge": user.account_age_days(datetime.now(timezone.utc)),
        "createdAt": _iso(user.created_at),
        "updatedAt": _iso(user.updated_at),
    }


def serialize_status(user: User) -> Dict[str, Any]:
    return {
        "status": user.status.value,
        "isApproved": user.is_approved,
        "rejectionReason": user.rejection_reason,
        "createdAt": _iso(user.created_at),
    }


def serialize_admin(admin: Admin) -> Dict[str, Any]:
    return {
        "id": admin.id,
        "name": admin.name,
        "email": admin.email,
        "role": admin.role.value,
        "lastLogin": _iso(admin.last_login),
    }


def serialize_user_page(page: Page[User]) -> Dict[str, Any]:
    return {
        "users": [serialize_user(user) for user in page.items],
        "pagination": {
            "total": page.total,
            "page": page.page,
            "limit": page.page_size,
            "pages": page.page_count,
        },
    }


def serialize_dashboard(summary: DashboardSummary) -> Dict[str, Any]:
    return {
        "analytics": {
            "totalUsers": summary.total_users,
            "approvedUsers": summary.approved_users,
            "pendingUsers": summary.pending_users,
            "rejectedUsers": summary.rejected_users,
            "activeUsers": summary.active_users,
            "recentRegistrations": summary.recent_registrations,
            "approvalRate": summary.approval_rate,
        },
        "recentUsers": [serialize_user(user) for user in summary.recent_users],
        "pendingUsersList": [serialize_user(user) for user in summary.pending_users_list],
    }
