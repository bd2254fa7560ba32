"""Domain models for the gatekeeper application."""

from .admin import Admin, AdminRole
from .page import Page, UserQuery
from .user import (
    DEFAULT_REJECTION_REASON,
    Approved,
    LifecycleState,
    PaymentMethod,
    Pending,
    Rejected,
    User,
    UserStatus,
)

__all__ = [
    "Admin",
    "AdminRole",
    "Approved",
    "DEFAULT_REJECTION_REASON",
    "LifecycleState",
    "Page",
    "PaymentMethod",
    "Pending",
    "Rejected",
    "User",
    "UserQuery",
    "UserStatus",
]
