"""User domain model for self-registered design tool accounts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Union


class UserStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentMethod(str, Enum):
    BINANCE = "binance"
    EASYPAISA = "easypaisa"
    NAYAPAY = "nayapay"


DEFAULT_REJECTION_REASON = "Payment verification failed"


@dataclass(frozen=True, slots=True)
class Pending:
    """Initial state of every registration."""

    status = UserStatus.PENDING


@dataclass(frozen=True, slots=True)
class Approved:
    """Approved account with its subscription window."""

    since: datetime
    until: datetime

    status = UserStatus.APPROVED


@dataclass(frozen=True, slots=True)
class Rejected:
    reason: str

    status = UserStatus.REJECTED


LifecycleState = Union[Pending, Approved, Rejected]


@dataclass(slots=True)
class User:
    """
    Registrant awaiting or holding access to the design tool.

    Attributes:
        id: Store-assigned identifier
        name: Display name
        email: Lower-cased, unique email address
        password_hash: bcrypt hash, never serialised
        payment_method: Manual payment channel used
        payment_screenshot: Opaque storage path of the payment proof
        status: Lifecycle state name
        is_approved: Mirrors ``status == approved``
        rejection_reason: Set only while rejected
        subscription_start_date: Start of the last granted window
        subscription_end_date: End of the last granted window
        last_login: Timestamp of the last successful login
        login_count: Number of successful logins
        created_at: Registration timestamp
        updated_at: Last mutation timestamp
    """

    id: int
    name: str
    email: str
    password_hash: str
    payment_method: PaymentMethod
    payment_screenshot: str
    status: UserStatus
    is_approved: bool
    rejection_reason: Optional[str]
    subscription_start_date: Optional[datetime]
    subscription_end_date: Optional[datetime]
    last_login: Optional[datetime]
    login_count: int
    created_at: datetime
    updated_at: datetime

    @property
    def lifecycle(self) -> LifecycleState:
        if self.status is UserStatus.APPROVED and self.subscription_start_date and self.subscription_end_date:
            return Approved(since=self.subscription_start_date, until=self.subscription_end_date)
        if self.status is UserStatus.REJECTED:
            return Rejected(reason=self.rejection_reason or DEFAULT_REJECTION_REASON)
        return Pending()

    def can_access_designer(self) -> bool:
        return self.is_approved and isinstance(self.lifecycle, Approved)

    def account_age_days(self, now: datetime) -> int:
        return max((now - self.created_at).days, 0)

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email} status={self.status.value}>"
