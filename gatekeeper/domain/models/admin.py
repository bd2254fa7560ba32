"""Administrator accounts provisioned out of band."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class AdminRole(str, Enum):
    ADMIN = "admin"


@dataclass(slots=True)
class Admin:
    id: int
    email: str
    password_hash: str
    name: str
    role: AdminRole
    last_login: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    def __repr__(self) -> str:
        return f"<Admin id={self.id} email={self.email} role={self.role.value}>"
