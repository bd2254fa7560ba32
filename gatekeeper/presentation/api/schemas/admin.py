from typing import Optional

from pydantic import BaseModel, Field


class AdminLoginRequest(BaseModel):
    email: str
    password: str


class RejectRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)
