from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ...application.services.access_gate import AccessGate
from ...core.dependencies import get_access_gate
from ...domain.models import Admin, User

_bearer_scheme = HTTPBearer(auto_error=False)


def _token(credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    if credentials is None or credentials.scheme.lower() != "bearer":
        return None
    return credentials.credentials


def require_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    gate: AccessGate = Depends(get_access_gate),
) -> User:
    return gate.resolve_user(_token(credentials))


def require_approved_user(
    user: User = Depends(require_user),
    gate: AccessGate = Depends(get_access_gate),
) -> User:
    return gate.ensure_approved(user)


def require_admin_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    gate: AccessGate = Depends(get_access_gate),
) -> Admin:
    return gate.resolve_admin(_token(credentials))
