from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import FileResponse

from ....application.services.admin_auth_service import AdminAuthService
from ....application.services.approval_service import ApprovalService
from ....core.dependencies import get_admin_auth_service, get_approval_service, get_screenshot_store
from ....domain.errors import NotFound
from ....domain.models import Admin
from ....infrastructure.storage.screenshot_store import LocalScreenshotStore
from ...api.dependencies import require_admin_user
from ...api.schemas.admin import AdminLoginRequest, RejectRequest
from ...api.serializers import (
    envelope,
    serialize_admin,
    serialize_dashboard,
    serialize_user,
    serialize_user_page,
    serialize_user_summary,
)

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.post("/login")
async def admin_login(
    payload: AdminLoginRequest,
    admin_auth: AdminAuthService = Depends(get_admin_auth_service),
) -> Dict[str, Any]:
    token, admin = await admin_auth.authenticate(payload.email, payload.password)
    return envelope(
        {"token": token, "tokenType": "bearer", "admin": serialize_admin(admin)},
        message="Admin login successful",
    )


@router.get("/me")
def admin_me(current_admin: Admin = Depends(require_admin_user)) -> Dict[str, Any]:
    return envelope(serialize_admin(current_admin))


@router.get("/dashboard")
def dashboard(
    _: Admin = Depends(require_admin_user),
    service: ApprovalService = Depends(get_approval_service),
) -> Dict[str, Any]:
    return envelope(serialize_dashboard(service.get_dashboard_summary()))


@router.get("/users")
def list_users(
    status: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None, max_length=100),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    _: Admin = Depends(require_admin_user),
    service: ApprovalService = Depends(get_approval_service),
) -> Dict[str, Any]:
    result = service.list_users(status=status, search=search, page=page, limit=limit)
    return envelope(serialize_user_page(result))


@router.get("/users/{user_id}")
def get_user(
    user_id: int,
    _: Admin = Depends(require_admin_user),
    service: ApprovalService = Depends(get_approval_service),
) -> Dict[str, Any]:
    return envelope(serialize_user(service.get_user(user_id)))


@router.get("/users/{user_id}/screenshot")
def get_user_screenshot(
    user_id: int,
    _: Admin = Depends(require_admin_user),
    service: ApprovalService = Depends(get_approval_service),
    store: LocalScreenshotStore = Depends(get_screenshot_store),
) -> FileResponse:
    user = service.get_user(user_id)
    path = store.resolve(user.payment_screenshot)
    if path is None:
        raise NotFound("Payment screenshot not found")
    return FileResponse(path)


@router.post("/users/{user_id}/approve")
def approve_user(
    user_id: int,
    _: Admin = Depends(require_admin_user),
    service: ApprovalService = Depends(get_approval_service),
) -> Dict[str, Any]:
    user = service.approve(user_id)
    return envelope(
        {**serialize_user_summary(user), "userId": user.id},
        message="User approved successfully",
    )


@router.post("/users/{user_id}/reject")
def reject_user(
    user_id: int,
    payload: Optional[RejectRequest] = None,
    _: Admin = Depends(require_admin_user),
    service: ApprovalService = Depends(get_approval_service),
) -> Dict[str, Any]:
    user = service.reject(user_id, payload.reason if payload else None)
    return envelope(
        {**serialize_user_summary(user), "userId": user.id},
        message="User rejected successfully",
    )


@router.delete("/users/{user_id}")
def delete_user(
    user_id: int,
    _: Admin = Depends(require_admin_user),
    service: ApprovalService = Depends(get_approval_service),
) -> Dict[str, Any]:
    service.delete_user(user_id)
    return envelope(message="User deleted successfully")
