from typing import Any, Dict

from fastapi import APIRouter, Depends

from ....application.services.registration_service import RegistrationService
from ....core.dependencies import get_registration_service
from ....domain.models import User
from ...api.dependencies import require_approved_user, require_user
from ...api.schemas.user import ProfileUpdateRequest
from ...api.serializers import envelope, serialize_user

router = APIRouter(prefix="/api/user", tags=["User"])


@router.get("/profile")
def get_profile(
    user: User = Depends(require_user),
    service: RegistrationService = Depends(get_registration_service),
) -> Dict[str, Any]:
    return envelope(serialize_user(service.get_profile(user.id)))


@router.put("/profile")
def update_profile(
    payload: ProfileUpdateRequest,
    user: User = Depends(require_user),
    service: RegistrationService = Depends(get_registration_service),
) -> Dict[str, Any]:
    updated = service.update_profile(user.id, payload.name)
    return envelope(
        {"id": updated.id, "name": updated.name, "email": updated.email},
        message="Profile updated successfully",
    )


@router.get("/design-access")
def design_access(user: User = Depends(require_approved_user)) -> Dict[str, Any]:
    return envelope(
        {"canAccess": True, "subscriptionEndDate": serialize_user(user)["subscriptionEndDate"]},
        message="Access granted",
    )
