from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from ....application.services.registration_service import RegistrationService
from ....core.dependencies import get_registration_service
from ....infrastructure.storage.screenshot_store import ScreenshotUpload
from ...api.schemas.auth import LoginRequest
from ...api.serializers import envelope, serialize_status, serialize_user_summary

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    name: Optional[str] = Form(default=None),
    email: Optional[str] = Form(default=None),
    password: Optional[str] = Form(default=None),
    payment_method: Optional[str] = Form(default=None, alias="paymentMethod"),
    payment_screenshot: Optional[UploadFile] = File(default=None, alias="paymentScreenshot"),
    service: RegistrationService = Depends(get_registration_service),
) -> Dict[str, Any]:
    upload: Optional[ScreenshotUpload] = None
    if payment_screenshot is not None:
        upload = ScreenshotUpload(
            data=await payment_screenshot.read(),
            filename=payment_screenshot.filename,
            content_type=payment_screenshot.content_type,
        )
    user = await service.register_with_upload(
        name=name or "",
        email=email or "",
        password=password or "",
        payment_method=payment_method or "",
        upload=upload,
    )
    return envelope(
        {**serialize_user_summary(user), "userId": user.id},
        message="Registration successful! Your account will be activated after manual verification.",
    )


@router.post("/login")
async def login(
    payload: LoginRequest,
    service: RegistrationService = Depends(get_registration_service),
) -> Dict[str, Any]:
    result = await service.login(payload.email, payload.password)
    return envelope(
        {"token": result.token, "tokenType": "bearer", "user": serialize_user_summary(result.user)},
        message="Login successful",
    )


@router.get("/status")
def user_status(
    email: Optional[str] = Query(default=None),
    service: RegistrationService = Depends(get_registration_service),
) -> Dict[str, Any]:
    user = service.get_status(email)
    return envelope(serialize_status(user))
