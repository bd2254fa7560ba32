from dataclasses import dataclass

from ..application.services.access_gate import AccessGate
from ..application.services.admin_auth_service import AdminAuthService
from ..application.services.approval_service import ApprovalService
from ..application.services.credential_service import CredentialService
from ..application.services.registration_service import RegistrationService
from ..domain.ports.persistence import PersistenceGateway
from ..infrastructure.storage.screenshot_store import LocalScreenshotStore
from .config import Settings


@dataclass(slots=True)
class ApplicationContainer:
    """Dependency registry shared across the FastAPI application lifecycle."""

    settings: Settings
    persistence: PersistenceGateway
    screenshot_store: LocalScreenshotStore
    credential_service: CredentialService
    registration_service: RegistrationService
    admin_auth_service: AdminAuthService
    approval_service: ApprovalService
    access_gate: AccessGate

    def close(self) -> None:
        self.persistence.close()
