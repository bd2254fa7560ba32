from fastapi import Depends, Request

from .container import ApplicationContainer


def get_container(request: Request) -> ApplicationContainer:
    container = getattr(request.app.state, "container", None)
    if not container:
        raise RuntimeError("Application container not initialised.")
    return container


def get_screenshot_store(container: ApplicationContainer = Depends(get_container)):
    return container.screenshot_store


def get_registration_service(container: ApplicationContainer = Depends(get_container)):
    return container.registration_service


def get_admin_auth_service(container: ApplicationContainer = Depends(get_container)):
    return container.admin_auth_service


def get_approval_service(container: ApplicationContainer = Depends(get_container)):
    return container.approval_service


def get_access_gate(container: ApplicationContainer = Depends(get_container)):
    return container.access_gate
