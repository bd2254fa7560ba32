import logging
import os

from dotenv import load_dotenv

from gatekeeper.core.app_factory import build_container
from gatekeeper.core.config import Settings
from gatekeeper.core.logging import configure_logging

DEFAULT_EMAIL = "admin@linkedindesign.com"
DEFAULT_PASSWORD = "Admin@123456"


def main() -> None:
    load_dotenv()
    configure_logging()

    settings = Settings()
    email = settings.admin_default_email or DEFAULT_EMAIL
    password = settings.admin_default_password or DEFAULT_PASSWORD
    container = build_container(settings)
    try:
        existing = container.persistence.get_admin_by_email(email)
        if existing:
            print("Admin already exists:", existing.email)
            return
        admin = container.admin_auth_service.ensure_default_admin(email, password, settings.admin_default_name)
    finally:
        container.close()

    print("Default admin created:", admin.email if admin else email)
    if not os.getenv("ADMIN_PASSWORD"):
        logging.getLogger(__name__).warning(
            "Seeded with the default password. Change it after the first login."
        )


if __name__ == "__main__":
    main()
