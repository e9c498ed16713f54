"""
Seed the platform super admin

Usage:
    python -m mandi_saas.scripts.seed
"""

import os
import sys
from typing import Optional

from sqlmodel import Session
import structlog

from mandi_saas.core.auth import hash_password
from mandi_saas.core.config import get_settings
from mandi_saas.core.database import engine
from mandi_saas.core.logging_config import configure_logging
from mandi_saas.models.user import User, UserRole, UserStatus
from mandi_saas.services.repositories import UserRepository

logger = structlog.get_logger(__name__)

SUPER_ADMIN_EMAIL = "admin@mandisaas.com"
SUPER_ADMIN_PHONE = "9999999999"
DEFAULT_SUPER_ADMIN_PASSWORD = "Admin@123"


def seed_super_admin(session: Session, password: Optional[str] = None) -> Optional[User]:
    """Create the super admin; returns None when one already exists"""
    users = UserRepository(session)
    existing = users.find_super_admin()
    if existing:
        logger.warning(f"Super admin already exists: {existing.email}")
        return None

    super_admin = User(
        name="Super Admin",
        email=SUPER_ADMIN_EMAIL,
        phone=SUPER_ADMIN_PHONE,
        password_hash=hash_password(password or DEFAULT_SUPER_ADMIN_PASSWORD),
        role=UserRole.SUPER_ADMIN,
        status=UserStatus.ACTIVE,
        tenant_id=None,
    )
    users.save(super_admin)
    logger.info(f"Super admin created: {super_admin.email}")
    return super_admin


def main():
    """Main entry point for seeding"""
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)

    try:
        with Session(engine) as session:
            seed_super_admin(session, os.getenv("SUPER_ADMIN_PASSWORD"))
    except Exception as e:
        logger.error(f"Seeding error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
