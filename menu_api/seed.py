"""
Bootstrap data.

Creates the "Super Administrador" account from ADMIN_EMAIL / ADMIN_PASSWORD
when the database has no active super admin. Idempotent.
"""

from sqlalchemy.orm import Session

from menu_api.models import User
from menu_api.repositories import UserRepository
from menu_shared.config.constants import Roles
from menu_shared.config.logging import get_logger, mask_email
from menu_shared.config.settings import settings
from menu_shared.infrastructure.db import safe_commit
from menu_shared.security.password import hash_password

logger = get_logger(__name__)

SUPER_ADMIN_NAME = "Super Administrador"


def ensure_super_admin(
    db: Session,
    email: str | None = None,
    password: str | None = None,
) -> User | None:
    """
    Create the bootstrap super admin if needed.

    Returns the created user, or None when an active super admin already
    exists. An inactive account holding the admin email is reactivated.
    """
    users = UserRepository(db)
    if users.count_active_super_admins() > 0:
        logger.info("Super admin already present, skipping bootstrap")
        return None

    email = (email or settings.admin_email).strip().lower()
    password = password or settings.admin_password

    user = users.find_by_email(email)
    if user is not None:
        user.role = Roles.SUPER_ADMIN
        user.restaurant_id = None
        user.is_active = True
        user.password_hash = hash_password(password)
    else:
        user = users.add(
            User(
                name=SUPER_ADMIN_NAME,
                email=email,
                password_hash=hash_password(password),
                role=Roles.SUPER_ADMIN,
                is_active=True,
                email_verified=True,
            )
        )
    safe_commit(db)

    logger.info("Super admin bootstrapped", email=mask_email(email), user_id=user.id)
    return user
