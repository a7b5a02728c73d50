from __future__ import annotations

import logging
import re

from werkzeug.security import check_password_hash, generate_password_hash

from ..exceptions import AuthenticationError, DuplicateEmailError, ValidationError
from ..models.store import Store
from .common import is_blank, require

logger = logging.getLogger(__name__)

# Compile once at module import
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d).{6,}$")


class AuthService:
    """Dashboard administrators: creation, login check and lookup."""

    def __init__(self, store: Store):
        self.store = store

    @staticmethod
    def public(admin: dict) -> dict:
        """Admin row without the password hash."""
        return {k: v for k, v in admin.items() if k != "password_hash"}

    def create_admin(self, email: str, password: str, name: str | None = None) -> dict:
        require({"email": email, "password": password}, "email", "password")
        email = email.strip().lower()
        if "@" not in email:
            raise ValidationError(f"Invalid email: {email!r}")
        if not PASSWORD_PATTERN.match(password):
            raise ValidationError("Password must have at least 6 characters, including A-Z, a-z, and 0-9.")

        with self.store.transaction():
            if self.store.find_admin(email):
                raise DuplicateEmailError()
            aid = self.store.create_admin({
                "email": email,
                "name": name or email.split("@", 1)[0],
                "password_hash": generate_password_hash(password),
            })
        logger.info("Admin %s created (%s)", aid, email)
        return self.public(self.store.get_admin(aid))

    def login(self, email: str, password: str) -> dict:
        if is_blank(email) or is_blank(password):
            raise AuthenticationError("Email and password are required")
        admin = self.store.find_admin(email)
        if not admin or not password_matches(password, admin.get("password_hash")):
            logger.info("Failed login for %s", email)
            raise AuthenticationError()
        return self.public(admin)

    def get_admin(self, admin_id) -> dict | None:
        admin = self.store.get_admin(admin_id) if admin_id is not None else None
        return self.public(admin) if admin else None

    def ensure_default_admin(self, email: str, password: str) -> None:
        """Create the bootstrap admin when the admins table is empty."""
        if self.store.admins:
            return
        self.create_admin(email, password, name="Administrator")
        logger.warning("Created default admin %s; change its password", email)


def password_matches(password: str, hashed: str | None) -> bool:
    if not hashed:
        return False
    try:
        return check_password_hash(hashed, password)
    except ValueError:
        # unknown hash method on a legacy row
        return False
