"""
Name + phone identification.

This is a convenience lookup, not authentication: anyone who knows a
member's name can act as them.
"""

import re

from app.features.songboard.domain import ConflictError, User, ValidationError
from app.features.songboard.repository import UserDirectory
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

PHONE_PATTERN = re.compile(r"^\+?[0-9]{10,15}$")


def normalize_phone(phone_number: str | None) -> str | None:
    """Strip whitespace and check the shape; None or blank means no phone."""
    if phone_number is None:
        return None
    compact = re.sub(r"\s+", "", phone_number)
    if not compact:
        return None
    if not PHONE_PATTERN.fullmatch(compact):
        raise ValidationError("Please enter a valid phone number", field="phone_number")
    return compact


class IdentityService:
    def __init__(self, users: UserDirectory):
        self.users = users

    async def get_user(self, user_id: str | None) -> User | None:
        if not user_id or not user_id.strip():
            return None
        return await self.users.get(user_id.strip())

    async def resolve_or_create_user(self, display_name: str | None, phone_number: str | None = None) -> User:
        name = (display_name or "").strip()
        if not name:
            raise ValidationError("Please enter your name", field="display_name")
        phone = normalize_phone(phone_number)

        existing = await self.users.find_by_name(name)
        if existing is not None and phone and existing.phone_number:
            if existing.phone_number != phone:
                logger.info("Identity conflict on name", user_id=existing.id)
                raise ConflictError("This name is already taken", field="display_name")
            return existing

        # A phone may only resolve to the member that owns it
        if phone:
            owner = await self.users.find_by_phone(phone)
            if owner is not None and (existing is None or owner.id != existing.id):
                logger.info("Identity conflict on phone", user_id=owner.id)
                raise ConflictError("Phone number is already registered", field="phone_number")

        if existing is not None:
            return existing

        # A racing insert of the same name surfaces as ConflictError from the store
        return await self.users.insert(name, phone)
