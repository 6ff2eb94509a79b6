"""
User repository: the identity-provider projection with existence checks.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from property_exchange.repositories.base import BaseRepository
from property_exchange.models.user import User
from property_exchange.utils.exceptions import ConflictError
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """Repository for user accounts."""

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def create_user(self, user_data: Dict[str, Any]) -> User:
        """
        Create a new user with a normalized email.

        Raises:
            ValueError: If the email is malformed
            ConflictError: If the email is already registered
        """
        data = dict(user_data)
        data["email"] = User.validate_email_format(data["email"])

        try:
            user = await self.create(data)
        except IntegrityError:
            raise ConflictError(f"User with email '{data['email']}' already exists", error_code="DUPLICATE_USER")

        logger.info(f"Created user {user.id} ({user.email})")
        return user

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def get_active(self, user_id) -> Optional[User]:
        """Existence check used to resolve a caller identity."""
        user = await self.get_by_id(user_id)
        if user and user.is_active:
            return user
        return None
