"""
User repository implementation following the Repository pattern.
Handles identity store access on an AsyncSession; transactions are owned
by the calling service.
"""

from typing import Any, Dict, Optional
from sqlalchemy import case, delete, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from ..core.exceptions import EmailInUseError, UsernameTakenError
from ..interfaces.repository_interface import IUserRepository
from ..models.user import User
from ..models.verification_token import VerificationToken

logger = structlog.get_logger()


class UserRepository(IUserRepository):
    """Repository for user data access operations."""

    UPDATABLE_FIELDS = frozenset({"password_hash", "is_verified"})

    async def get_by_id(self, db: AsyncSession, user_id: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_by_username(self, db: AsyncSession, username: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def get_by_email_or_username(
        self,
        db: AsyncSession,
        email: str,
        username: str
    ) -> Optional[User]:
        query = (
            select(User)
            .where(or_(User.email == email, User.username == username))
            .order_by(case((User.email == email, 0), else_=1), User.created_at)
            .limit(1)
        )
        result = await db.execute(query)
        return result.scalars().first()

    async def create(
        self,
        db: AsyncSession,
        email: str,
        username: str,
        password_hash: str,
        is_verified: bool = False
    ) -> User:
        """
        Stage a new user.

        A concurrent registration that slips past the service's existence
        check is caught here by the unique constraints.
        """
        user = User(
            email=email,
            username=username,
            password_hash=password_hash,
            is_verified=is_verified,
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError as e:
            logger.warning("User insert violated a unique constraint")
            if "email" in str(e.orig).lower():
                raise EmailInUseError() from e
            raise UsernameTakenError() from e

        logger.debug("User staged", user_id=user.id)
        return user

    async def update(
        self,
        db: AsyncSession,
        user: User,
        update_data: Dict[str, Any]
    ) -> User:
        unknown = set(update_data) - self.UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not updatable: {sorted(unknown)}")

        for field, value in update_data.items():
            setattr(user, field, value)

        await db.flush()
        return user

    async def delete(self, db: AsyncSession, user_id: str) -> bool:
        # Tokens first; SQLite connections without the FK pragma do not cascade
        await db.execute(delete(VerificationToken).where(VerificationToken.user_id == user_id))
        result = await db.execute(delete(User).where(User.id == user_id))
        return result.rowcount > 0
