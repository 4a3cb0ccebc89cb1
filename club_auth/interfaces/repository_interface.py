"""
Repository interfaces for dependency abstraction.
Defines contracts for the identity and token stores so the auth service
can be wired with SQLAlchemy repositories or test doubles.

Repositories only stage changes on the session (flush); the caller owns
the transaction through ``unit_of_work``.
"""

from datetime import datetime
from typing import Any, Dict, Optional, Protocol, runtime_checkable
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.user import User
from ..models.verification_token import TokenPurpose, VerificationToken


@runtime_checkable
class IUserRepository(Protocol):
    """Protocol for identity store operations."""

    async def get_by_id(self, db: AsyncSession, user_id: str) -> Optional[User]:
        """Get user by opaque id, None if absent."""
        ...

    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        """Get user by exact email match."""
        ...

    async def get_by_username(self, db: AsyncSession, username: str) -> Optional[User]:
        """Get user by username (expects the normalized lowercase form)."""
        ...

    async def get_by_email_or_username(
        self,
        db: AsyncSession,
        email: str,
        username: str
    ) -> Optional[User]:
        """
        Get the first user whose email OR username matches.

        Args:
            db: Database session
            email: Email to match exactly
            username: Normalized username to match

        Returns:
            A matching user or None
        """
        ...

    async def create(
        self,
        db: AsyncSession,
        email: str,
        username: str,
        password_hash: str,
        is_verified: bool = False
    ) -> User:
        """Stage a new user row and return it with generated fields loaded."""
        ...

    async def update(
        self,
        db: AsyncSession,
        user: User,
        update_data: Dict[str, Any]
    ) -> User:
        """
        Update password hash and/or verification flag.

        Args:
            db: Database session
            user: Loaded user to update
            update_data: Fields to change (password_hash, is_verified)

        Returns:
            Updated user instance
        """
        ...

    async def delete(self, db: AsyncSession, user_id: str) -> bool:
        """Permanently delete the user and everything it owns."""
        ...


@runtime_checkable
class ITokenRepository(Protocol):
    """Protocol for token store operations."""

    async def get_by_token(
        self,
        db: AsyncSession,
        token: str
    ) -> Optional[VerificationToken]:
        """Get token record by exact value with its owner loaded."""
        ...

    async def create(
        self,
        db: AsyncSession,
        user_id: str,
        token: str,
        expires_at: datetime,
        purpose: TokenPurpose
    ) -> VerificationToken:
        """
        Stage a new token for a user.

        Raises:
            TokenIssuanceConflictError: If the user already holds a live token
        """
        ...

    async def delete(self, db: AsyncSession, token: str) -> bool:
        """Delete a token by value. Returns False if it was already gone."""
        ...

    async def delete_all_for_user(self, db: AsyncSession, user_id: str) -> int:
        """Delete every token owned by a user, returning the count removed."""
        ...
