"""
Token repository: persistence for single-use verification / reset tokens.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload
import structlog

from ..core.exceptions import TokenIssuanceConflictError
from ..interfaces.repository_interface import ITokenRepository
from ..models.verification_token import TokenPurpose, VerificationToken

logger = structlog.get_logger()


class TokenRepository(ITokenRepository):
    """Repository for verification token data access operations."""

    async def get_by_token(
        self,
        db: AsyncSession,
        token: str
    ) -> Optional[VerificationToken]:
        query = (
            select(VerificationToken)
            .options(joinedload(VerificationToken.user))
            .where(VerificationToken.token == token)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def create(
        self,
        db: AsyncSession,
        user_id: str,
        token: str,
        expires_at: datetime,
        purpose: TokenPurpose
    ) -> VerificationToken:
        record = VerificationToken(
            user_id=user_id,
            token=token,
            expires_at=expires_at,
            purpose=purpose,
        )
        db.add(record)
        try:
            await db.flush()
        except IntegrityError as e:
            # Lost the race against another issuer for the same user
            logger.warning("Concurrent token issuance rejected", user_id=user_id)
            raise TokenIssuanceConflictError() from e
        return record

    async def delete(self, db: AsyncSession, token: str) -> bool:
        result = await db.execute(delete(VerificationToken).where(VerificationToken.token == token))
        return result.rowcount > 0

    async def delete_all_for_user(self, db: AsyncSession, user_id: str) -> int:
        result = await db.execute(delete(VerificationToken).where(VerificationToken.user_id == user_id))
        return result.rowcount
