"""
Single-use security token shared by the email verification and password
reset flows. A user owns at most one token at any time.
"""
import enum
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import Column, String, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship

from .base import BaseModel


class TokenPurpose(str, enum.Enum):
    EMAIL_VERIFICATION = "email_verification"
    PASSWORD_RESET = "password_reset"


class VerificationToken(BaseModel):
    __tablename__ = "verification_tokens"

    token = Column(String(128), unique=True, nullable=False, index=True)
    # unique: concurrent issuers for one user cannot both commit a token
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True,
    )
    purpose = Column(
        Enum(TokenPurpose, name="token_purpose", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=TokenPurpose.EMAIL_VERIFICATION,
    )
    expires_at = Column(DateTime(timezone=True), nullable=False)

    user = relationship("User", back_populates="tokens")

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            # SQLite hands back naive datetimes; values are always written in UTC
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at < now

    def __repr__(self) -> str:
        return f"<VerificationToken(user_id={self.user_id}, purpose={self.purpose}, expires_at={self.expires_at})>"
