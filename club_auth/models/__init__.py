from .base import Base, BaseModel
from .user import User
from .verification_token import TokenPurpose, VerificationToken

__all__ = [
    "Base",
    "BaseModel",
    "User",
    "TokenPurpose",
    "VerificationToken",
]
