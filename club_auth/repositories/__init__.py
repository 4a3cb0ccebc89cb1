"""
Repository implementations following the Repository pattern.
Provides the data access layer behind the store interfaces.
"""

from .token_repository import TokenRepository
from .user_repository import UserRepository

__all__ = [
    "TokenRepository",
    "UserRepository",
]
