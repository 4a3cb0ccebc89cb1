"""
Interface definitions for dependency abstractions.
These Protocol classes define contracts for the stores and the notifier to
enable dependency injection and improve testability.
"""

from .notifier_interface import INotifier
from .repository_interface import ITokenRepository, IUserRepository

__all__ = [
    "INotifier",
    "ITokenRepository",
    "IUserRepository",
]
