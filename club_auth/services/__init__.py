"""
Service layer: the auth orchestrator and the email notifier it hands
tokens to via the HTTP layer.
"""

from .auth_service import AuthService
from .notification_service import SmtpNotifier

__all__ = [
    "AuthService",
    "SmtpNotifier",
]
