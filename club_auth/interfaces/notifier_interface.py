"""
Notifier interface for out-of-band delivery of verification and reset links.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class INotifier(Protocol):
    """Protocol for delivering issued tokens to the account's email address."""

    async def send_verification_email(self, to: str, username: str, token: str) -> bool:
        """Send the email verification link. Returns True if delivered."""
        ...

    async def send_password_reset_email(self, to: str, username: str, token: str) -> bool:
        """Send the password reset link. Returns True if delivered."""
        ...
