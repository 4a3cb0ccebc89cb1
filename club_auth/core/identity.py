"""
Identifier classification and normalization.

Usernames are matched case-insensitively and always stored lowercase.
Emails are matched exactly as stored; only surrounding whitespace is
dropped.
"""


def is_email_identifier(identifier: str) -> bool:
    """An identifier containing '@' is an email, anything else a username."""
    return "@" in identifier


def normalize_username(username: str) -> str:
    return username.strip().lower()


def normalize_email(email: str) -> str:
    return email.strip()
