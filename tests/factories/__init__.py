"""Test data factories for identity service testing."""

from .user_factory import (
    TEST_PASSWORD,
    ExpiredTokenFactory,
    UserFactory,
    VerificationTokenFactory,
    VerifiedUserFactory,
    test_hasher,
)

__all__ = [
    "TEST_PASSWORD",
    "ExpiredTokenFactory",
    "UserFactory",
    "VerificationTokenFactory",
    "VerifiedUserFactory",
    "test_hasher",
]
