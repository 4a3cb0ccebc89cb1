"""
User and token model factories for testing.
Uses Factory Boy to generate realistic test data with Faker.
"""
import uuid
from datetime import datetime, timedelta, timezone

import factory
from factory import Faker, LazyAttribute, LazyFunction, SubFactory
from faker import Faker as FakerInstance

from club_auth.core.security import CredentialHasher
from club_auth.models.user import User
from club_auth.models.verification_token import TokenPurpose, VerificationToken

fake = FakerInstance()

TEST_PASSWORD = "TestPassword123"

# Minimum bcrypt cost keeps the suite fast
test_hasher = CredentialHasher(rounds=4)


class UserFactory(factory.Factory):
    """Factory for User model (built, not persisted)."""

    class Meta:
        model = User

    id = LazyFunction(lambda: str(uuid.uuid4()))
    email = Faker("email")
    username = LazyFunction(lambda: fake.unique.user_name().lower()[:20])
    password_hash = LazyFunction(lambda: test_hasher.hash(TEST_PASSWORD))
    is_verified = False

    created_at = Faker("date_time_between", start_date="-90d", end_date="now", tzinfo=timezone.utc)
    updated_at = LazyAttribute(lambda obj: obj.created_at)


class VerifiedUserFactory(UserFactory):
    is_verified = True


class VerificationTokenFactory(factory.Factory):
    """Factory for VerificationToken model."""

    class Meta:
        model = VerificationToken

    id = LazyFunction(lambda: str(uuid.uuid4()))
    user = SubFactory(UserFactory)
    user_id = LazyAttribute(lambda obj: obj.user.id)
    token = LazyFunction(lambda: fake.sha256())
    purpose = TokenPurpose.EMAIL_VERIFICATION
    expires_at = LazyFunction(lambda: datetime.now(timezone.utc) + timedelta(hours=24))


class ExpiredTokenFactory(VerificationTokenFactory):
    expires_at = LazyFunction(lambda: datetime.now(timezone.utc) - timedelta(minutes=1))
