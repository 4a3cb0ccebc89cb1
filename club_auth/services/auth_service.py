"""
Auth service orchestrating the identity and credential lifecycle:
registration, email verification, login, password reset and deletion.

Every multi-step sequence runs inside one ``unit_of_work`` so a failure
part-way leaves neither duplicate tokens nor half-applied user changes.
"""

from typing import Callable, Optional
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from ..core.database import unit_of_work
from ..core.exceptions import (
    AlreadyVerifiedError,
    EmailInUseError,
    EmailNotVerifiedError,
    InvalidCredentialsError,
    InvalidPasswordError,
    InvalidTokenError,
    PasswordResetRequestError,
    TokenExpiredError,
    UserNotFoundError,
    UsernameTakenError,
)
from ..core.identity import is_email_identifier, normalize_email, normalize_username
from ..core.security import CredentialHasher, TokenIssuer, utcnow
from ..interfaces.repository_interface import ITokenRepository, IUserRepository
from ..models.user import User
from ..models.verification_token import TokenPurpose
from ..schemas.user_schemas import DeletionResult, PublicUser, TokenDelivery

logger = structlog.get_logger()


class AuthService:
    """Service responsible for account and credential lifecycle operations."""

    def __init__(
        self,
        user_repository: IUserRepository,
        token_repository: ITokenRepository,
        hasher: CredentialHasher,
        token_issuer: TokenIssuer,
        clock: Callable[[], datetime] = utcnow
    ):
        self.user_repository = user_repository
        self.token_repository = token_repository
        self.hasher = hasher
        self.token_issuer = token_issuer
        self.clock = clock

    @staticmethod
    def to_public(user: User) -> PublicUser:
        return PublicUser.model_validate(user)

    async def create_user(
        self,
        db: AsyncSession,
        email: str,
        password: str,
        username: str
    ) -> PublicUser:
        """
        Register a new, unverified account.

        Args:
            db: Database session
            email: Email address, stored as given
            password: Plaintext password (hashed before storage)
            username: Username, normalized to lowercase

        Returns:
            Public view of the created user

        Raises:
            EmailInUseError: If the email is already registered
            UsernameTakenError: If the username is already taken
        """
        email = normalize_email(email)
        username = normalize_username(username)

        async with unit_of_work(db):
            existing = await self.user_repository.get_by_email_or_username(db, email, username)
            if existing is not None:
                # Email collision takes precedence when both match
                if existing.email == email:
                    raise EmailInUseError()
                raise UsernameTakenError()

            password_hash = await self.hasher.hash_async(password)
            user = await self.user_repository.create(
                db,
                email=email,
                username=username,
                password_hash=password_hash,
                is_verified=False,
            )
            public = self.to_public(user)

        logger.info("User registered", user_id=public.id)
        return public

    async def generate_verification_token(
        self,
        db: AsyncSession,
        user_id: str,
        purpose: TokenPurpose = TokenPurpose.EMAIL_VERIFICATION
    ) -> str:
        """
        Issue a fresh token for a user, invalidating every earlier one.

        The delete and insert commit together. A concurrent issuer for the
        same user loses on the store's one-token-per-user constraint.

        Returns:
            The raw token, for out-of-band delivery only
        """
        async with unit_of_work(db):
            token = await self._issue_token(db, user_id, purpose)

        logger.info("Token issued", user_id=user_id, purpose=purpose.value)
        return token

    async def verify_token(self, db: AsyncSession, token: str) -> PublicUser:
        """
        Consume an email verification token and mark its owner verified.

        Raises:
            InvalidTokenError: Token unknown, consumed, or a live token of another purpose
            TokenExpiredError: Token past expiry, of any purpose (it is deleted)
        """
        expired = False
        async with unit_of_work(db):
            record = await self.token_repository.get_by_token(db, token)
            if record is None:
                raise InvalidTokenError("Invalid verification token")

            user_id = record.user_id
            if record.is_expired(self.clock()):
                # Reaped whatever its purpose
                await self.token_repository.delete(db, token)
                expired = True
            elif record.purpose != TokenPurpose.EMAIL_VERIFICATION:
                raise InvalidTokenError("Invalid verification token")
            else:
                # User state changes before the token is removed
                user = await self.user_repository.update(db, record.user, {"is_verified": True})
                await self.token_repository.delete(db, token)
                public = self.to_public(user)

        if expired:
            logger.info("Expired verification token reaped", user_id=user_id)
            raise TokenExpiredError("Verification token has expired")

        logger.info("Email verified", user_id=user_id)
        return public

    async def authenticate_user(
        self,
        db: AsyncSession,
        identifier: str,
        password: str
    ) -> PublicUser:
        """
        Authenticate by email or username.

        Identifiers containing '@' are looked up as emails, anything else as
        a lowercase username. Checks short-circuit in order: unknown user,
        unverified account, wrong password.

        Raises:
            InvalidCredentialsError: Unknown identifier or wrong password
            EmailNotVerifiedError: Account exists but is not verified
        """
        if is_email_identifier(identifier):
            user = await self.user_repository.get_by_email(db, normalize_email(identifier))
        else:
            user = await self.user_repository.get_by_username(db, normalize_username(identifier))

        if user is None:
            logger.info("Login failed", reason="user_not_found")
            raise InvalidCredentialsError()

        if not user.is_verified:
            logger.info("Login failed", reason="not_verified", user_id=user.id)
            raise EmailNotVerifiedError()

        if not await self.hasher.verify_async(password, user.password_hash):
            logger.info("Login failed", reason="invalid_password", user_id=user.id)
            raise InvalidCredentialsError()

        logger.info("User authenticated", user_id=user.id)
        return self.to_public(user)

    async def get_user_by_id(self, db: AsyncSession, user_id: str) -> Optional[PublicUser]:
        user = await self.user_repository.get_by_id(db, user_id)
        if user is None:
            return None
        return self.to_public(user)

    async def request_password_reset(self, db: AsyncSession, email: str) -> TokenDelivery:
        """
        Issue a password reset token for the account registered to an email.

        Any failure surfaces as PasswordResetRequestError with the same
        generic text, so the outcome cannot be used to enumerate accounts.

        Returns:
            Username and raw token for the notifier
        """
        async with unit_of_work(db):
            user = await self.user_repository.get_by_email(db, normalize_email(email))
            if user is None:
                raise PasswordResetRequestError()

            user_id = user.id
            username = user.username
            token = await self._issue_token(db, user_id, TokenPurpose.PASSWORD_RESET)

        logger.info("Password reset requested", user_id=user_id)
        return TokenDelivery(username=username, token=token)

    async def reset_password(
        self,
        db: AsyncSession,
        token: str,
        new_password: str
    ) -> PublicUser:
        """
        Consume a reset token, set the new password and mark the user verified.

        Holding the token proves access to the registered mailbox, which
        counts as email verification.

        Raises:
            InvalidTokenError: Token unknown, consumed, or a live token of another purpose
            TokenExpiredError: Token past expiry, of any purpose (it is deleted)
        """
        expired = False
        async with unit_of_work(db):
            record = await self.token_repository.get_by_token(db, token)
            if record is None:
                raise InvalidTokenError("Invalid or expired reset token")

            user_id = record.user_id
            if record.is_expired(self.clock()):
                await self.token_repository.delete(db, token)
                expired = True
            elif record.purpose != TokenPurpose.PASSWORD_RESET:
                raise InvalidTokenError("Invalid or expired reset token")
            else:
                password_hash = await self.hasher.hash_async(new_password)
                user = await self.user_repository.update(
                    db,
                    record.user,
                    {"password_hash": password_hash, "is_verified": True},
                )
                await self.token_repository.delete(db, token)
                public = self.to_public(user)

        if expired:
            logger.info("Expired reset token reaped", user_id=user_id)
            raise TokenExpiredError("Reset token has expired")

        logger.info("Password reset completed", user_id=user_id)
        return public

    async def resend_verification_email(self, db: AsyncSession, email: str) -> TokenDelivery:
        """
        Re-issue a verification token for an unverified account.

        Raises:
            UserNotFoundError: No account for this email
            AlreadyVerifiedError: Account is already verified
        """
        async with unit_of_work(db):
            user = await self.user_repository.get_by_email(db, normalize_email(email))
            if user is None:
                raise UserNotFoundError()
            if user.is_verified:
                raise AlreadyVerifiedError()

            user_id = user.id
            username = user.username
            token = await self._issue_token(db, user_id, TokenPurpose.EMAIL_VERIFICATION)

        logger.info("Verification token re-issued", user_id=user_id)
        return TokenDelivery(username=username, token=token)

    async def delete_account(
        self,
        db: AsyncSession,
        user_id: str,
        password: str
    ) -> DeletionResult:
        """
        Permanently delete an account after re-checking its password.

        Owned tokens are removed with the user.

        Raises:
            UserNotFoundError: No such user
            InvalidPasswordError: Password does not match
        """
        async with unit_of_work(db):
            user = await self.user_repository.get_by_id(db, user_id)
            if user is None:
                raise UserNotFoundError()

            if not await self.hasher.verify_async(password, user.password_hash):
                logger.warning("Account deletion refused", reason="invalid_password", user_id=user_id)
                raise InvalidPasswordError()

            await self.user_repository.delete(db, user_id)

        logger.info("Account deleted", user_id=user_id)
        return DeletionResult(message="Account deleted successfully")

    async def _issue_token(self, db: AsyncSession, user_id: str, purpose: TokenPurpose) -> str:
        """Delete-then-insert within the caller's unit of work."""
        issued = self.token_issuer.issue(self.clock())
        await self.token_repository.delete_all_for_user(db, user_id)
        await self.token_repository.create(
            db,
            user_id=user_id,
            token=issued.value,
            expires_at=issued.expires_at,
            purpose=purpose,
        )
        return issued.value
