"""
Authentication endpoints for the identity service.
Implements signup, email verification, login, password reset, verification
resend and account deletion.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from ..core.database import get_db
from ..core.exceptions import AuthError
from ..core.security import create_access_token
from ..interfaces.notifier_interface import INotifier
from ..schemas.auth_schemas import (
    AuthenticatedResponse, DeleteAccountRequest, ErrorResponse, ForgotPasswordRequest,
    LoginRequest, MeResponse, MessageResponse, ResendVerificationRequest,
    ResetPasswordRequest, SignUpRequest, SignUpResponse
)
from ..schemas.user_schemas import PublicUser
from ..services.auth_service import AuthService
from .deps import get_auth_service, get_current_user, get_notifier

logger = structlog.get_logger()
router = APIRouter(prefix="/auth", tags=["authentication"])

RESET_REQUEST_MESSAGE = "If an account exists with this email, a password reset link will be sent."


def _signed_in(message: str, user: PublicUser) -> AuthenticatedResponse:
    return AuthenticatedResponse(
        message=message,
        user=user,
        access_token=create_access_token(user.id),
    )


@router.post(
    "/signup",
    response_model=SignUpResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}}
)
async def signup(
    payload: SignUpRequest,
    db: AsyncSession = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
    notifier: INotifier = Depends(get_notifier)
):
    """
    Register an account and email a verification link.

    - **email**: Email address
    - **password**: At least 8 characters with upper, lower case and a digit
    - **username**: 3-20 letters, digits or underscores
    """
    user = await auth_service.create_user(db, payload.email, payload.password, payload.username)
    token = await auth_service.generate_verification_token(db, user.id)
    await notifier.send_verification_email(user.email, user.username, token)

    return SignUpResponse(
        message="Signup successful! Please check your email to verify your account.",
        email=user.email,
    )


@router.get(
    "/verify/{token}",
    response_model=AuthenticatedResponse,
    responses={400: {"model": ErrorResponse}}
)
async def verify_email(
    token: str,
    db: AsyncSession = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Consume a verification token and sign the user in."""
    user = await auth_service.verify_token(db, token)
    return _signed_in("Email verified successfully", user)


@router.post(
    "/login",
    response_model=AuthenticatedResponse,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}}
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Authenticate with email or username.

    - **identifier**: Email address or username (case-insensitive)
    - **password**: Account password
    """
    user = await auth_service.authenticate_user(db, payload.identifier, payload.password)
    return _signed_in("Login successful", user)


@router.get("/me", response_model=MeResponse)
async def me(current_user: PublicUser = Depends(get_current_user)):
    return MeResponse(user=current_user)


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    payload: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
    notifier: INotifier = Depends(get_notifier)
):
    """
    Request a password reset link.

    Always answers with the same message whether or not the account exists.
    """
    try:
        delivery = await auth_service.request_password_reset(db, payload.email)
        await notifier.send_password_reset_email(payload.email, delivery.username, delivery.token)
    except AuthError as e:
        logger.info("Password reset request not honored", error_code=e.error_code)

    return MessageResponse(message=RESET_REQUEST_MESSAGE)


@router.post(
    "/reset-password",
    response_model=AuthenticatedResponse,
    responses={400: {"model": ErrorResponse}, 422: {"model": ErrorResponse}}
)
async def reset_password(
    payload: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Set a new password with a reset token and sign the user in."""
    user = await auth_service.reset_password(db, payload.token, payload.password)
    return _signed_in("Password reset successful", user)


@router.post(
    "/resend-verification",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}
)
async def resend_verification(
    payload: ResendVerificationRequest,
    db: AsyncSession = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
    notifier: INotifier = Depends(get_notifier)
):
    """Issue a new verification link, invalidating the previous one."""
    delivery = await auth_service.resend_verification_email(db, payload.email)
    await notifier.send_verification_email(payload.email, delivery.username, delivery.token)
    return MessageResponse(message="Verification email sent! Please check your inbox.")


@router.delete(
    "/account",
    response_model=MessageResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}
)
async def delete_account(
    payload: DeleteAccountRequest,
    current_user: PublicUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Permanently delete the signed-in account. Requires the current password."""
    result = await auth_service.delete_account(db, current_user.id, payload.password)
    return MessageResponse(message=result.message)
