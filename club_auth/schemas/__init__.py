from .auth_schemas import (
    AuthenticatedResponse,
    DeleteAccountRequest,
    ErrorResponse,
    ForgotPasswordRequest,
    LoginRequest,
    MeResponse,
    MessageResponse,
    ResendVerificationRequest,
    ResetPasswordRequest,
    SignUpRequest,
    SignUpResponse,
)
from .user_schemas import DeletionResult, PublicUser, TokenDelivery

__all__ = [
    "AuthenticatedResponse",
    "DeleteAccountRequest",
    "DeletionResult",
    "ErrorResponse",
    "ForgotPasswordRequest",
    "LoginRequest",
    "MeResponse",
    "MessageResponse",
    "PublicUser",
    "ResendVerificationRequest",
    "ResetPasswordRequest",
    "SignUpRequest",
    "SignUpResponse",
    "TokenDelivery",
]
