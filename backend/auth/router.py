# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Auth endpoints – register, verify, login.

The handlers are thin: every rule lives in :class:`auth.service.AccountService`
and every failure is a :mod:`core.exceptions` error rendered by the global
handler as ``{"message": ...}``.
"""

from fastapi import APIRouter, Depends, status

from auth.schemas import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
    SafeUser,
    VerifyRequest,
)
from auth.service import AccountService, get_account_service
from core.security import create_access_token

router = APIRouter(prefix="/api/auth", tags=["auth"])


# ---------------------------------------------------------------------------
# POST /api/auth/register
# ---------------------------------------------------------------------------


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(body: RegisterRequest, accounts: AccountService = Depends(get_account_service)):
    """Create an unverified account and email its verification code."""
    user = accounts.register(body.name, body.email, body.password)
    return RegisterResponse(
        message="User registered successfully. Please verify your email.",
        email=user.email,
    )


# ---------------------------------------------------------------------------
# POST /api/auth/verify
# ---------------------------------------------------------------------------


@router.post("/verify", response_model=MessageResponse)
def verify(body: VerifyRequest, accounts: AccountService = Depends(get_account_service)):
    accounts.verify(body.email, body.code)
    return MessageResponse(message="Account verified successfully")


# ---------------------------------------------------------------------------
# POST /api/auth/login
# ---------------------------------------------------------------------------


@router.post("/login", response_model=LoginResponse)
def login(body: LoginRequest, accounts: AccountService = Depends(get_account_service)):
    """Check credentials and return the safe user projection plus a token."""
    user = accounts.login(body.email, body.password)
    token = create_access_token({"sub": user.id, "is_admin": user.is_admin})
    return LoginResponse(
        message="Login successful",
        user=SafeUser.model_validate(user),
        token=token,
    )
