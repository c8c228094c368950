# medslot/routers/auth.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from medslot.core.security import InvalidTokenError, decode_token, is_refresh_token
from medslot.db.sql import get_session
from medslot.dependencies import get_current_user
from medslot.modules.users.models import User
from medslot.modules.users.schemas import (
    LoginRequest,
    LoginResponse,
    MeResponse,
    RefreshRequest,
    RegisterRequest,
    RegisterResponse,
)
from medslot.modules.users.service import (
    EmailAlreadyExists,
    InactiveUser,
    InvalidCredentials,
    doctor_id_for,
    login_user,
    refresh_tokens,
    register_user,
    to_public,
)

router = APIRouter(tags=["auth"])


async def _login(session: AsyncSession, payload: LoginRequest) -> LoginResponse:
    try:
        return await login_user(session, payload)
    except InvalidCredentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid_credentials",
        )
    except InactiveUser:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="user_inactive",
        )


@router.post(
    "/auth/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new user account",
    responses={
        201: {"description": "User created"},
        409: {"description": "Email already registered"},
        422: {"description": "Invalid payload"},
    },
)
async def auth_register(
    payload: RegisterRequest,
    session: AsyncSession = Depends(get_session),
):
    """
    Register a new patient or doctor (default role: `patient`).

    Notes:
    - Email is normalized to lowercase.
    - Password must pass strength checks (8–64 chars, ≥1 letter, ≥1 digit).
    - Doctors must send `specialization`; their schedule profile is created
      with `appointment_duration_minutes` or the clinic default.
    """
    try:
        return await register_user(session, payload)
    except EmailAlreadyExists:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="email_already_exists",
        )


@router.post(
    "/auth/login",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    summary="Obtain a Bearer token with email and password (JSON body)",
    responses={
        200: {"description": "Authenticated"},
        401: {"description": "Invalid credentials"},
        403: {"description": "Account deactivated"},
    },
)
async def auth_login(
    payload: LoginRequest,
    session: AsyncSession = Depends(get_session),
):
    """
    JSON-based login endpoint used by frontend clients.

    Expects:
    {
        "email": "user@example.com",
        "password": "secret"
    }
    """
    return await _login(session, payload)


@router.post(
    "/auth/token",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    summary="OAuth2 password flow login (for Swagger UI)",
    responses={
        200: {"description": "Authenticated"},
        401: {"description": "Invalid credentials"},
    },
)
async def auth_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: AsyncSession = Depends(get_session),
):
    """
    OAuth2 password-flow compatible login endpoint.

    Swagger will send form data:
    - username: user email
    - password: user password
    """
    login_payload = LoginRequest(
        email=form_data.username,
        password=form_data.password,
    )
    return await _login(session, login_payload)


@router.get(
    "/auth/me",
    response_model=MeResponse,
    status_code=status.HTTP_200_OK,
    summary="Return the current user's profile",
)
async def auth_me(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return to_public(current_user, await doctor_id_for(session, current_user))


@router.post(
    "/auth/refresh",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    summary="Exchange a refresh token for a new access token",
    responses={401: {"description": "Invalid refresh token"}},
)
async def auth_refresh(
    request: RefreshRequest,
    session: AsyncSession = Depends(get_session),
):
    try:
        payload = decode_token(request.refresh_token)
    except InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid_token",
        )

    if not is_refresh_token(payload):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid_token_type",
        )

    try:
        return await refresh_tokens(session, payload["sub"], request.refresh_token)
    except (InvalidCredentials, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid_token",
        )
    except InactiveUser:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="user_inactive",
        )
