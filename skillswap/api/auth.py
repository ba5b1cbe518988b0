from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status

from skillswap.config import settings
from skillswap.core.dependencies import CurrentUser, get_auth_service
from skillswap.core.errors import api_error
from skillswap.core.logging import SecurityLogger, get_client_ip, rate_limiter
from skillswap.core.middleware import limiter
from skillswap.schemas.auth import AuthResponse, UserLogin, UserRegister
from skillswap.schemas.common import ErrorResponse
from skillswap.schemas.user import UserPrivate
from skillswap.services.auth import AuthService

router = APIRouter(tags=["authentication"])

AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Email already registered or invalid input"},
        429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
    },
)
@limiter.limit(settings.REGISTER_RATE_LIMIT)
async def register(
    request: Request,
    user_data: UserRegister,
    auth_service: AuthServiceDep,
) -> AuthResponse:
    try:
        user = await auth_service.register_user(user_data)
    except HTTPException:
        SecurityLogger.log_registration(
            request,
            email=user_data.email,
            success=False,
            failure_reason="email_taken",
        )
        raise

    SecurityLogger.log_registration(request, email=user.email, user_id=user.id)

    return auth_service.build_auth_response(user, "User registered successfully")


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
        403: {"model": ErrorResponse, "description": "Account inactive"},
        423: {"model": ErrorResponse, "description": "Account temporarily locked"},
        429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
    },
)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    login_data: UserLogin,
    auth_service: AuthServiceDep,
) -> AuthResponse:
    lockout_key = f"login:{get_client_ip(request)}:{login_data.email}"

    rate_check = rate_limiter.check_and_record_attempt(
        lockout_key,
        max_attempts=settings.LOGIN_MAX_ATTEMPTS,
        window_seconds=settings.LOGIN_WINDOW_SECONDS,
        lockout_seconds=settings.LOGIN_LOCKOUT_SECONDS,
    )

    if not rate_check["allowed"]:
        SecurityLogger.log_rate_limit_exceeded(
            request,
            "login",
            details={
                "email": login_data.email,
                "reason": rate_check["reason"],
                "retry_after": rate_check["retry_after"],
            },
        )
        raise api_error(
            status.HTTP_423_LOCKED,
            f"Account temporarily locked due to too many failed attempts. Try again in {rate_check['retry_after']} seconds.",
            "ACCOUNT_LOCKED",
            headers={"Retry-After": str(rate_check["retry_after"])},
        )

    user = await auth_service.authenticate_user(login_data.email, login_data.password)

    if not user:
        SecurityLogger.log_login_attempt(
            request,
            email=login_data.email,
            success=False,
            failure_reason="invalid_credentials",
        )
        raise api_error(status.HTTP_401_UNAUTHORIZED, "Invalid credentials", "INVALID_CREDENTIALS")

    if not user.is_active:
        SecurityLogger.log_login_attempt(
            request,
            email=login_data.email,
            success=False,
            user_id=user.id,
            failure_reason="account_inactive",
        )
        raise api_error(status.HTTP_403_FORBIDDEN, "Account is deactivated", "NOT_AUTHORIZED")

    rate_limiter.reset(lockout_key)
    SecurityLogger.log_login_attempt(request, email=user.email, success=True, user_id=user.id)

    return auth_service.build_auth_response(user, "Login successful")


@router.get("/me", response_model=UserPrivate)
async def get_me(current_user: CurrentUser) -> UserPrivate:
    return UserPrivate.model_validate(current_user)
