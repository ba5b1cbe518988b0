from typing import Annotated

from fastapi import Depends, Path, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from skillswap.database import DatabaseHealth, get_db
from skillswap.models.user import User
from skillswap.schemas.common import MAX_ID
from skillswap.services.auth import AuthService
from skillswap.services.match_request_service import MatchRequestService
from skillswap.services.match_service import MatchService

from .auth import verify_token
from .errors import api_error
from .logging import SecurityLogger

bearer_scheme = HTTPBearer(auto_error=False)

DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
BearerCredentials = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]

PathId = Annotated[int, Path(gt=0, le=MAX_ID)]


def _user_id_from_token(token: str) -> int | None:
    payload = verify_token(token, token_type="access")
    if payload is None:
        return None

    user_id = payload.get("sub")
    if not isinstance(user_id, (str, int)):
        return None

    try:
        return int(user_id)
    except ValueError:
        return None


async def get_current_user(
    request: Request, credentials: BearerCredentials, db: DatabaseSession
) -> User:
    unauthorized_headers = {"WWW-Authenticate": "Bearer"}
    if not credentials:
        raise api_error(
            status.HTTP_401_UNAUTHORIZED,
            "No token, authorization denied",
            "NOT_AUTHENTICATED",
            headers=unauthorized_headers,
        )

    user_id = _user_id_from_token(credentials.credentials)
    if user_id is None:
        SecurityLogger.log_suspicious_activity(
            request, "invalid_token", details={"path": request.url.path}
        )
        raise api_error(
            status.HTTP_401_UNAUTHORIZED,
            "Token is not valid",
            "INVALID_TOKEN",
            headers=unauthorized_headers,
        )

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise api_error(
            status.HTTP_401_UNAUTHORIZED,
            "User not found",
            "INVALID_TOKEN",
            headers=unauthorized_headers,
        )

    return user


async def get_current_active_user(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    if not current_user.is_active:
        raise api_error(status.HTTP_403_FORBIDDEN, "Account is deactivated", "NOT_AUTHORIZED")
    return current_user


CurrentUser = Annotated[User, Depends(get_current_active_user)]


async def get_optional_current_user(
    credentials: BearerCredentials, db: DatabaseSession
) -> User | None:
    if not credentials:
        return None

    user_id = _user_id_from_token(credentials.credentials)
    if user_id is None:
        return None

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        return None

    return user


OptionalUser = Annotated[User | None, Depends(get_optional_current_user)]


def get_database_health(request: Request) -> DatabaseHealth:
    return request.app.state.db_health


async def require_database(
    health: Annotated[DatabaseHealth, Depends(get_database_health)],
) -> None:
    if health.connected:
        return

    if health.should_recheck():
        _ = await health.check()

    if not health.connected:
        raise api_error(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "Database temporarily unavailable",
            "SERVICE_UNAVAILABLE",
            details="Please try again shortly",
        )


async def get_auth_service(db: DatabaseSession) -> AuthService:
    return AuthService(db)


async def get_match_request_service(db: DatabaseSession) -> MatchRequestService:
    return MatchRequestService(db)


async def get_match_service(db: DatabaseSession) -> MatchService:
    return MatchService(db)
