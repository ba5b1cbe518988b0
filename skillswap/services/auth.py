from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from skillswap.config import settings
from skillswap.core.auth import create_access_token, get_password_hash, verify_password
from skillswap.core.errors import api_error
from skillswap.models.user import User
from skillswap.schemas.auth import AuthResponse, UserRegister
from skillswap.schemas.user import UserPrivate


class AuthService:
    db: AsyncSession

    def __init__(self, db: AsyncSession):
        self.db = db

    async def register_user(self, user_data: UserRegister) -> User:
        result = await self.db.execute(select(User.id).where(User.email == user_data.email))
        if result.scalar_one_or_none() is not None:
            raise api_error(
                status.HTTP_400_BAD_REQUEST,
                "User already exists with this email",
                "EMAIL_TAKEN",
            )

        db_user = User(
            name=user_data.name,
            email=user_data.email,
            password_hash=get_password_hash(user_data.password),
            linkedin_profile=user_data.linkedin_profile,
            bio=user_data.bio,
            location=user_data.location,
            skills_offered=user_data.skills_offered,
            skills_wanted=user_data.skills_wanted,
            matches=[],
            is_active=True,
        )

        self.db.add(db_user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise api_error(
                status.HTTP_400_BAD_REQUEST,
                "User already exists with this email",
                "EMAIL_TAKEN",
            )
        await self.db.refresh(db_user)

        return db_user

    async def authenticate_user(self, email: str, password: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        user = result.scalar_one_or_none()

        if not user or not verify_password(password, user.password_hash):
            return None
        return user

    def build_auth_response(self, user: User, message: str) -> AuthResponse:
        return AuthResponse(
            message=message,
            access_token=create_access_token(data={"sub": str(user.id)}),
            token_type="bearer",
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            user=UserPrivate.model_validate(user),
        )
