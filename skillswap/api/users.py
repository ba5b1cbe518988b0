from typing import Annotated

from fastapi import APIRouter, Query, status
from sqlalchemy import or_, select

from skillswap.config import settings
from skillswap.core.dependencies import CurrentUser, DatabaseSession, PathId
from skillswap.core.errors import api_error
from skillswap.models.user import User
from skillswap.schemas.common import ErrorResponse
from skillswap.schemas.pagination import Page, PaginationMeta
from skillswap.schemas.user import ProfileResponse, UserPrivate, UserProfileUpdate, UserPublic
from skillswap.utils.pagination import paginate
from skillswap.utils.search import LIKE_ESCAPE, contains_pattern, json_list_contains

router = APIRouter(tags=["users"])


@router.get("", response_model=Page[UserPublic])
async def search_users(
    db: DatabaseSession,
    search: Annotated[str | None, Query(max_length=100)] = None,
    skills: Annotated[str | None, Query(max_length=500, description="Comma-separated skills")] = None,
    location: Annotated[str | None, Query(max_length=100)] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=settings.MAX_PAGE_SIZE)] = settings.DEFAULT_PAGE_SIZE,
) -> Page[UserPublic]:
    query = select(User).where(User.is_active)
    dialect_name = db.get_bind().dialect.name

    if search and search.strip():
        term = search.strip()
        pattern = contains_pattern(term)
        query = query.where(
            or_(
                User.name.ilike(pattern, escape=LIKE_ESCAPE),
                User.bio.ilike(pattern, escape=LIKE_ESCAPE),
                json_list_contains(User.skills_offered, term, dialect_name),
                json_list_contains(User.skills_wanted, term, dialect_name),
            )
        )

    if skills:
        skill_terms = [skill.strip() for skill in skills.split(",") if skill.strip()]
        if skill_terms:
            query = query.where(
                or_(
                    *[
                        json_list_contains(User.skills_offered, term, dialect_name)
                        for term in skill_terms
                    ]
                )
            )

    if location and location.strip():
        query = query.where(
            User.location.ilike(contains_pattern(location.strip()), escape=LIKE_ESCAPE)
        )

    users, total = await paginate(
        db,
        query,
        page=page,
        limit=limit,
        order_by=(User.created_at.desc(), User.id.desc()),
    )

    return Page[UserPublic](
        items=[UserPublic.model_validate(user) for user in users],
        pagination=PaginationMeta.build(page, limit, total),
    )


@router.put("/profile", response_model=ProfileResponse)
async def update_profile(
    profile_data: UserProfileUpdate,
    current_user: CurrentUser,
    db: DatabaseSession,
) -> ProfileResponse:
    update_data = profile_data.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in update_data.items():
        setattr(current_user, field, value)

    await db.commit()
    await db.refresh(current_user)

    return ProfileResponse(
        message="Profile updated successfully",
        user=UserPrivate.model_validate(current_user),
    )


@router.get(
    "/{user_id}",
    response_model=UserPublic,
    responses={404: {"model": ErrorResponse, "description": "User not found"}},
)
async def get_user(user_id: PathId, db: DatabaseSession) -> UserPublic:
    result = await db.execute(select(User).where(User.id == user_id, User.is_active))
    user = result.scalar_one_or_none()
    if not user:
        raise api_error(status.HTTP_404_NOT_FOUND, "User not found", "NOT_FOUND")

    return UserPublic.model_validate(user)
