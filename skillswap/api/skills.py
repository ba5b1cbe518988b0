from typing import Annotated

from fastapi import APIRouter, Query, status
from sqlalchemy import String, cast, or_, select, update
from sqlalchemy.orm import selectinload

from skillswap.config import settings
from skillswap.core.dependencies import CurrentUser, DatabaseSession, OptionalUser, PathId
from skillswap.core.errors import api_error
from skillswap.models.skill_listing import SkillCategory, SkillLevel, SkillListing
from skillswap.schemas.common import MAX_ID, ErrorResponse, MessageResponse
from skillswap.schemas.pagination import Page, PaginationMeta
from skillswap.schemas.skill_listing import (
    SkillListingCreate,
    SkillListingDetail,
    SkillListingRead,
    SkillListingResponse,
    SkillListingUpdate,
)
from skillswap.services.matching_service import find_potential_matches
from skillswap.utils.pagination import paginate
from skillswap.utils.search import LIKE_ESCAPE, contains_pattern

router = APIRouter(tags=["skills"])


async def _get_owned_listing(
    db: DatabaseSession, listing_id: int, user_id: int, action: str
) -> SkillListing:
    result = await db.execute(
        select(SkillListing)
        .options(selectinload(SkillListing.user))
        .where(SkillListing.id == listing_id, SkillListing.is_active)
    )
    listing = result.scalar_one_or_none()

    if not listing:
        raise api_error(status.HTTP_404_NOT_FOUND, "Skill listing not found", "NOT_FOUND")

    if listing.user_id != user_id:
        raise api_error(
            status.HTTP_403_FORBIDDEN,
            f"Not authorized to {action} this listing",
            "NOT_AUTHORIZED",
        )

    return listing


@router.get("", response_model=Page[SkillListingRead])
async def get_skill_listings(
    db: DatabaseSession,
    current_user: OptionalUser,
    search: Annotated[str | None, Query(max_length=100)] = None,
    category: SkillCategory | None = None,
    level: SkillLevel | None = None,
    location: Annotated[str | None, Query(max_length=100)] = None,
    user_id: Annotated[int | None, Query(gt=0, le=MAX_ID)] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=settings.MAX_PAGE_SIZE)] = settings.LISTING_PAGE_SIZE,
) -> Page[SkillListingRead]:
    query = select(SkillListing).where(SkillListing.is_active)

    if search and search.strip():
        pattern = contains_pattern(search.strip())
        query = query.where(
            or_(
                SkillListing.title.ilike(pattern, escape=LIKE_ESCAPE),
                SkillListing.description.ilike(pattern, escape=LIKE_ESCAPE),
                cast(SkillListing.category, String).ilike(pattern, escape=LIKE_ESCAPE),
            )
        )

    if category:
        query = query.where(SkillListing.category == category)

    if level:
        query = query.where(SkillListing.level == level)

    if location and location.strip():
        query = query.where(
            SkillListing.location.ilike(contains_pattern(location.strip()), escape=LIKE_ESCAPE)
        )

    if user_id:
        query = query.where(SkillListing.user_id == user_id)

    listings, total = await paginate(
        db,
        query,
        page=page,
        limit=limit,
        order_by=(SkillListing.created_at.desc(), SkillListing.id.desc()),
        options=(selectinload(SkillListing.user),),
    )

    match_ids = find_potential_matches(current_user, listings) if current_user else set()

    items: list[SkillListingRead] = []
    for listing in listings:
        item = SkillListingRead.model_validate(listing, from_attributes=True)
        item.is_match = listing.id in match_ids
        items.append(item)

    return Page[SkillListingRead](
        items=items, pagination=PaginationMeta.build(page, limit, total)
    )


@router.post(
    "",
    response_model=SkillListingResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse, "description": "Invalid listing data"}},
)
async def create_skill_listing(
    listing_data: SkillListingCreate,
    current_user: CurrentUser,
    db: DatabaseSession,
) -> SkillListingResponse:
    listing = SkillListing(**listing_data.model_dump(), user_id=current_user.id)

    db.add(listing)
    await db.commit()
    await db.refresh(listing, ["user"])

    return SkillListingResponse(
        message="Skill listing created successfully",
        listing=SkillListingRead.model_validate(listing, from_attributes=True),
    )


@router.get(
    "/{listing_id}",
    response_model=SkillListingDetail,
    responses={404: {"model": ErrorResponse, "description": "Skill listing not found"}},
)
async def get_skill_listing(listing_id: PathId, db: DatabaseSession) -> SkillListingDetail:
    result = await db.execute(
        select(SkillListing)
        .options(selectinload(SkillListing.user))
        .where(SkillListing.id == listing_id, SkillListing.is_active)
    )
    listing = result.scalar_one_or_none()

    if not listing:
        raise api_error(status.HTTP_404_NOT_FOUND, "Skill listing not found", "NOT_FOUND")

    # Every read counts, including the owner's.
    _ = await db.execute(
        update(SkillListing)
        .where(SkillListing.id == listing_id)
        .values(views=SkillListing.views + 1, updated_at=SkillListing.updated_at)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    await db.refresh(listing, ["views"])

    return SkillListingDetail.model_validate(listing, from_attributes=True)


@router.put(
    "/{listing_id}",
    response_model=SkillListingResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Not the listing owner"},
        404: {"model": ErrorResponse, "description": "Skill listing not found"},
    },
)
async def update_skill_listing(
    listing_id: PathId,
    listing_data: SkillListingUpdate,
    current_user: CurrentUser,
    db: DatabaseSession,
) -> SkillListingResponse:
    listing = await _get_owned_listing(db, listing_id, current_user.id, "edit")

    update_data = listing_data.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in update_data.items():
        setattr(listing, field, value)

    await db.commit()

    return SkillListingResponse(
        message="Skill listing updated successfully",
        listing=SkillListingRead.model_validate(listing, from_attributes=True),
    )


@router.delete(
    "/{listing_id}",
    response_model=MessageResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Not the listing owner"},
        404: {"model": ErrorResponse, "description": "Skill listing not found"},
    },
)
async def delete_skill_listing(
    listing_id: PathId,
    current_user: CurrentUser,
    db: DatabaseSession,
) -> MessageResponse:
    listing = await _get_owned_listing(db, listing_id, current_user.id, "delete")

    listing.is_active = False
    await db.commit()

    return MessageResponse(message="Skill listing deleted successfully")
