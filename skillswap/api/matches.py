from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from skillswap.config import settings
from skillswap.core.dependencies import CurrentUser, PathId, get_match_service
from skillswap.models.match import MatchStatus
from skillswap.schemas.common import ErrorResponse, MessageResponse
from skillswap.schemas.match import (
    MatchCreate,
    MatchListItem,
    MatchRead,
    MatchResponse,
    MatchStatusUpdate,
)
from skillswap.schemas.pagination import Page, PaginationMeta
from skillswap.schemas.user import UserSummary
from skillswap.services.match_service import MatchService

router = APIRouter(tags=["matches"])

MatchServiceDep = Annotated[MatchService, Depends(get_match_service)]


@router.post(
    "",
    response_model=MatchResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Own listing or match already exists"},
        404: {"model": ErrorResponse, "description": "Skill listing not found"},
    },
)
async def create_match(
    match_data: MatchCreate,
    current_user: CurrentUser,
    match_service: MatchServiceDep,
) -> MatchResponse:
    match = await match_service.create_from_listing(current_user, match_data)
    return MatchResponse(
        message="Match created successfully",
        match=MatchRead.model_validate(match),
    )


@router.get("", response_model=Page[MatchListItem])
async def get_matches(
    current_user: CurrentUser,
    match_service: MatchServiceDep,
    status_filter: Annotated[MatchStatus | None, Query(alias="status")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=settings.MAX_PAGE_SIZE)] = settings.DEFAULT_PAGE_SIZE,
) -> Page[MatchListItem]:
    matches, total = await match_service.list_for_user(current_user.id, status_filter, page, limit)

    items = [
        MatchListItem(
            **MatchRead.model_validate(match).model_dump(),
            other_user=UserSummary.model_validate(match.other_participant(current_user.id)),
        )
        for match in matches
    ]

    return Page[MatchListItem](items=items, pagination=PaginationMeta.build(page, limit, total))


@router.put(
    "/{match_id}/status",
    response_model=MatchResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Not a participant"},
        404: {"model": ErrorResponse, "description": "Match not found"},
    },
)
async def update_match_status(
    match_id: PathId,
    status_data: MatchStatusUpdate,
    current_user: CurrentUser,
    match_service: MatchServiceDep,
) -> MatchResponse:
    match = await match_service.update_status(match_id, current_user, status_data.status)
    return MatchResponse(
        message="Match status updated successfully",
        match=MatchRead.model_validate(match),
    )


@router.delete(
    "/{match_id}",
    response_model=MessageResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Not a participant"},
        404: {"model": ErrorResponse, "description": "Match not found"},
    },
)
async def delete_match(
    match_id: PathId,
    current_user: CurrentUser,
    match_service: MatchServiceDep,
) -> MessageResponse:
    await match_service.delete_match(match_id, current_user)
    return MessageResponse(message="Match deleted successfully")
