from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from skillswap.config import settings
from skillswap.core.dependencies import CurrentUser, get_match_request_service
from skillswap.models.match_request import MatchRequestStatus
from skillswap.schemas.common import ErrorResponse
from skillswap.schemas.match import MatchRead
from skillswap.schemas.match_request import (
    MatchRequestAcceptResponse,
    MatchRequestCount,
    MatchRequestCreate,
    MatchRequestRead,
    MatchRequestResponse,
)
from skillswap.schemas.pagination import Page, PaginationMeta
from skillswap.services.match_request_service import MatchRequestService

router = APIRouter(tags=["match-requests"])

MatchRequestServiceDep = Annotated[MatchRequestService, Depends(get_match_request_service)]
PageParam = Annotated[int, Query(ge=1)]
LimitParam = Annotated[int, Query(ge=1, le=settings.MAX_PAGE_SIZE)]

TRANSITION_RESPONSES: dict[int | str, dict[str, object]] = {
    400: {"model": ErrorResponse, "description": "Malformed id or request already processed"},
    403: {"model": ErrorResponse, "description": "Caller is not the receiver"},
    404: {"model": ErrorResponse, "description": "Match request not found"},
}


def _page(items, page: int, limit: int, total: int) -> Page[MatchRequestRead]:
    return Page[MatchRequestRead](
        items=[MatchRequestRead.model_validate(item) for item in items],
        pagination=PaginationMeta.build(page, limit, total),
    )


@router.post(
    "",
    response_model=MatchRequestResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Self request, duplicate or already matched"},
        404: {"model": ErrorResponse, "description": "Receiver not found"},
    },
)
async def send_match_request(
    request_data: MatchRequestCreate,
    current_user: CurrentUser,
    service: MatchRequestServiceDep,
) -> MatchRequestResponse:
    match_request = await service.send_request(current_user, request_data)
    return MatchRequestResponse(
        message="Match request sent successfully",
        request=MatchRequestRead.model_validate(match_request),
    )


@router.get("/received", response_model=Page[MatchRequestRead])
async def get_received_requests(
    current_user: CurrentUser,
    service: MatchRequestServiceDep,
    status_filter: Annotated[MatchRequestStatus, Query(alias="status")] = MatchRequestStatus.pending,
    page: PageParam = 1,
    limit: LimitParam = settings.DEFAULT_PAGE_SIZE,
) -> Page[MatchRequestRead]:
    items, total = await service.list_received(current_user.id, status_filter, page, limit)
    return _page(items, page, limit, total)


@router.get("/sent", response_model=Page[MatchRequestRead])
async def get_sent_requests(
    current_user: CurrentUser,
    service: MatchRequestServiceDep,
    status_filter: Annotated[MatchRequestStatus | None, Query(alias="status")] = None,
    page: PageParam = 1,
    limit: LimitParam = settings.DEFAULT_PAGE_SIZE,
) -> Page[MatchRequestRead]:
    items, total = await service.list_sent(current_user.id, status_filter, page, limit)
    return _page(items, page, limit, total)


@router.get("/count", response_model=MatchRequestCount)
async def get_pending_count(
    current_user: CurrentUser,
    service: MatchRequestServiceDep,
) -> MatchRequestCount:
    return MatchRequestCount(count=await service.count_pending(current_user.id))


@router.put(
    "/{request_id}/accept",
    response_model=MatchRequestAcceptResponse,
    responses=TRANSITION_RESPONSES,
)
async def accept_match_request(
    request_id: str,
    current_user: CurrentUser,
    service: MatchRequestServiceDep,
) -> MatchRequestAcceptResponse:
    match_request, match = await service.accept_request(request_id, current_user)
    return MatchRequestAcceptResponse(
        message="Match request accepted successfully",
        request=MatchRequestRead.model_validate(match_request),
        match=MatchRead.model_validate(match),
    )


@router.put(
    "/{request_id}/decline",
    response_model=MatchRequestResponse,
    responses=TRANSITION_RESPONSES,
)
async def decline_match_request(
    request_id: str,
    current_user: CurrentUser,
    service: MatchRequestServiceDep,
) -> MatchRequestResponse:
    match_request = await service.decline_request(request_id, current_user)
    return MatchRequestResponse(
        message="Match request declined",
        request=MatchRequestRead.model_validate(match_request),
    )
