import logging

from fastapi import status
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from skillswap.config import settings
from skillswap.core.errors import api_error, parse_id
from skillswap.core.logging import ExchangeLogger
from skillswap.models.match import Match, MatchStatus, MatchValidationError
from skillswap.models.match_request import MatchRequest, MatchRequestStatus
from skillswap.models.user import User
from skillswap.schemas.match_request import MatchRequestCreate
from skillswap.services.match_service import find_match_between, link_users
from skillswap.utils.datetime_utils import utc_now
from skillswap.utils.pagination import paginate

logger = logging.getLogger(__name__)

REQUEST_LOAD_OPTIONS = (
    selectinload(MatchRequest.sender),
    selectinload(MatchRequest.receiver),
)


class MatchRequestService:
    """Lifecycle of match requests: send, list, accept, decline.

    Accepting is the only multi-step write. The request is moved to
    ``accepted`` with a conditional update first, then the match and the
    users' denormalized ``matches`` lists are written in one transaction.
    If that second step fails the request is put back to ``pending``.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def send_request(self, sender: User, data: MatchRequestCreate) -> MatchRequest:
        sender_id = sender.id
        if data.receiver_id == sender_id:
            raise api_error(
                status.HTTP_400_BAD_REQUEST,
                "Cannot send request to yourself",
                "SELF_REQUEST",
            )

        receiver = await self.db.get(User, data.receiver_id)
        if not receiver or not receiver.is_active:
            raise api_error(status.HTTP_404_NOT_FOUND, "User not found", "USER_NOT_FOUND")

        result = await self.db.execute(
            select(MatchRequest.id).where(
                MatchRequest.sender_id == sender_id,
                MatchRequest.receiver_id == data.receiver_id,
                MatchRequest.skill_offered == data.skill_offered,
                MatchRequest.skill_wanted == data.skill_wanted,
                MatchRequest.status == MatchRequestStatus.pending,
            )
        )
        if result.first() is not None:
            raise api_error(
                status.HTTP_400_BAD_REQUEST,
                "Request already sent for this skill combination",
                "DUPLICATE_REQUEST",
            )

        if await find_match_between(self.db, sender_id, data.receiver_id) is not None:
            raise api_error(
                status.HTTP_400_BAD_REQUEST,
                "Already matched with this user",
                "ALREADY_MATCHED",
            )

        match_request = MatchRequest(
            sender_id=sender_id,
            receiver_id=data.receiver_id,
            skill_offered=data.skill_offered,
            skill_wanted=data.skill_wanted,
            message=data.message or "",
            status=MatchRequestStatus.pending,
        )
        self.db.add(match_request)

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise api_error(
                status.HTTP_400_BAD_REQUEST,
                "Duplicate request detected",
                "DUPLICATE_REQUEST",
                details="A request with this skill combination already exists",
            )

        await self.db.refresh(match_request, ["sender", "receiver"])
        ExchangeLogger.log_request_sent(match_request.id, sender_id, data.receiver_id)
        return match_request

    async def list_received(
        self,
        user_id: int,
        status_filter: MatchRequestStatus | None,
        page: int,
        limit: int,
    ) -> tuple[list[MatchRequest], int]:
        query = select(MatchRequest).where(MatchRequest.receiver_id == user_id)
        if status_filter is not None:
            query = query.where(MatchRequest.status == status_filter)
        return await self._page(query, page, limit)

    async def list_sent(
        self,
        user_id: int,
        status_filter: MatchRequestStatus | None,
        page: int,
        limit: int,
    ) -> tuple[list[MatchRequest], int]:
        query = select(MatchRequest).where(MatchRequest.sender_id == user_id)
        if status_filter is not None:
            query = query.where(MatchRequest.status == status_filter)
        return await self._page(query, page, limit)

    async def _page(self, query, page: int, limit: int) -> tuple[list[MatchRequest], int]:
        return await paginate(
            self.db,
            query,
            page=page,
            limit=limit,
            order_by=(MatchRequest.created_at.desc(), MatchRequest.id.desc()),
            options=REQUEST_LOAD_OPTIONS,
        )

    async def count_pending(self, user_id: int) -> int:
        result = await self.db.execute(
            select(func.count(MatchRequest.id)).where(
                MatchRequest.receiver_id == user_id,
                MatchRequest.status == MatchRequestStatus.pending,
            )
        )
        return result.scalar_one()

    async def _find_pending(self, request_id: int, receiver_id: int) -> MatchRequest | None:
        result = await self.db.execute(
            select(MatchRequest)
            .options(*REQUEST_LOAD_OPTIONS)
            .where(
                MatchRequest.id == request_id,
                MatchRequest.receiver_id == receiver_id,
                MatchRequest.status == MatchRequestStatus.pending,
            )
        )
        return result.scalar_one_or_none()

    async def _get_pending_for_receiver(self, request_id: int, receiver_id: int) -> MatchRequest:
        match_request = await self._find_pending(request_id, receiver_id)
        if match_request is not None:
            return match_request

        existing = await self.db.get(MatchRequest, request_id, populate_existing=True)
        if existing is None:
            raise api_error(
                status.HTTP_404_NOT_FOUND,
                "Match request not found",
                "REQUEST_NOT_FOUND",
            )
        if existing.receiver_id != receiver_id:
            raise api_error(
                status.HTTP_403_FORBIDDEN,
                "Not authorized to respond to this request",
                "NOT_AUTHORIZED",
            )
        if existing.status != MatchRequestStatus.pending:
            raise self._already_processed(existing.status)

        # Reverted to pending between the two reads.
        await self.db.refresh(existing, ["sender", "receiver"])
        return existing

    @staticmethod
    def _already_processed(current: MatchRequestStatus | str):
        return api_error(
            status.HTTP_400_BAD_REQUEST,
            f"Request already {current}",
            "ALREADY_PROCESSED",
        )

    async def _transition(
        self,
        match_request: MatchRequest,
        from_status: MatchRequestStatus,
        to_status: MatchRequestStatus,
    ) -> bool:
        """Compare-and-swap on the status column. Returns False if another writer won."""
        result = await self.db.execute(
            update(MatchRequest)
            .where(MatchRequest.id == match_request.id, MatchRequest.status == from_status)
            .values(status=to_status, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        await self.db.refresh(match_request, ["status", "updated_at"])
        return result.rowcount == 1

    async def accept_request(self, raw_request_id: str, receiver: User) -> tuple[MatchRequest, Match]:
        request_id = parse_id(raw_request_id, "request")
        receiver_id = receiver.id
        match_request = await self._get_pending_for_receiver(request_id, receiver_id)
        sender_id = match_request.sender_id

        existing_match = await find_match_between(self.db, sender_id, receiver_id)

        if not await self._transition(
            match_request, MatchRequestStatus.pending, MatchRequestStatus.accepted
        ):
            raise self._already_processed(match_request.status)

        if existing_match is not None:
            ExchangeLogger.log_request_transition(
                request_id, receiver_id, "accepted", match_id=existing_match.id
            )
            return match_request, existing_match

        try:
            match = await self._create_match_for_request(match_request)
        except MatchValidationError as e:
            await self._revert_acceptance(request_id, receiver_id, str(e))
            raise api_error(
                status.HTTP_400_BAD_REQUEST,
                "Match validation failed",
                "MATCH_VALIDATION_ERROR",
                details=str(e),
            )
        except SQLAlchemyError as e:
            await self._revert_acceptance(request_id, receiver_id, str(e))
            raise api_error(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "Failed to create match",
                "MATCH_CREATION_ERROR",
                details=str(e) if settings.DEBUG else None,
            )

        ExchangeLogger.log_request_transition(request_id, receiver_id, "accepted", match_id=match.id)
        return match_request, match

    async def _create_match_for_request(self, match_request: MatchRequest) -> Match:
        match = Match(
            user1_id=match_request.sender_id,
            user2_id=match_request.receiver_id,
            initiated_by_id=match_request.sender_id,
            status=MatchStatus.accepted,
            notes=f"Skill exchange: {match_request.skill_offered} for {match_request.skill_wanted}",
            skill_offered=match_request.skill_offered,
            skill_wanted=match_request.skill_wanted,
        )
        self.db.add(match)
        await self.db.flush()

        await link_users(self.db, match_request.sender_id, match_request.receiver_id)
        await self.db.commit()

        await self.db.refresh(match, ["user1", "user2", "skill_listing"])
        return match

    async def _revert_acceptance(self, request_id: int, actor_id: int, reason: str) -> None:
        await self.db.rollback()
        _ = await self.db.execute(
            update(MatchRequest)
            .where(
                MatchRequest.id == request_id,
                MatchRequest.status == MatchRequestStatus.accepted,
            )
            .values(status=MatchRequestStatus.pending, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        ExchangeLogger.log_match_rollback(request_id, actor_id, reason)

    async def decline_request(self, raw_request_id: str, receiver: User) -> MatchRequest:
        request_id = parse_id(raw_request_id, "request")
        receiver_id = receiver.id
        match_request = await self._get_pending_for_receiver(request_id, receiver_id)

        if not await self._transition(
            match_request, MatchRequestStatus.pending, MatchRequestStatus.declined
        ):
            raise self._already_processed(match_request.status)

        ExchangeLogger.log_request_transition(request_id, receiver_id, "declined")
        return match_request
