import logging

from fastapi import status
from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from skillswap.core.errors import api_error
from skillswap.core.logging import ExchangeLogger
from skillswap.models.match import Match, MatchStatus
from skillswap.models.skill_listing import SkillListing
from skillswap.models.user import User
from skillswap.schemas.match import MatchCreate
from skillswap.utils.pagination import paginate

logger = logging.getLogger(__name__)

MATCH_LOAD_OPTIONS = (
    selectinload(Match.user1),
    selectinload(Match.user2),
    selectinload(Match.skill_listing),
)


def _between(user_a: int, user_b: int):
    return or_(
        and_(Match.user1_id == user_a, Match.user2_id == user_b),
        and_(Match.user1_id == user_b, Match.user2_id == user_a),
    )


async def find_match_between(
    db: AsyncSession,
    user_a: int,
    user_b: int,
    skill_listing_id: int | None = None,
) -> Match | None:
    """Any match joining the two users, in either order, optionally for one listing."""
    query = select(Match).options(*MATCH_LOAD_OPTIONS).where(_between(user_a, user_b))
    if skill_listing_id is not None:
        query = query.where(Match.skill_listing_id == skill_listing_id)

    result = await db.execute(query.order_by(Match.id).limit(1))
    return result.scalars().first()


async def link_users(db: AsyncSession, user_a: int, user_b: int) -> None:
    """Set-add each user's id to the other's ``matches`` list."""
    result = await db.execute(select(User).where(User.id.in_([user_a, user_b])))
    users = {user.id: user for user in result.scalars().all()}
    if user_a in users:
        _ = users[user_a].add_match_reference(user_b)
    if user_b in users:
        _ = users[user_b].add_match_reference(user_a)


class MatchService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_match(self, match_id: int) -> Match:
        result = await self.db.execute(
            select(Match).options(*MATCH_LOAD_OPTIONS).where(Match.id == match_id)
        )
        match = result.scalar_one_or_none()
        if not match:
            raise api_error(status.HTTP_404_NOT_FOUND, "Match not found", "NOT_FOUND")
        return match

    async def _get_match_for_participant(self, match_id: int, user_id: int) -> Match:
        match = await self._get_match(match_id)
        if not match.has_participant(user_id):
            raise api_error(
                status.HTTP_403_FORBIDDEN,
                "Not authorized to modify this match",
                "NOT_AUTHORIZED",
            )
        return match

    async def create_from_listing(self, current_user: User, data: MatchCreate) -> Match:
        result = await self.db.execute(
            select(SkillListing).where(
                SkillListing.id == data.skill_listing_id, SkillListing.is_active
            )
        )
        listing = result.scalar_one_or_none()
        if not listing:
            raise api_error(status.HTTP_404_NOT_FOUND, "Skill listing not found", "NOT_FOUND")

        owner_id = listing.user_id
        if owner_id == current_user.id:
            raise api_error(
                status.HTTP_400_BAD_REQUEST,
                "Cannot match with your own listing",
                "SELF_MATCH",
            )

        existing = await find_match_between(self.db, current_user.id, owner_id, listing.id)
        if existing is not None:
            raise api_error(
                status.HTTP_400_BAD_REQUEST,
                "Match already exists for this skill listing",
                "ALREADY_MATCHED",
            )

        match = Match(
            user1_id=current_user.id,
            user2_id=owner_id,
            skill_listing_id=listing.id,
            initiated_by_id=current_user.id,
            status=MatchStatus.accepted,
            notes=data.notes or "",
            skill_wanted=listing.title[:100],
        )
        self.db.add(match)
        await self.db.flush()

        await link_users(self.db, current_user.id, owner_id)
        await self.db.commit()

        await self.db.refresh(match, ["user1", "user2", "skill_listing"])

        ExchangeLogger.log_match_event(
            match.id, current_user.id, "created", {"skill_listing_id": listing.id}
        )
        return match

    async def list_for_user(
        self,
        user_id: int,
        status_filter: MatchStatus | None,
        page: int,
        limit: int,
    ) -> tuple[list[Match], int]:
        query = select(Match).where(or_(Match.user1_id == user_id, Match.user2_id == user_id))
        if status_filter is not None:
            query = query.where(Match.status == status_filter)

        return await paginate(
            self.db,
            query,
            page=page,
            limit=limit,
            order_by=(Match.created_at.desc(), Match.id.desc()),
            options=MATCH_LOAD_OPTIONS,
        )

    async def update_status(
        self, match_id: int, current_user: User, new_status: MatchStatus
    ) -> Match:
        match = await self._get_match_for_participant(match_id, current_user.id)
        previous_status = match.status

        match.status = new_status

        # Only the first transition into completed counts as an exchange.
        if new_status == MatchStatus.completed and previous_status != MatchStatus.completed:
            result = await self.db.execute(
                select(User).where(User.id.in_(match.participant_ids()))
            )
            for participant in result.scalars().all():
                participant.completed_exchanges = (participant.completed_exchanges or 0) + 1

        await self.db.commit()

        ExchangeLogger.log_match_event(
            match.id,
            current_user.id,
            "status_changed",
            {"from": str(previous_status), "to": str(new_status)},
        )
        return match

    async def delete_match(self, match_id: int, current_user: User) -> None:
        match = await self._get_match_for_participant(match_id, current_user.id)
        user1_id, user2_id = match.participant_ids()
        deleted_id = match.id

        await self.db.delete(match)
        await self.db.flush()

        # Pairs may hold several matches; keep the reference while any remain.
        if await find_match_between(self.db, user1_id, user2_id) is None:
            result = await self.db.execute(
                select(User).where(User.id.in_([user1_id, user2_id]))
            )
            for participant in result.scalars().all():
                _ = participant.remove_match_reference(
                    user2_id if participant.id == user1_id else user1_id
                )

        await self.db.commit()
        ExchangeLogger.log_match_event(deleted_id, current_user.id, "deleted")
