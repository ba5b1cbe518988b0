from enum import Enum

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, event
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, enum_values
from .skill_listing import SkillListing
from .user import User


class MatchStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    declined = "declined"
    completed = "completed"

    def __str__(self):
        return self.value


class MatchValidationError(ValueError):
    pass


class Match(TimestampMixin, Base):
    __tablename__ = "matches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user1_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    user2_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    skill_listing_id: Mapped[int | None] = mapped_column(
        ForeignKey("skill_listings.id"), nullable=True
    )
    status: Mapped[MatchStatus] = mapped_column(
        SQLEnum(
            MatchStatus,
            native_enum=False,
            length=20,
            name="matchstatus",
            values_callable=enum_values,
        ),
        default=MatchStatus.accepted,
        nullable=False,
    )
    initiated_by_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    notes: Mapped[str] = mapped_column(String(500), default="", nullable=False)
    skill_offered: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    skill_wanted: Mapped[str] = mapped_column(String(100), default="", nullable=False)

    user1: Mapped[User] = relationship(foreign_keys=[user1_id])
    user2: Mapped[User] = relationship(foreign_keys=[user2_id])
    skill_listing: Mapped[SkillListing | None] = relationship()

    # Pairs are deliberately not unique; callers check before inserting.
    __table_args__ = (
        CheckConstraint("user1_id <> user2_id", name="ck_matches_no_self_match"),
        Index("idx_match_users_status", "user1_id", "user2_id", "status"),
    )

    def participant_ids(self) -> tuple[int, int]:
        return self.user1_id, self.user2_id

    def has_participant(self, user_id: int) -> bool:
        return user_id in (self.user1_id, self.user2_id)

    def other_participant(self, user_id: int) -> User:
        return self.user2 if self.user1_id == user_id else self.user1

    def __repr__(self) -> str:
        return (
            f"<Match(id={self.id}, user1_id={self.user1_id}, "
            f"user2_id={self.user2_id}, status='{self.status}')>"
        )


@event.listens_for(Match, "before_insert")
@event.listens_for(Match, "before_update")
def _reject_self_match(_mapper, _connection, target: Match) -> None:
    if target.user1_id == target.user2_id:
        raise MatchValidationError("Users cannot match with themselves")
