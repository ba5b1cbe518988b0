from enum import Enum

from sqlalchemy import ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, enum_values
from .user import User


class MatchRequestStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    declined = "declined"

    def __str__(self):
        return self.value


class MatchRequest(TimestampMixin, Base):
    __tablename__ = "match_requests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    sender_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    receiver_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    skill_offered: Mapped[str] = mapped_column(String(100), nullable=False)
    skill_wanted: Mapped[str] = mapped_column(String(100), nullable=False)
    message: Mapped[str] = mapped_column(String(500), default="", nullable=False)
    status: Mapped[MatchRequestStatus] = mapped_column(
        SQLEnum(
            MatchRequestStatus,
            native_enum=False,
            length=20,
            name="matchrequeststatus",
            values_callable=enum_values,
        ),
        default=MatchRequestStatus.pending,
        nullable=False,
    )

    sender: Mapped[User] = relationship(foreign_keys=[sender_id])
    receiver: Mapped[User] = relationship(foreign_keys=[receiver_id])

    # One row per tuple regardless of status: a declined tuple cannot be re-sent.
    __table_args__ = (
        UniqueConstraint(
            "sender_id",
            "receiver_id",
            "skill_offered",
            "skill_wanted",
            name="uq_match_request_tuple",
        ),
        Index("idx_match_request_receiver_status", "receiver_id", "status"),
        Index("idx_match_request_sender_status", "sender_id", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<MatchRequest(id={self.id}, sender_id={self.sender_id}, "
            f"receiver_id={self.receiver_id}, status='{self.status}')>"
        )
