from sqlalchemy import JSON, Boolean, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(
        String(255), unique=True, index=True, nullable=False
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    linkedin_profile: Mapped[str] = mapped_column(String(300), nullable=False)
    avatar: Mapped[str] = mapped_column(String(500), default="", nullable=False)
    bio: Mapped[str] = mapped_column(Text, default="", nullable=False)
    location: Mapped[str] = mapped_column(String(100), default="", nullable=False)

    skills_offered: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    skills_wanted: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    rating: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    completed_exchanges: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Denormalized ids of matched partners; kept in step with the matches table.
    matches: Mapped[list[int]] = mapped_column(JSON, default=list, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def add_match_reference(self, other_user_id: int) -> bool:
        current = list(self.matches or [])
        if other_user_id in current:
            return False
        # Reassign so the JSON column is flagged as modified.
        self.matches = [*current, other_user_id]
        return True

    def remove_match_reference(self, other_user_id: int) -> bool:
        current = list(self.matches or [])
        if other_user_id not in current:
            return False
        self.matches = [user_id for user_id in current if user_id != other_user_id]
        return True

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
