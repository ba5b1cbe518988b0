from enum import Enum

from sqlalchemy import JSON, Boolean, ForeignKey, Index, Integer, String, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, enum_values
from .user import User


class SkillCategory(str, Enum):
    programming = "Programming"
    design = "Design"
    languages = "Languages"
    music = "Music"
    cooking = "Cooking"
    photography = "Photography"
    writing = "Writing"
    marketing = "Marketing"
    business = "Business"
    fitness = "Fitness"
    crafts = "Crafts"
    other = "Other"

    def __str__(self):
        return self.value


class SkillLevel(str, Enum):
    beginner = "Beginner"
    intermediate = "Intermediate"
    advanced = "Advanced"

    def __str__(self):
        return self.value


class SkillListing(TimestampMixin, Base):
    __tablename__ = "skill_listings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[SkillCategory] = mapped_column(
        SQLEnum(
            SkillCategory,
            native_enum=False,
            length=30,
            name="skillcategory",
            values_callable=enum_values,
        ),
        nullable=False,
    )
    level: Mapped[SkillLevel] = mapped_column(
        SQLEnum(
            SkillLevel,
            native_enum=False,
            length=20,
            name="skilllevel",
            values_callable=enum_values,
        ),
        nullable=False,
    )
    time_commitment: Mapped[str] = mapped_column(String(100), nullable=False)
    availability: Mapped[str] = mapped_column(String(200), nullable=False)
    location: Mapped[str] = mapped_column(String(100), nullable=False)
    skills_wanted: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    views: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    user: Mapped[User] = relationship()

    __table_args__ = (
        Index("idx_skill_listing_category_level_active", "category", "level", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<SkillListing(id={self.id}, title='{self.title}', user_id={self.user_id})>"
