from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from skillswap.models.skill_listing import SkillCategory, SkillLevel

from .common import clean_skill_list
from .user import ListingOwner, ListingOwnerDetail


class SkillListingBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=5, max_length=100)
    description: str = Field(..., min_length=20, max_length=1000)
    category: SkillCategory
    level: SkillLevel
    time_commitment: str = Field(..., min_length=1, max_length=100)
    availability: str = Field(..., min_length=1, max_length=200)
    location: str = Field(..., min_length=1, max_length=100)
    skills_wanted: list[str] = []

    @field_validator("skills_wanted")
    @classmethod
    def clean_skills(cls, v: list[str]) -> list[str]:
        return clean_skill_list(v)


class SkillListingCreate(SkillListingBase):
    pass


class SkillListingUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str | None = Field(None, min_length=5, max_length=100)
    description: str | None = Field(None, min_length=20, max_length=1000)
    category: SkillCategory | None = None
    level: SkillLevel | None = None
    time_commitment: str | None = Field(None, min_length=1, max_length=100)
    availability: str | None = Field(None, min_length=1, max_length=200)
    location: str | None = Field(None, min_length=1, max_length=100)
    skills_wanted: list[str] | None = None

    @field_validator("skills_wanted")
    @classmethod
    def clean_skills(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return v
        return clean_skill_list(v)


class SkillListingRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    category: SkillCategory
    level: SkillLevel
    time_commitment: str
    availability: str
    location: str
    skills_wanted: list[str] = []
    is_active: bool
    views: int
    created_at: datetime
    updated_at: datetime
    user: ListingOwner
    is_match: bool = False


class SkillListingDetail(SkillListingRead):
    user: ListingOwnerDetail


class SkillListingResponse(BaseModel):
    message: str
    listing: SkillListingRead


class ListingSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    category: SkillCategory
    level: SkillLevel
