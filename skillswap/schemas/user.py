import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from .common import clean_skill_list

LINKEDIN_PROFILE_PATTERN = re.compile(
    r"^https?://(www\.)?linkedin\.com/(in|pub)/[a-zA-Z0-9\-_.]+/?$"
)


def validate_linkedin_profile(value: str) -> str:
    value = value.strip()
    if not LINKEDIN_PROFILE_PATTERN.match(value):
        raise ValueError("Please provide a valid LinkedIn profile URL")
    return value


class UserSummary(BaseModel):
    """Display fields embedded in listings, requests and matches."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    avatar: str = ""
    rating: float = 0.0
    linkedin_profile: str


class RequestParticipant(UserSummary):
    skills_offered: list[str] = []


class ListingOwner(UserSummary):
    completed_exchanges: int = 0


class ListingOwnerDetail(ListingOwner):
    bio: str = ""
    location: str = ""


class UserPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    avatar: str = ""
    bio: str = ""
    location: str = ""
    linkedin_profile: str
    skills_offered: list[str] = []
    skills_wanted: list[str] = []
    rating: float = 0.0
    completed_exchanges: int = 0
    created_at: datetime


class UserPrivate(UserPublic):
    email: EmailStr
    matches: list[int] = []
    is_active: bool = True


class UserProfileUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(None, min_length=2, max_length=100)
    bio: str | None = Field(None, max_length=500)
    location: str | None = Field(None, max_length=100)
    avatar: str | None = Field(None, max_length=500)
    linkedin_profile: str | None = None
    skills_offered: list[str] | None = None
    skills_wanted: list[str] | None = None

    @field_validator("linkedin_profile")
    @classmethod
    def check_linkedin(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return validate_linkedin_profile(v)

    @field_validator("skills_offered", "skills_wanted")
    @classmethod
    def clean_skills(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return v
        return clean_skill_list(v)


class ProfileResponse(BaseModel):
    message: str
    user: UserPrivate
