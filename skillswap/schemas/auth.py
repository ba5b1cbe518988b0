from pydantic import BaseModel, EmailStr, Field, field_validator

from .common import clean_skill_list
from .user import UserPrivate, validate_linkedin_profile


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class UserRegister(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)
    linkedin_profile: str
    bio: str = Field("", max_length=500)
    location: str = Field("", max_length=100)
    skills_offered: list[str] = []
    skills_wanted: list[str] = []

    @field_validator("name", "bio", "location", mode="before")
    @classmethod
    def strip_text(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("linkedin_profile")
    @classmethod
    def check_linkedin(cls, v: str) -> str:
        return validate_linkedin_profile(v)

    @field_validator("skills_offered", "skills_wanted")
    @classmethod
    def clean_skills(cls, v: list[str]) -> list[str]:
        return clean_skill_list(v)


class AuthResponse(BaseModel):
    message: str
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds
    user: UserPrivate
