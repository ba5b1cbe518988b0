from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from skillswap.models.match import MatchStatus

from .common import MAX_ID
from .skill_listing import ListingSummary
from .user import UserSummary


class MatchCreate(BaseModel):
    skill_listing_id: int = Field(..., gt=0, le=MAX_ID)
    notes: str | None = Field(None, max_length=500)


class MatchStatusUpdate(BaseModel):
    status: MatchStatus


class MatchRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user1: UserSummary
    user2: UserSummary
    skill_listing: ListingSummary | None = None
    status: MatchStatus
    initiated_by_id: int
    notes: str
    skill_offered: str
    skill_wanted: str
    created_at: datetime
    updated_at: datetime


class MatchListItem(MatchRead):
    other_user: UserSummary


class MatchResponse(BaseModel):
    message: str
    match: MatchRead
