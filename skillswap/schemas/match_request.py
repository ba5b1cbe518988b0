from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from skillswap.models.match_request import MatchRequestStatus

from .common import MAX_ID
from .match import MatchRead
from .user import RequestParticipant


class MatchRequestCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    receiver_id: int = Field(..., gt=0, le=MAX_ID)
    skill_offered: str = Field(..., min_length=1, max_length=100)
    skill_wanted: str = Field(..., min_length=1, max_length=100)
    message: str | None = Field(None, max_length=500)


class MatchRequestRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    sender: RequestParticipant
    receiver: RequestParticipant
    skill_offered: str
    skill_wanted: str
    message: str
    status: MatchRequestStatus
    created_at: datetime
    updated_at: datetime


class MatchRequestResponse(BaseModel):
    message: str
    request: MatchRequestRead


class MatchRequestAcceptResponse(MatchRequestResponse):
    match: MatchRead


class MatchRequestCount(BaseModel):
    count: int
