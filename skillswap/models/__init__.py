from .base import Base, TimestampMixin, UTCDateTime
from .match import Match, MatchStatus, MatchValidationError
from .match_request import MatchRequest, MatchRequestStatus
from .skill_listing import SkillCategory, SkillLevel, SkillListing
from .user import User

__all__ = [
    "Base",
    "TimestampMixin",
    "UTCDateTime",
    "User",
    "SkillListing",
    "SkillCategory",
    "SkillLevel",
    "MatchRequest",
    "MatchRequestStatus",
    "Match",
    "MatchStatus",
    "MatchValidationError",
]
