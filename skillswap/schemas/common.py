from pydantic import BaseModel

# Largest signed 64-bit value; integer keys above it cannot reach the database.
MAX_ID = 2**63 - 1


class ErrorResponse(BaseModel):
    message: str
    error: str | None = None
    details: object | None = None


class MessageResponse(BaseModel):
    message: str


def clean_skill_list(values: list[str] | None) -> list[str]:
    """Trim entries and drop blanks, keeping the caller's order."""
    if not values:
        return []
    return [value.strip() for value in values if value and value.strip()]
