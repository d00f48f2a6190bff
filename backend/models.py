"""
Pydantic models for the waitlist
"""
from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class WaitlistSignup(BaseModel):
    """Fields supplied by a caller when adding someone to the waitlist"""
    name: str
    email: str
    company: Optional[str] = None
    role: Optional[str] = None


class WaitlistEntry(BaseModel):
    """One stored signup"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str
    email: str  # stored as entered, never normalized
    company: Optional[str] = None
    role: Optional[str] = None
    created_at: datetime = Field(alias="createdAt")

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        # Older payloads may carry naive timestamps
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class AddResult(BaseModel):
    """Outcome of an atomic check-and-insert"""
    model_config = ConfigDict(frozen=True)

    inserted: bool
    entry: WaitlistEntry


class SignupResponse(BaseModel):
    """Acknowledgment returned to the landing page"""
    status: str = "ok"
    added: bool
    message: str
    count: int


class CountResponse(BaseModel):
    count: int
