# signup_service/schemas/registration.py
from pydantic import BaseModel, Field
from typing import Optional
from enum import Enum
from datetime import datetime


class TicketType(str, Enum):
    adult = "Ü18"
    minor = "U18"


class RegistrationCreate(BaseModel):
    """Canonical registration record, produced only by the validator."""

    clan_nickname: str = Field(..., min_length=2, max_length=50)
    email: str = Field(..., max_length=255)
    ticket_type: TicketType
    shirt: bool = False
    pizza: bool = False
    drinks: bool = False
    guests: int = Field(0, ge=0, le=10)
    consent: bool

    def mutable_fields(self) -> dict:
        """Fields an update overwrites. Email is the key and never changes."""
        data = self.model_dump(exclude={"email"})
        data["ticket_type"] = self.ticket_type.value
        return data


class RequestProvenance(BaseModel):
    ip_address: Optional[str] = None
    user_agent: str = ""


class RegistrationAccepted(BaseModel):
    ok: bool = True
    id: int
    message: str = "Anmeldung erfolgreich gespeichert."


class Participant(BaseModel):
    id: int
    clan_nickname: str
    bezahlt: Optional[int] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class HealthStatus(BaseModel):
    ok: bool
    timestamp: datetime
