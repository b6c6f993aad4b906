import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class CoachCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=8, max_length=128)
    specialty: str = Field(..., min_length=1, max_length=255)
    certifications: str | None = Field(None, max_length=1000)
    bio: str | None = None
    schedule: str | None = Field(None, max_length=500)


class CoachCreated(BaseModel):
    coach_id: uuid.UUID
    user_id: uuid.UUID


class CoachProfileUpdateRequest(BaseModel):
    name: str | None = Field(None, max_length=255)
    specialty: str | None = Field(None, max_length=255)
    certifications: str | None = Field(None, max_length=1000)
    bio: str | None = None
    schedule: str | None = Field(None, max_length=500)


class CoachProfileRead(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    specialty: str | None = None
    certifications: str | None = None
    bio: str | None = None
    schedule: str | None = None

    model_config = {"from_attributes": True}


class CoachSummary(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    specialty: str | None = None
    certifications: str | None = None
    bio: str | None = None
    schedule: str | None = None


class CoachStatusCoach(BaseModel):
    id: uuid.UUID
    name: str
    specialty: str | None = None
    schedule: str | None = None
    requested_at: datetime


class CoachStatusRead(BaseModel):
    has_coach: bool
    pending_request: bool
    coach: CoachStatusCoach | None = None


class AssignmentRead(BaseModel):
    id: uuid.UUID
    coach_id: uuid.UUID
    client_id: uuid.UUID
    state: str
    requested_at: datetime
    responded_at: datetime | None = None

    model_config = {"from_attributes": True}


class ClientSummary(BaseModel):
    assignment_id: uuid.UUID
    client_id: uuid.UUID
    name: str
    email: str
    state: str
    requested_at: datetime
    responded_at: datetime | None = None
