import uuid
from datetime import datetime, time

from pydantic import BaseModel, Field


class ExerciseRead(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None = None
    muscle_groups: str | None = None
    equipment: str | None = None

    model_config = {"from_attributes": True}


class RoutineExerciseIn(BaseModel):
    exercise_id: uuid.UUID
    position: int | None = Field(None, ge=1)
    sets: int = Field(3, ge=1)
    reps: str = Field("12", max_length=50)
    rest_seconds: int = Field(60, ge=0)
    notes: str | None = Field(None, max_length=500)


class RoutineExerciseRead(BaseModel):
    id: uuid.UUID
    exercise_id: uuid.UUID
    name: str
    muscle_groups: str | None = None
    equipment: str | None = None
    position: int
    sets: int
    reps: str
    rest_seconds: int
    notes: str | None = None


class RoutineCreate(BaseModel):
    name: str = Field(..., max_length=255)
    description: str | None = None
    goal: str | None = Field(None, max_length=255)
    difficulty: str = "intermediate"
    estimated_minutes: int = Field(60, ge=1)
    target_client_id: uuid.UUID | None = None
    # Emptiness is checked by the service so it reports a domain error.
    exercises: list[RoutineExerciseIn] = []


class RoutineUpdate(BaseModel):
    name: str = Field(..., max_length=255)
    description: str | None = None
    goal: str | None = Field(None, max_length=255)
    difficulty: str = "intermediate"
    estimated_minutes: int = Field(60, ge=1)


class RoutineCreated(BaseModel):
    routine_id: uuid.UUID
    name: str
    assigned: bool


class RoutineRead(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None = None
    goal: str | None = None
    difficulty: str
    estimated_minutes: int
    is_personalized: bool
    target_client_id: uuid.UUID | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class RoutineDetail(RoutineRead):
    exercises: list[RoutineExerciseRead]


class ReplaceExercisesRequest(BaseModel):
    exercises: list[RoutineExerciseIn] = []


class TrainingDayIn(BaseModel):
    weekday: str
    start_time: time | None = None
    end_time: time | None = None
    notes: str | None = Field(None, max_length=500)


class TrainingDayRead(BaseModel):
    id: uuid.UUID
    weekday: str
    start_time: time | None = None
    end_time: time | None = None
    notes: str | None = None

    model_config = {"from_attributes": True}


class AssignRoutineRequest(BaseModel):
    client_id: uuid.UUID
    routine_id: uuid.UUID
    training_days: list[TrainingDayIn] = []
    started_at: datetime | None = None
    ended_at: datetime | None = None
    coach_notes: str | None = Field(None, max_length=500)


class RoutineAssignmentRead(BaseModel):
    id: uuid.UUID
    routine_id: uuid.UUID | None = None
    routine_name: str
    client_id: uuid.UUID
    state: str
    assigned_at: datetime
    started_at: datetime | None = None
    ended_at: datetime | None = None
    coach_notes: str | None = None

    model_config = {"from_attributes": True}


class AssignRoutineResponse(BaseModel):
    assignment: RoutineAssignmentRead
    training_days: list[TrainingDayRead]


class RoutineAssigneeRead(BaseModel):
    assignment_id: uuid.UUID
    client_id: uuid.UUID
    name: str
    email: str
    state: str
    assigned_at: datetime
    ended_at: datetime | None = None


class ClientRoutineRead(BaseModel):
    assignment_id: uuid.UUID
    routine_id: uuid.UUID | None = None
    routine_name: str
    goal: str | None = None
    difficulty: str | None = None
    estimated_minutes: int | None = None
    state: str
    assigned_at: datetime
    started_at: datetime | None = None
    ended_at: datetime | None = None
    coach_notes: str | None = None
    coach_name: str | None = None
    exercise_count: int = 0


class ClientRoutineDetail(BaseModel):
    assignment_id: uuid.UUID
    routine_id: uuid.UUID | None = None
    routine_name: str
    description: str | None = None
    goal: str | None = None
    difficulty: str | None = None
    estimated_minutes: int | None = None
    state: str
    assigned_at: datetime
    started_at: datetime | None = None
    ended_at: datetime | None = None
    coach_notes: str | None = None
    exercises: list[RoutineExerciseRead]


class ActiveRoutineRead(ClientRoutineDetail):
    training_days: list[TrainingDayRead]
