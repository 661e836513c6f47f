"""
Pydantic models for the dispatch core.

Intake collaborators hand these in as per-call snapshots; the core returns
decisions (Assignment) rather than mutating persisted records.
"""

import math
import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from dispatch.exceptions import InvalidStatusTransitionError
from dispatch.utils.timezone_utils import ensure_utc, optional_utc

TOKEN_SPLIT = re.compile(r"[\s,]+")


class TicketStatus(str, Enum):
    """Lifecycle of a walk-in ticket. Transitions only move forward."""
    OPEN = "Open"
    BOOKED = "Booked"
    COMPLETED = "Completed"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)


_STATUS_ORDER = [TicketStatus.OPEN, TicketStatus.BOOKED, TicketStatus.COMPLETED]


class Ticket(BaseModel):
    """A patient queue entry awaiting assignment or completion."""
    id: str = Field(..., description="Ticket identifier")
    priority: float = Field(0, description="Higher value is served first")
    status: TicketStatus = Field(TicketStatus.OPEN, description="Ticket status")
    created_at: Optional[datetime] = Field(None, description="Intake time")
    completed_at: Optional[datetime] = Field(None, description="Completion time")
    timestamp: Optional[datetime] = Field(None, description="Legacy intake time")
    doctor_assigned: Optional[str] = Field(None, description="Assigned doctor ID")
    symptoms: str = Field("", description="Free-text symptom description")

    @field_validator('priority')
    @classmethod
    def validate_priority_finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("priority must be a finite number")
        return v

    @field_validator('created_at', 'completed_at', 'timestamp', mode='before')
    @classmethod
    def normalize_instant(cls, v):
        return optional_utc(v)

    @property
    def effective_created_at(self) -> Optional[datetime]:
        """Intake time, falling back to the legacy timestamp field."""
        return self.created_at or self.timestamp

    def transition_to(self, status: TicketStatus, **updates) -> "Ticket":
        """
        Return a copy moved to `status`.

        Raises:
            InvalidStatusTransitionError: if the move would go backwards
        """
        status = TicketStatus(status)
        if status.rank < self.status.rank:
            raise InvalidStatusTransitionError(self.id, self.status.value, status.value)
        return self.model_copy(update={'status': status, **updates})


class Doctor(BaseModel):
    """Roster member. Specialties are free text ("cardiology, chest pain")."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Doctor identifier, unique per roster")
    name: str = Field("", description="Display name")
    specialties: str = Field("", description="Specialty terms")

    @field_validator('specialties', mode='before')
    @classmethod
    def join_specialty_list(cls, v):
        if v is None:
            return ""
        if isinstance(v, (list, tuple, set, frozenset)):
            return ", ".join(str(term) for term in v)
        return v

    @property
    def specialty_terms(self) -> List[str]:
        return tokenize(self.specialties)


class Interval(BaseModel):
    """A booked or free time range [start, end)."""
    start: datetime
    end: datetime

    @field_validator('start', 'end', mode='before')
    @classmethod
    def normalize_instant(cls, v):
        return ensure_utc(v)

    @model_validator(mode='after')
    def validate_order(self) -> "Interval":
        if self.start > self.end:
            raise ValueError("interval start must not be after end")
        return self

    @property
    def duration_minutes(self) -> float:
        return (self.end - self.start).total_seconds() / 60


class Assignment(BaseModel):
    """A ticket -> doctor routing decision for the caller to apply."""
    ticket_id: str
    doctor_id: str
    strategy: str = "least_load"


@dataclass
class DoctorMatch:
    """Specialty-similarity result for one doctor."""
    doctor: Doctor
    similarity: float


@dataclass
class DoctorLoad:
    """Open/booked ticket count for one doctor."""
    doctor: Doctor
    load: int


@dataclass
class WaitTimeStats:
    """Wait times of completed tickets, in whole minutes."""
    avg_wait_time: int = 0
    median_wait_time: int = 0
    max_wait_time: int = 0


def tokenize(text: Optional[str]) -> List[str]:
    """Lower-case and split on whitespace/commas, dropping empty pieces."""
    return [token for token in TOKEN_SPLIT.split((text or "").lower()) if token]

