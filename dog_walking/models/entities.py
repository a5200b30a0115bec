from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from dog_walking.core.exceptions import InvalidReference, ValidationError

# A walk never spans more than a day
MAX_WALK_MINUTES = 24 * 60

# --- Incoming Request Models ---

class OwnerRequest(BaseModel):
    name: str
    email: str
    phone: str
    address: str

class DogRequest(BaseModel):
    owner: str
    name: Optional[str] = None
    age: Optional[int] = Field(default=None, ge=0, le=255)
    breed: Optional[str] = None

class BookingRequest(BaseModel):
    owner: str
    start_time: datetime
    duration_in_minutes: int = Field(gt=0, le=MAX_WALK_MINUTES)


# --- Stored Records ---

class Owner(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    email: str
    phone: str
    address: str

class Dog(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    owner: UUID
    name: Optional[str] = None
    age: Optional[int] = Field(default=None, ge=0, le=255)
    breed: Optional[str] = None

class Booking(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    owner: UUID
    start_time: datetime
    duration_in_minutes: int = Field(gt=0, le=MAX_WALK_MINUTES)
    canceled: bool = False

    @field_validator("start_time")
    @classmethod
    def normalize_start_time(cls, value: datetime) -> datetime:
        return as_utc(value)


# --- Read Models ---

class FullBooking(BaseModel):
    """A booking joined with its owner and the owner's dogs. Computed on read, never stored."""
    id: UUID
    owner: Owner
    start_time: datetime
    duration_in_minutes: int
    canceled: bool
    dogs: List[Dog] = Field(default_factory=list)

class CancelStatus(str, Enum):
    CANCELED = "canceled"
    ALREADY_CANCELED = "already_canceled"
    NOT_FOUND = "not_found"

class CancelResult(BaseModel):
    booking_id: UUID
    status: CancelStatus

    @property
    def changed(self) -> bool:
        return self.status == CancelStatus.CANCELED

class OwnerDetails(BaseModel):
    owner: Owner
    dogs: List[Dog] = Field(default_factory=list)


# --- Conversions ---

def as_utc(value: datetime) -> datetime:
    """Naive timestamps are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

def parse_identity(value: str, field: str = "id") -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value).strip())
    except (ValueError, AttributeError, TypeError):
        raise InvalidReference(field, value)

def to_owner(request: OwnerRequest) -> Owner:
    return Owner(
        name=request.name,
        email=request.email,
        phone=request.phone,
        address=request.address,
    )

def to_dog(request: DogRequest) -> Dog:
    owner_id = parse_identity(request.owner, field="owner")
    try:
        return Dog(owner=owner_id, name=request.name, age=request.age, breed=request.breed)
    except PydanticValidationError as e:
        raise ValidationError(str(e)) from e

def to_booking(request: BookingRequest) -> Booking:
    """
    Builds a new, active booking.
    The owner id is parsed before anything else so a malformed id never yields a partial record.
    """
    owner_id = parse_identity(request.owner, field="owner")
    try:
        return Booking(
            owner=owner_id,
            start_time=request.start_time,
            duration_in_minutes=request.duration_in_minutes,
        )
    except PydanticValidationError as e:
        raise ValidationError(str(e)) from e
