from typing import Literal, Optional

from pydantic import BaseModel, Field

Weekday = Literal["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

WEEKDAYS: tuple[str, ...] = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

ServiceMode = Literal["in-person", "online", "both"]

EditorStatus = Literal["clean", "pending", "committed", "failed"]


class ServiceMetadata(BaseModel):
    service: Optional[str] = None
    location: Optional[str] = None
    rate: Optional[str] = None
    duration: Optional[str] = None
    notes: Optional[str] = None
    mode: Optional[ServiceMode] = None
    tags: list[str] = Field(default_factory=list)
    max_bookings_per_day: Optional[int] = Field(default=None, ge=0)
    buffer_time: Optional[str] = None


class Profile(BaseModel):
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    metadata: ServiceMetadata = Field(default_factory=ServiceMetadata)
    availability: dict[str, list[str]] = Field(default_factory=dict)
    exists: bool = True


class ProfileUpdateRequest(BaseModel):
    display_name: Optional[str] = None
    service: Optional[str] = None
    location: Optional[str] = None
    rate: Optional[str] = None
    duration: Optional[str] = None
    notes: Optional[str] = None
    mode: Optional[ServiceMode] = None
    tags: Optional[list[str]] = None
    max_bookings_per_day: Optional[int] = Field(default=None, ge=0)
    buffer_time: Optional[str] = None


class ProviderSummary(BaseModel):
    uid: str
    display_name: Optional[str] = None
    service: Optional[str] = None
    mode: Optional[ServiceMode] = None
    tags: list[str] = Field(default_factory=list)
    slot_count: int = 0


class Slot(BaseModel):
    day: Weekday
    time: str


class SlotInput(BaseModel):
    # Unknown days and blank times are ignored by the editor, not rejected here.
    day: str = ""
    time: str = ""


class EditorView(BaseModel):
    provider_id: str
    status: EditorStatus
    availability: dict[str, list[str]] = Field(default_factory=dict)
    staged: list[Slot] = Field(default_factory=list)


class StageSlotResponse(BaseModel):
    staged: bool
    editor: EditorView


class BookingRecord(BaseModel):
    id: str
    from_user: str
    to_user: str
    day: Weekday
    time: str
    created_at: str


class EnrichedBooking(BookingRecord):
    from_user_name: str = "Unknown"


class BookingSubmitRequest(BaseModel):
    provider_id: str
    slots: list[Slot] = Field(default_factory=list)


class BookingSubmission(BaseModel):
    provider_id: str
    bookings: list[BookingRecord] = Field(default_factory=list)


class ReconcileSummary(BaseModel):
    scanned: int = 0
    repaired: int = 0


class SignupRequest(BaseModel):
    email: str
    password: str
    display_name: Optional[str] = None


class AuthLoginRequest(BaseModel):
    email: str
    password: str


class AuthLoginResponse(BaseModel):
    access_token: str
    token_type: Literal["bearer"] = "bearer"
    user_id: str
    expires_at: str


class AuthMeResponse(BaseModel):
    user_id: str
    email: Optional[str] = None


class ServiceOfferingCreate(BaseModel):
    name: str = ""
    duration: Optional[int] = Field(default=None, ge=0)
    price: Optional[float] = Field(default=None, ge=0)


class ServiceOffering(BaseModel):
    id: str
    name: str
    duration: int
    price: float
    created_by: Optional[str] = None
    created_at: Optional[str] = None
