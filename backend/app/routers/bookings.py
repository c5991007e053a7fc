from fastapi import APIRouter, Depends

from app.auth import require_session
from app.models import BookingRecord, BookingSubmission, BookingSubmitRequest, EnrichedBooking, Profile, ProviderSummary
from app.routers.errors import raise_scheduler_http_error
from app.services.availability_store import availability_store, count_slots
from app.services.booking_service import booking_service
from app.services.errors import SchedulerError
from app.session import SessionContext

router = APIRouter(tags=["bookings"])


@router.get("/providers", response_model=list[ProviderSummary])
def list_providers(session: SessionContext = Depends(require_session)):
    try:
        profiles = availability_store.list_providers(exclude_user_id=session.user_id)
    except SchedulerError as exc:
        raise_scheduler_http_error(exc)
    return [
        ProviderSummary(
            uid=profile.uid,
            display_name=profile.display_name,
            service=profile.metadata.service,
            mode=profile.metadata.mode,
            tags=profile.metadata.tags,
            slot_count=count_slots(profile.availability),
        )
        for profile in profiles
    ]


@router.get("/providers/{provider_id}", response_model=Profile)
def provider_details(provider_id: str, session: SessionContext = Depends(require_session)):
    try:
        return availability_store.get_profile(provider_id)
    except SchedulerError as exc:
        raise_scheduler_http_error(exc)


@router.post("/bookings", response_model=BookingSubmission)
def submit_booking(request: BookingSubmitRequest, session: SessionContext = Depends(require_session)):
    try:
        return booking_service.submit_booking(
            session=session,
            provider_id=request.provider_id,
            slots=request.slots,
        )
    except SchedulerError as exc:
        raise_scheduler_http_error(exc)


@router.get("/bookings/received", response_model=list[EnrichedBooking])
def received_bookings(session: SessionContext = Depends(require_session)):
    try:
        return booking_service.list_received(session.user_id)
    except SchedulerError as exc:
        raise_scheduler_http_error(exc)


@router.get("/bookings/sent", response_model=list[BookingRecord])
def sent_bookings(session: SessionContext = Depends(require_session)):
    try:
        return booking_service.list_sent(session.user_id)
    except SchedulerError as exc:
        raise_scheduler_http_error(exc)
