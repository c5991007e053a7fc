import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from app.models import WEEKDAYS, BookingRecord, BookingSubmission, EnrichedBooking, ReconcileSummary, Slot
from app.services.availability_store import AvailabilityStore, availability_store
from app.services.document_store import (
    BOOKINGS,
    DocumentStore,
    DocumentStoreError,
    document_store,
    received_bookings_path,
)
from app.services.errors import BookingReadError, BookingSubmitError
from app.session import SessionContext, is_authenticated

logger = logging.getLogger(__name__)

SYNC_FLAG = "inboxSynced"
RECORD_FIELDS = ("fromUser", "toUser", "day", "time", "createdAt")

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _ordered_unique(slots: Iterable[Slot]) -> List[Tuple[str, str]]:
    seen: List[Tuple[str, str]] = []
    for slot in slots:
        key = (slot.day, slot.time)
        if key not in seen:
            seen.append(key)
    return seen


def _record_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    return {field: data.get(field) for field in RECORD_FIELDS}


def _to_booking(booking_id: str, data: Dict[str, Any]) -> Optional[BookingRecord]:
    day = data.get("day")
    if day not in WEEKDAYS:
        logger.warning("Skipping booking %s with unreadable day %r", booking_id, day)
        return None
    return BookingRecord(
        id=booking_id,
        from_user=str(data.get("fromUser") or ""),
        to_user=str(data.get("toUser") or ""),
        day=day,
        time=str(data.get("time") or ""),
        created_at=str(data.get("createdAt") or ""),
    )


class BookingService:
    """Creates booking records and reads them back for either party.

    Every booking lives in two places: the global ``bookings`` log and the
    provider's ``receivedBookings`` inbox, under the same id. The log entry
    is written first with ``inboxSynced`` false, then the inbox copy, then
    the flag is set. ``reconcile_inboxes`` finishes any entry a failure left
    half written.
    """

    def __init__(self, documents: DocumentStore, profiles: AvailabilityStore) -> None:
        self.documents = documents
        self.profiles = profiles

    def submit_booking(
        self,
        session: Optional[SessionContext],
        provider_id: str,
        slots: Iterable[Slot],
        now_fn: Optional[Clock] = None,
    ) -> BookingSubmission:
        submission = BookingSubmission(provider_id=provider_id)
        if not is_authenticated(session):
            logger.info("Booking skipped: no authenticated user")
            return submission
        assert session is not None and session.user_id
        selected = _ordered_unique(slots)
        if not selected:
            return submission

        clock = now_fn or utc_now
        for day, time in selected:
            record = {
                "fromUser": session.user_id,
                "toUser": provider_id,
                "day": day,
                "time": time,
                "createdAt": clock().isoformat(),
            }
            try:
                booking_id = self._write_fanout(record)
            except DocumentStoreError:
                logger.exception(
                    "Booking %s %s for %s failed after %d written",
                    day,
                    time,
                    provider_id,
                    len(submission.bookings),
                )
                raise BookingSubmitError(
                    "Failed to book slots.",
                    written_ids=[booking.id for booking in submission.bookings],
                ) from None
            booking = _to_booking(booking_id, record)
            assert booking is not None
            submission.bookings.append(booking)

        logger.info(
            "Booked %d slot(s) with %s for %s",
            len(submission.bookings),
            provider_id,
            session.user_id,
        )
        return submission

    def _write_fanout(self, record: Dict[str, Any]) -> str:
        booking_id = self.documents.add(BOOKINGS, {**record, SYNC_FLAG: False})
        self.documents.set(received_bookings_path(record["toUser"]), booking_id, dict(record))
        self.documents.merge(BOOKINGS, booking_id, {SYNC_FLAG: True})
        return booking_id

    def reconcile_inboxes(self) -> ReconcileSummary:
        """Write missing inbox copies for log entries not yet marked synced."""
        summary = ReconcileSummary()
        for booking_id, data in self.documents.scan(BOOKINGS):
            summary.scanned += 1
            if data.get(SYNC_FLAG) is True:
                continue
            provider_id = data.get("toUser")
            if not provider_id:
                logger.warning("Booking %s has no provider, cannot reconcile", booking_id)
                continue
            inbox = received_bookings_path(str(provider_id))
            if self.documents.get(inbox, booking_id) is None:
                self.documents.set(inbox, booking_id, _record_fields(data))
                logger.info("Restored inbox copy of booking %s for %s", booking_id, provider_id)
            self.documents.merge(BOOKINGS, booking_id, {SYNC_FLAG: True})
            summary.repaired += 1
        return summary

    def list_received(self, provider_id: str) -> List[EnrichedBooking]:
        try:
            rows = self.documents.scan(received_bookings_path(provider_id))
            received: List[EnrichedBooking] = []
            for booking_id, data in rows:
                booking = _to_booking(booking_id, data)
                if booking is None:
                    continue
                received.append(
                    EnrichedBooking(
                        **booking.model_dump(),
                        from_user_name=self.profiles.display_name_for(booking.from_user),
                    )
                )
        except DocumentStoreError:
            logger.exception("Reading received bookings failed for %s", provider_id)
            raise BookingReadError("Failed to load bookings.") from None
        return received

    def list_sent(self, requester_id: str) -> List[BookingRecord]:
        try:
            rows = self.documents.scan(BOOKINGS)
        except DocumentStoreError:
            logger.exception("Reading sent bookings failed for %s", requester_id)
            raise BookingReadError("Failed to load bookings.") from None
        sent: List[BookingRecord] = []
        for booking_id, data in rows:
            if data.get("fromUser") != requester_id:
                continue
            booking = _to_booking(booking_id, data)
            if booking is not None:
                sent.append(booking)
        return sent


booking_service = BookingService(documents=document_store, profiles=availability_store)
