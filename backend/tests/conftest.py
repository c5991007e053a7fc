import os
import sys
import tempfile
from datetime import datetime, timezone

import pytest

_TEST_DB_DIR = tempfile.mkdtemp(prefix="slotbook-tests-")
os.environ.setdefault("SCHEDULER_DB_PATH", os.path.join(_TEST_DB_DIR, "scheduler.sqlite3"))
os.environ.setdefault("AUTH_SECRET", "test-secret")

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from app.services.availability_store import AvailabilityStore  # noqa: E402
from app.services.booking_service import BookingService  # noqa: E402
from app.services.document_store import DocumentStore  # noqa: E402


@pytest.fixture
def documents(tmp_path):
    return DocumentStore(db_path=str(tmp_path / "scheduler.sqlite3"))


@pytest.fixture
def profiles(documents):
    return AvailabilityStore(documents=documents)


@pytest.fixture
def bookings(documents, profiles):
    return BookingService(documents=documents, profiles=profiles)


@pytest.fixture
def fixed_clock():
    return lambda: datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)
