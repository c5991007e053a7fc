"""Staged editing of a provider's weekly availability template.

Slots are staged locally and merged into the persisted template on
``commit``. ``remove_slot`` bypasses staging and writes immediately. Both
writes start from a fresh read of the persisted template.

Each editor tracks one of four states:

    clean      local template matches the store, nothing staged
    pending    slots are staged but not yet written
    committed  the last write succeeded
    failed     the last write failed; the template was re-read from the store

A failed write never leaves an unconfirmed local mutation behind: the
persisted template is re-fetched, and staged slots are kept so the owner
can retry the commit.
"""

import logging
import re
from enum import Enum
from threading import Lock
from typing import Dict, List, Optional, Tuple

from app.models import WEEKDAYS, EditorView, Slot
from app.services.availability_store import AvailabilityStore, availability_store, normalize_template
from app.services.document_store import DocumentStoreError
from app.services.errors import AvailabilitySaveError, ProfileReadError
from app.session import SessionContext, is_authenticated

logger = logging.getLogger(__name__)

TWO_DIGIT_TIME = re.compile(r"^\d{2}$")


class EditorState(str, Enum):
    CLEAN = "clean"
    PENDING = "pending"
    COMMITTED = "committed"
    FAILED = "failed"


def normalize_time_input(value: Optional[str]) -> str:
    """Trim the entry and suffix a bare two-digit hour with a colon.

    This nudges toward ``HH:MM`` but does not validate: anything else is
    returned as typed.

        >>> normalize_time_input("10")
        '10:'
        >>> normalize_time_input(" 10:30 AM ")
        '10:30 AM'
    """
    value = (value or "").strip()
    if TWO_DIGIT_TIME.match(value):
        return f"{value}:"
    return value


class AvailabilityEditor:
    def __init__(self, store: AvailabilityStore, provider_id: str) -> None:
        self.store = store
        self.provider_id = provider_id
        self.state = EditorState.CLEAN
        self._lock = Lock()
        self._template: Dict[str, List[str]] = {}
        self._staged: List[Tuple[str, str]] = []
        self._loaded = False

    @property
    def template(self) -> Dict[str, List[str]]:
        return {day: list(times) for day, times in self._template.items()}

    @property
    def staged(self) -> List[Tuple[str, str]]:
        return list(self._staged)

    def refresh(self) -> None:
        with self._lock:
            self._load()
            self.state = EditorState.PENDING if self._staged else EditorState.CLEAN

    def stage_slot(self, day: Optional[str], time: Optional[str]) -> bool:
        day = (day or "").strip().lower()
        time = normalize_time_input(time)
        if day not in WEEKDAYS or not time:
            return False
        with self._lock:
            self._ensure_loaded()
            self._staged.append((day, time))
            self.state = EditorState.PENDING
        logger.debug("Staged %s %s for %s", day, time, self.provider_id)
        return True

    def unstage_slot(self, day: Optional[str], time: Optional[str]) -> bool:
        target = ((day or "").strip().lower(), normalize_time_input(time))
        with self._lock:
            remaining = [slot for slot in self._staged if slot != target]
            if len(remaining) == len(self._staged):
                return False
            self._staged = remaining
            if not self._staged and self.state == EditorState.PENDING:
                self.state = EditorState.CLEAN
        return True

    def discard_staged(self) -> None:
        with self._lock:
            self._staged = []
            if self.state == EditorState.PENDING:
                self.state = EditorState.CLEAN

    def commit(self) -> bool:
        with self._lock:
            if not self._staged:
                return False
            self._load()
            merged = {day: list(times) for day, times in self._template.items()}
            for day, time in self._staged:
                times = merged.setdefault(day, [])
                if time not in times:
                    times.append(time)
            self._persist(merged)
            committed = len(self._staged)
            self._staged = []
            self.state = EditorState.COMMITTED
        logger.info("Committed %d staged slot(s) for %s", committed, self.provider_id)
        return True

    def remove_slot(self, day: Optional[str], time: Optional[str]) -> bool:
        day = (day or "").strip().lower()
        time = (time or "").strip()
        with self._lock:
            self._load()
            times = self._template.get(day)
            if not times or time not in times:
                return False
            updated = {d: list(t) for d, t in self._template.items()}
            updated[day].remove(time)
            if not updated[day]:
                del updated[day]
            self._persist(updated)
            self.state = EditorState.PENDING if self._staged else EditorState.COMMITTED
        logger.info("Removed %s %s from %s", day, time, self.provider_id)
        return True

    @property
    def idle(self) -> bool:
        with self._lock:
            return not self._staged and self.state != EditorState.FAILED

    def view(self) -> EditorView:
        with self._lock:
            self._ensure_loaded()
            return EditorView(
                provider_id=self.provider_id,
                status=self.state.value,
                availability=self.template,
                staged=[Slot(day=day, time=time) for day, time in self._staged],
            )

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self._load()

    def _load(self) -> None:
        try:
            profile = self.store.load(self.provider_id)
        except DocumentStoreError:
            logger.exception("Loading availability failed for %s", self.provider_id)
            raise ProfileReadError("Failed to load availability.") from None
        self._template = profile.availability
        self._loaded = True

    def _persist(self, template: Dict[str, List[str]]) -> None:
        try:
            self.store.save(self.provider_id, template=template)
        except DocumentStoreError:
            logger.exception("Saving availability failed for %s", self.provider_id)
            self.state = EditorState.FAILED
            self._refetch_after_failure()
            raise AvailabilitySaveError("Failed to save availability.") from None
        self._template = normalize_template(template)

    def _refetch_after_failure(self) -> None:
        try:
            self._template = self.store.load(self.provider_id).availability
        except DocumentStoreError:
            logger.exception("Re-reading availability failed for %s", self.provider_id)
            self._loaded = False


class EditorRegistry:
    """One editor per owner, shared across that owner's requests."""

    def __init__(self, store: AvailabilityStore) -> None:
        self.store = store
        self._lock = Lock()
        self._editors: Dict[str, AvailabilityEditor] = {}

    def editor_for(self, session: Optional[SessionContext]) -> Optional[AvailabilityEditor]:
        if not is_authenticated(session):
            logger.info("Availability editor requested without an authenticated user")
            return None
        assert session is not None and session.user_id
        with self._lock:
            editor = self._editors.get(session.user_id)
            if editor is None:
                editor = AvailabilityEditor(store=self.store, provider_id=session.user_id)
                self._editors[session.user_id] = editor
            return editor

    def release_if_idle(self, user_id: str) -> bool:
        """Forget the owner's editor once it holds nothing worth keeping."""
        with self._lock:
            editor = self._editors.get(user_id)
            if editor is None or not editor.idle:
                return False
            del self._editors[user_id]
        return True

    def reset(self) -> None:
        with self._lock:
            self._editors.clear()


editor_registry = EditorRegistry(store=availability_store)
