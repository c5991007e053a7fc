import logging
from typing import Any, Dict, List, Optional

from app.models import WEEKDAYS, Profile, ServiceMetadata
from app.services.document_store import USERS, DocumentStore, DocumentStoreError, document_store
from app.services.errors import AvailabilitySaveError, ProfileReadError

logger = logging.getLogger(__name__)

UNKNOWN_NAME = "Unknown"

# ServiceMetadata field -> top-level document field
METADATA_FIELDS = {
    "service": "service",
    "location": "location",
    "rate": "rate",
    "duration": "duration",
    "notes": "notes",
    "mode": "mode",
    "tags": "tags",
    "max_bookings_per_day": "maxBookingsPerDay",
    "buffer_time": "bufferTime",
}


def normalize_template(raw: Any) -> Dict[str, List[str]]:
    """Return a template with weekday keys only, no empty days and no repeated labels."""
    if not isinstance(raw, dict):
        return {}
    template: Dict[str, List[str]] = {}
    for day in WEEKDAYS:
        values = raw.get(day)
        if not isinstance(values, list):
            continue
        seen: List[str] = []
        for value in values:
            if isinstance(value, str) and value and value not in seen:
                seen.append(value)
        if seen:
            template[day] = seen
    return template


def count_slots(template: Dict[str, List[str]]) -> int:
    return sum(len(times) for times in template.values())


class AvailabilityStore:
    """One profile document per user: weekly template plus service metadata."""

    def __init__(self, documents: DocumentStore) -> None:
        self.documents = documents

    def load(self, provider_id: str) -> Profile:
        data = self.documents.get(USERS, provider_id)
        if data is None:
            return Profile(uid=provider_id, exists=False)
        return self._doc_to_profile(provider_id, data)

    def save(
        self,
        provider_id: str,
        template: Optional[Dict[str, List[str]]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        display_name: Optional[str] = None,
    ) -> None:
        patch: Dict[str, Any] = {}
        if template is not None:
            patch["availability"] = normalize_template(template)
        if metadata:
            for key, value in metadata.items():
                doc_field = METADATA_FIELDS.get(key)
                if doc_field is None:
                    raise ValueError(f"Unknown metadata field: {key}")
                patch[doc_field] = list(value) if key == "tags" and value is not None else value
        if display_name is not None:
            patch["name"] = display_name
        if not patch:
            return
        self.documents.merge(USERS, provider_id, patch)
        logger.info("Profile %s saved fields=%s", provider_id, sorted(patch))

    def create_profile(self, uid: str, email: str) -> Profile:
        self.documents.set(USERS, uid, {"uid": uid, "email": email, "availability": {}})
        logger.info("Profile created for %s", uid)
        return Profile(uid=uid, email=email)

    def update_profile(
        self,
        provider_id: str,
        metadata: Dict[str, Any],
        display_name: Optional[str] = None,
    ) -> Profile:
        try:
            self.save(provider_id, metadata=metadata, display_name=display_name)
            return self.load(provider_id)
        except DocumentStoreError:
            logger.exception("Saving profile failed for %s", provider_id)
            raise AvailabilitySaveError("Failed to save profile.") from None

    def get_profile(self, provider_id: str) -> Profile:
        try:
            return self.load(provider_id)
        except DocumentStoreError:
            logger.exception("Loading profile failed for %s", provider_id)
            raise ProfileReadError("Failed to load profile.") from None

    def list_providers(self, exclude_user_id: Optional[str] = None) -> List[Profile]:
        try:
            rows = self.documents.scan(USERS)
        except DocumentStoreError:
            logger.exception("Listing providers failed")
            raise ProfileReadError("Failed to load providers.") from None
        return [self._doc_to_profile(uid, data) for uid, data in rows if uid != exclude_user_id]

    def display_name_for(self, user_id: str) -> str:
        data = self.documents.get(USERS, user_id)
        if not data:
            return UNKNOWN_NAME
        name = data.get("name")
        return name if isinstance(name, str) and name.strip() else UNKNOWN_NAME

    def _doc_to_profile(self, uid: str, data: Dict[str, Any]) -> Profile:
        metadata_values: Dict[str, Any] = {}
        for key, doc_field in METADATA_FIELDS.items():
            value = data.get(doc_field)
            if value is not None:
                metadata_values[key] = value
        tags = metadata_values.get("tags")
        if tags is not None:
            metadata_values["tags"] = _string_list(tags)
        try:
            metadata = ServiceMetadata(**metadata_values)
        except ValueError:
            logger.warning("Ignoring malformed service metadata on profile %s", uid)
            metadata = ServiceMetadata()
        name = data.get("name")
        email = data.get("email")
        return Profile(
            uid=uid,
            email=email if isinstance(email, str) else None,
            display_name=name if isinstance(name, str) else None,
            metadata=metadata,
            availability=normalize_template(data.get("availability")),
        )


def _string_list(values: Any) -> List[str]:
    if isinstance(values, str):
        return [values]
    if not isinstance(values, list):
        return []
    return [str(value) for value in values if value is not None]


availability_store = AvailabilityStore(documents=document_store)
