import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from app.models import ServiceOffering, ServiceOfferingCreate
from app.services.document_store import SERVICES, DocumentStore, DocumentStoreError, document_store
from app.services.errors import CatalogValidationError, SchedulerError

logger = logging.getLogger(__name__)


class CatalogStore:
    """Shared list of offered services (name, duration in minutes, price)."""

    def __init__(self, documents: DocumentStore) -> None:
        self.documents = documents

    def add_offering(self, request: ServiceOfferingCreate, created_by: Optional[str] = None) -> ServiceOffering:
        name = request.name.strip()
        if not name or not request.duration or not request.price:
            raise CatalogValidationError("All fields are required")
        data: Dict[str, Any] = {
            "name": name,
            "duration": int(request.duration),
            "price": float(request.price),
            "createdBy": created_by,
            "createdAt": datetime.now(timezone.utc).isoformat(),
        }
        try:
            offering_id = self.documents.add(SERVICES, data)
        except DocumentStoreError:
            logger.exception("Adding service %r failed", name)
            raise SchedulerError("Failed to add service") from None
        logger.info("Service %s added by %s", offering_id, created_by)
        return self._to_offering(offering_id, data)

    def list_offerings(self) -> List[ServiceOffering]:
        try:
            rows = self.documents.scan(SERVICES)
        except DocumentStoreError:
            logger.exception("Listing services failed")
            raise SchedulerError("Failed to load services") from None
        offerings: List[ServiceOffering] = []
        for offering_id, data in rows:
            try:
                offerings.append(self._to_offering(offering_id, data))
            except (TypeError, ValueError):
                logger.warning("Skipping malformed service %s", offering_id)
        return offerings

    def _to_offering(self, offering_id: str, data: Dict[str, Any]) -> ServiceOffering:
        return ServiceOffering(
            id=offering_id,
            name=str(data.get("name", "")),
            duration=int(data.get("duration", 0)),
            price=float(data.get("price", 0)),
            created_by=data.get("createdBy"),
            created_at=data.get("createdAt"),
        )


catalog_store = CatalogStore(documents=document_store)
