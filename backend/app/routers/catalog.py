from fastapi import APIRouter, Depends

from app.auth import require_session
from app.models import ServiceOffering, ServiceOfferingCreate
from app.routers.errors import raise_scheduler_http_error
from app.services.catalog_store import catalog_store
from app.services.errors import SchedulerError
from app.session import SessionContext

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("", response_model=list[ServiceOffering])
def list_offerings():
    try:
        return catalog_store.list_offerings()
    except SchedulerError as exc:
        raise_scheduler_http_error(exc)


@router.post("", response_model=ServiceOffering)
def add_offering(request: ServiceOfferingCreate, session: SessionContext = Depends(require_session)):
    try:
        return catalog_store.add_offering(request, created_by=session.user_id)
    except SchedulerError as exc:
        raise_scheduler_http_error(exc)
