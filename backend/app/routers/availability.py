from fastapi import APIRouter, Depends, HTTPException

from app.auth import require_session
from app.models import EditorView, Profile, ProfileUpdateRequest, SlotInput, StageSlotResponse
from app.routers.errors import raise_scheduler_http_error
from app.services.availability_editor import AvailabilityEditor, editor_registry
from app.services.availability_store import availability_store
from app.services.errors import SchedulerError
from app.session import SessionContext

router = APIRouter(tags=["availability"])


def _editor(session: SessionContext) -> AvailabilityEditor:
    editor = editor_registry.editor_for(session)
    if editor is None:
        raise HTTPException(status_code=401, detail="Invalid or missing bearer token")
    return editor


def _view_and_release(session: SessionContext, editor: AvailabilityEditor) -> EditorView:
    view = editor.view()
    editor_registry.release_if_idle(session.user_id)
    return view


@router.get("/profiles/me", response_model=Profile)
def my_profile(session: SessionContext = Depends(require_session)):
    try:
        return availability_store.get_profile(session.user_id)
    except SchedulerError as exc:
        raise_scheduler_http_error(exc)


@router.patch("/profiles/me", response_model=Profile)
def update_my_profile(request: ProfileUpdateRequest, session: SessionContext = Depends(require_session)):
    changes = request.model_dump(exclude_unset=True)
    display_name = changes.pop("display_name", None)
    try:
        return availability_store.update_profile(
            session.user_id,
            metadata=changes,
            display_name=display_name,
        )
    except SchedulerError as exc:
        raise_scheduler_http_error(exc)


@router.get("/availability/editor", response_model=EditorView)
def editor_state(session: SessionContext = Depends(require_session)):
    try:
        return _view_and_release(session, _editor(session))
    except SchedulerError as exc:
        raise_scheduler_http_error(exc)


@router.post("/availability/editor/refresh", response_model=EditorView)
def refresh_editor(session: SessionContext = Depends(require_session)):
    editor = _editor(session)
    try:
        editor.refresh()
        return _view_and_release(session, editor)
    except SchedulerError as exc:
        raise_scheduler_http_error(exc)


@router.post("/availability/editor/slots", response_model=StageSlotResponse)
def stage_slot(request: SlotInput, session: SessionContext = Depends(require_session)):
    editor = _editor(session)
    try:
        staged = editor.stage_slot(request.day, request.time)
        return StageSlotResponse(staged=staged, editor=_view_and_release(session, editor))
    except SchedulerError as exc:
        raise_scheduler_http_error(exc)


@router.delete("/availability/editor/slots", response_model=EditorView)
def unstage_slot(request: SlotInput, session: SessionContext = Depends(require_session)):
    editor = _editor(session)
    try:
        editor.unstage_slot(request.day, request.time)
        return _view_and_release(session, editor)
    except SchedulerError as exc:
        raise_scheduler_http_error(exc)


@router.post("/availability/editor/discard", response_model=EditorView)
def discard_staged(session: SessionContext = Depends(require_session)):
    editor = _editor(session)
    try:
        editor.discard_staged()
        return _view_and_release(session, editor)
    except SchedulerError as exc:
        raise_scheduler_http_error(exc)


@router.post("/availability/editor/commit", response_model=EditorView)
def commit_staged(session: SessionContext = Depends(require_session)):
    editor = _editor(session)
    try:
        editor.commit()
        return _view_and_release(session, editor)
    except SchedulerError as exc:
        raise_scheduler_http_error(exc)


@router.delete("/availability/slots", response_model=EditorView)
def remove_slot(request: SlotInput, session: SessionContext = Depends(require_session)):
    editor = _editor(session)
    try:
        editor.remove_slot(request.day, request.time)
        return _view_and_release(session, editor)
    except SchedulerError as exc:
        raise_scheduler_http_error(exc)
