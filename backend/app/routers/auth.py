from fastapi import APIRouter, Depends

from app.auth import create_access_token, require_session
from app.models import AuthLoginRequest, AuthLoginResponse, AuthMeResponse, SignupRequest
from app.routers.errors import raise_scheduler_http_error
from app.services.availability_store import availability_store
from app.services.errors import SchedulerError
from app.services.identity import identity_provider
from app.session import SessionContext

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=AuthLoginResponse)
def signup(payload: SignupRequest):
    try:
        user_id = identity_provider.sign_up(
            email=payload.email,
            password=payload.password,
            display_name=payload.display_name,
        )
    except SchedulerError as exc:
        raise_scheduler_http_error(exc)
    token, expires_at = create_access_token(user_id=user_id)
    return AuthLoginResponse(access_token=token, user_id=user_id, expires_at=expires_at)


@router.post("/login", response_model=AuthLoginResponse)
def login(payload: AuthLoginRequest):
    try:
        user_id = identity_provider.sign_in(email=payload.email, password=payload.password)
    except SchedulerError as exc:
        raise_scheduler_http_error(exc)
    token, expires_at = create_access_token(user_id=user_id)
    return AuthLoginResponse(access_token=token, user_id=user_id, expires_at=expires_at)


@router.get("/me", response_model=AuthMeResponse)
def me(session: SessionContext = Depends(require_session)):
    try:
        profile = availability_store.get_profile(session.user_id)
    except SchedulerError as exc:
        raise_scheduler_http_error(exc)
    return AuthMeResponse(user_id=profile.uid, email=profile.email)
