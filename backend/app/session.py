from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SessionContext:
    """Identity of the caller, passed explicitly into every operation."""

    user_id: Optional[str]
    email: Optional[str] = None

    @property
    def authenticated(self) -> bool:
        return bool(self.user_id)


ANONYMOUS = SessionContext(user_id=None)


def is_authenticated(session: Optional[SessionContext]) -> bool:
    return session is not None and session.authenticated
