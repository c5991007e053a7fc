from typing import List, Optional


class SchedulerError(RuntimeError):
    """Base class for user-visible scheduler errors."""


class AvailabilitySaveError(SchedulerError):
    pass


class BookingSubmitError(SchedulerError):
    def __init__(self, message: str, written_ids: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.written_ids = list(written_ids or [])


class BookingReadError(SchedulerError):
    pass


class ProfileReadError(SchedulerError):
    pass


class IdentityError(SchedulerError):
    pass


class IdentityValidationError(IdentityError):
    pass


class IdentityConflictError(IdentityError):
    pass


class IdentityAuthError(IdentityError):
    pass


class CatalogValidationError(SchedulerError):
    pass
