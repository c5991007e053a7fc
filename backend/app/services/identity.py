import hashlib
import hmac
import logging
import os
from typing import Optional
from uuid import uuid4

from app.services.availability_store import AvailabilityStore, availability_store
from app.services.document_store import ACCOUNTS, DocumentStore, DocumentStoreError, document_store
from app.services.errors import (
    IdentityAuthError,
    IdentityConflictError,
    IdentityError,
    IdentityValidationError,
)

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
PBKDF2_ITERATIONS = 120_000


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _hash_password(password: str, salt: bytes) -> str:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS).hex()


class IdentityProvider:
    """Email/password accounts mapped to stable opaque user ids."""

    def __init__(self, documents: DocumentStore, profiles: AvailabilityStore) -> None:
        self.documents = documents
        self.profiles = profiles

    def sign_up(self, email: str, password: str, display_name: Optional[str] = None) -> str:
        normalized = _normalize_email(email)
        if "@" not in normalized:
            raise IdentityValidationError("A valid email is required")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise IdentityValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        try:
            uid = uuid4().hex
            salt = os.urandom(16)
            created = self.documents.create(
                ACCOUNTS,
                normalized,
                {"uid": uid, "salt": salt.hex(), "passwordHash": _hash_password(password, salt)},
            )
            if not created:
                raise IdentityConflictError("An account with this email already exists")
            self.profiles.create_profile(uid=uid, email=normalized)
            if display_name and display_name.strip():
                self.profiles.save(uid, display_name=display_name.strip())
        except DocumentStoreError:
            logger.exception("Signup failed for %s", normalized)
            raise IdentityError("Failed to create an account. Please try again.") from None
        logger.info("Account created uid=%s", uid)
        return uid

    def sign_in(self, email: str, password: str) -> str:
        normalized = _normalize_email(email)
        try:
            account = self.documents.get(ACCOUNTS, normalized)
        except DocumentStoreError:
            logger.exception("Sign-in lookup failed for %s", normalized)
            raise IdentityError("Sign-in is temporarily unavailable") from None
        if not account:
            raise IdentityAuthError("Invalid credentials")
        try:
            salt = bytes.fromhex(str(account.get("salt", "")))
        except ValueError:
            raise IdentityAuthError("Invalid credentials") from None
        expected = str(account.get("passwordHash", ""))
        if not expected or not hmac.compare_digest(_hash_password(password or "", salt), expected):
            raise IdentityAuthError("Invalid credentials")
        return str(account["uid"])


identity_provider = IdentityProvider(documents=document_store, profiles=availability_store)
