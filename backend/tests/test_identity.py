import pytest

from app.services.errors import IdentityAuthError, IdentityConflictError
from app.services.identity import IdentityProvider


@pytest.fixture
def identity(documents, profiles):
    return IdentityProvider(documents=documents, profiles=profiles)


def test_sign_up_creates_profile_and_signs_in(identity, profiles):
    uid = identity.sign_up("Lee@Example.com", "long-enough", display_name="Lee")
    assert identity.sign_in("lee@example.com", "long-enough") == uid
    assert profiles.display_name_for(uid) == "Lee"
    with pytest.raises(IdentityAuthError):
        identity.sign_in("lee@example.com", "wrong-pass")


def test_racing_sign_up_cannot_replace_first_account(identity, documents, monkeypatch):
    # Both callers pass any read-side check; the write itself must refuse the second.
    monkeypatch.setattr(documents, "get", lambda *_args, **_kwargs: None)
    first_uid = identity.sign_up("race@example.com", "first-pass")

    with pytest.raises(IdentityConflictError):
        identity.sign_up("race@example.com", "second-pass")

    monkeypatch.undo()
    assert documents.get("accounts", "race@example.com")["uid"] == first_uid
    assert identity.sign_in("race@example.com", "first-pass") == first_uid
