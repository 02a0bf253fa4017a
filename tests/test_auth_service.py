import threading
from datetime import datetime, timedelta, timezone

import pytest

from models.refresh_token import RefreshToken
from models.user import User
from services.auth_service import AuthService
from services.errors import (
    AccountInactive,
    AuthError,
    DuplicateEmail,
    InvalidConfiguration,
    InvalidCredentials,
    InvalidRefreshToken,
)
from services.refresh_token_store import RefreshTokenStore
from utils.security import REFRESH


def _refresh_store(auth_service):
    return auth_service.store


def test_login_returns_tokens_and_user_without_password(auth_service, registered_user):
    user, password = registered_user
    result = auth_service.login(user["email"], password)

    assert result["access_token"]
    assert result["refresh_token"]
    assert result["user"]["email"] == "alice@example.com"
    assert result["user"]["role"] == "USER"
    assert "password" not in result["user"]
    assert "password_hash" not in result["user"]


def test_login_persists_refresh_token_record(auth_service, registered_user):
    user, password = registered_user
    result = auth_service.login(user["email"], password)

    record = _refresh_store(auth_service).find_by_token(result["refresh_token"])
    assert record is not None
    assert record.user_id == user["id"]
    expires_at = record.expires_at.replace(tzinfo=record.expires_at.tzinfo or timezone.utc)
    assert expires_at - datetime.now(timezone.utc) > timedelta(days=6, hours=23)


def test_access_token_carries_identity_claims(auth_service, registered_user):
    user, password = registered_user
    result = auth_service.login(user["email"], password)

    claims = auth_service.verify_access_token(result["access_token"])
    assert claims["sub"] == user["id"]
    assert claims["email"] == user["email"]
    assert claims["role"] == "USER"


def test_wrong_password_and_unknown_email_fail_identically(auth_service, registered_user):
    user, _ = registered_user
    with pytest.raises(InvalidCredentials) as wrong_password:
        auth_service.login(user["email"], "WrongPassword1")
    with pytest.raises(InvalidCredentials) as unknown_email:
        auth_service.login("nobody@example.com", "WrongPassword1")

    assert type(wrong_password.value) is type(unknown_email.value)
    assert wrong_password.value.status == unknown_email.value.status == 401
    assert str(wrong_password.value) == str(unknown_email.value)


def test_email_lookup_is_case_sensitive(auth_service, registered_user):
    _, password = registered_user
    with pytest.raises(InvalidCredentials):
        auth_service.login("ALICE@example.com", password)


def test_inactive_account_rejected_after_password_check(auth_service, storage, registered_user):
    user, password = registered_user
    db_user = storage.get_session().get(User, user["id"])
    db_user.is_active = False
    storage.save()

    with pytest.raises(AccountInactive) as exc:
        auth_service.login(user["email"], password)
    assert exc.value.status == 401
    # wrong password on an inactive account still reads as bad credentials
    with pytest.raises(InvalidCredentials):
        auth_service.login(user["email"], "WrongPassword1")


def test_validate_credentials_is_read_only(auth_service, storage, registered_user):
    user, password = registered_user
    validated = auth_service.validate_credentials(user["email"], password)
    assert validated["id"] == user["id"]
    assert "password_hash" not in validated
    assert storage.get_session().query(RefreshToken).count() == 0
    assert storage.get_session().query(User).count() == 1


def test_register_duplicate_email_is_conflict(auth_service, registered_user):
    user, _ = registered_user
    with pytest.raises(DuplicateEmail) as exc:
        auth_service.register({"email": user["email"], "password": "Password123", "name": "Other"})
    assert exc.value.status == 409
    assert exc.value.details == {"field": "email"}


def test_register_hashes_password_and_issues_no_tokens(auth_service, storage):
    user = auth_service.register({"email": "bob@example.com", "password": "Password123", "name": "Bob"})

    assert "password_hash" not in user
    assert user["is_active"] is True
    db_user = storage.get_session().get(User, user["id"])
    assert db_user.password_hash != "Password123"
    assert db_user.password_hash.startswith("$argon2")
    assert db_user.refresh_tokens == []


def test_refresh_succeeds_once_then_rejects_the_same_token(auth_service, registered_user):
    user, password = registered_user
    original = auth_service.login(user["email"], password)["refresh_token"]

    rotated = auth_service.refresh_tokens(original)
    assert rotated["refresh_token"] != original
    assert rotated["user"]["id"] == user["id"]
    assert "password_hash" not in rotated["user"]

    with pytest.raises(InvalidRefreshToken):
        auth_service.refresh_tokens(original)


def test_new_refresh_token_is_accepted_exactly_once(auth_service, registered_user):
    user, password = registered_user
    first = auth_service.login(user["email"], password)["refresh_token"]
    second = auth_service.refresh_tokens(first)["refresh_token"]

    third = auth_service.refresh_tokens(second)["refresh_token"]
    assert third not in (first, second)
    with pytest.raises(InvalidRefreshToken):
        auth_service.refresh_tokens(second)
    with pytest.raises(InvalidRefreshToken):
        auth_service.refresh_tokens(first)


def test_rotation_replaces_the_stored_record(auth_service, registered_user):
    user, password = registered_user
    store = _refresh_store(auth_service)
    old = auth_service.login(user["email"], password)["refresh_token"]
    new = auth_service.refresh_tokens(old)["refresh_token"]

    assert store.find_by_token(old) is None
    record = store.find_by_token(new)
    assert record is not None
    assert record.user_id == user["id"]


def test_sessions_coexist_and_rotate_independently(auth_service, registered_user):
    user, password = registered_user
    laptop = auth_service.login(user["email"], password)["refresh_token"]
    phone = auth_service.login(user["email"], password)["refresh_token"]
    assert laptop != phone

    auth_service.refresh_tokens(laptop)
    assert auth_service.refresh_tokens(phone)["refresh_token"]


def test_logout_then_refresh_fails(auth_service, registered_user):
    user, password = registered_user
    token = auth_service.login(user["email"], password)["refresh_token"]

    auth_service.logout(user["id"], token)

    with pytest.raises(InvalidRefreshToken):
        auth_service.refresh_tokens(token)


def test_logout_is_idempotent_and_scoped_to_user_and_token(auth_service, registered_user):
    user, password = registered_user
    store = _refresh_store(auth_service)
    kept = auth_service.login(user["email"], password)["refresh_token"]
    dropped = auth_service.login(user["email"], password)["refresh_token"]

    # another user's id does not match the record
    auth_service.logout("someone-else", dropped)
    assert store.find_by_token(dropped) is not None

    auth_service.logout(user["id"], dropped)
    auth_service.logout(user["id"], dropped)
    assert store.find_by_token(dropped) is None
    assert store.find_by_token(kept) is not None


def test_expired_record_is_rejected_and_purged(auth_service, registered_user):
    user, _ = registered_user
    store = _refresh_store(auth_service)
    claims = {"sub": user["id"], "email": user["email"], "role": user["role"]}
    token = auth_service.signer.sign(claims, auth_service.refresh_secret, "7d", token_type=REFRESH)
    store.insert(token, user["id"], datetime.now(timezone.utc) - timedelta(minutes=1))

    with pytest.raises(InvalidRefreshToken):
        auth_service.refresh_tokens(token)
    assert store.find_by_token(token) is None


@pytest.mark.parametrize(
    "presented",
    ["", "garbage", "a.b.c"],
)
def test_malformed_refresh_tokens_are_rejected(auth_service, presented):
    with pytest.raises(InvalidRefreshToken):
        auth_service.refresh_tokens(presented)


def test_access_token_is_not_a_refresh_token(auth_service, registered_user):
    user, password = registered_user
    access = auth_service.login(user["email"], password)["access_token"]
    with pytest.raises(InvalidRefreshToken):
        auth_service.refresh_tokens(access)


def test_signed_but_never_stored_token_is_rejected(auth_service, registered_user):
    user, _ = registered_user
    claims = {"sub": user["id"], "email": user["email"], "role": user["role"]}
    token = auth_service.signer.sign(claims, auth_service.refresh_secret, "7d", token_type=REFRESH)
    with pytest.raises(InvalidRefreshToken):
        auth_service.refresh_tokens(token)


def test_refresh_errors_carry_no_internal_detail(auth_service, registered_user):
    user, password = registered_user
    token = auth_service.login(user["email"], password)["refresh_token"]
    auth_service.refresh_tokens(token)

    with pytest.raises(InvalidRefreshToken) as replayed:
        auth_service.refresh_tokens(token)
    with pytest.raises(InvalidRefreshToken) as garbage:
        auth_service.refresh_tokens("garbage")

    assert str(replayed.value) == str(garbage.value) == "Invalid refresh token"
    assert replayed.value.__cause__ is None
    assert replayed.value.__suppress_context__


def test_rotation_trusts_signed_claims_over_current_user_state(auth_service, storage, registered_user):
    user, password = registered_user
    token = auth_service.login(user["email"], password)["refresh_token"]
    db_user = storage.get_session().get(User, user["id"])
    db_user.is_active = False
    storage.save()

    rotated = auth_service.refresh_tokens(token)
    assert auth_service.verify_access_token(rotated["access_token"])["sub"] == user["id"]


def test_concurrent_rotation_of_one_token_has_a_single_winner(app, auth_service, storage, registered_user):
    user, password = registered_user
    token = auth_service.login(user["email"], password)["refresh_token"]
    storage.close()

    barrier = threading.Barrier(2, timeout=10)

    class RacingStore(RefreshTokenStore):
        def rotate(self, *args, **kwargs):
            # both callers have found the record before either rotates
            barrier.wait()
            return super().rotate(*args, **kwargs)

    racing = AuthService(
        directory=auth_service.directory,
        signer=auth_service.signer,
        store=RacingStore(storage),
        access_secret=auth_service.access_secret,
        refresh_secret=auth_service.refresh_secret,
        access_expires_in=auth_service.access_expires_in,
        refresh_expires_in=auth_service.refresh_expires_in,
    )
    outcomes = []
    lock = threading.Lock()

    def attempt():
        try:
            racing.refresh_tokens(token)
            outcome = "ok"
        except InvalidRefreshToken:
            outcome = "rejected"
        finally:
            storage.close()
        with lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=attempt) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert sorted(outcomes) == ["ok", "rejected"]
    assert RefreshTokenStore(storage).find_by_token(token) is None
    assert storage.get_session().query(RefreshToken).count() == 1


def test_malformed_lifetime_fails_at_construction(auth_service):
    with pytest.raises(InvalidConfiguration):
        AuthService(
            directory=auth_service.directory,
            signer=auth_service.signer,
            store=auth_service.store,
            access_secret="access-secret-0123456789abcdef012345",
            refresh_secret="refresh-secret-0123456789abcdef01234",
            refresh_expires_in="abc",
        )


def test_all_auth_errors_share_a_base():
    for cls in (InvalidCredentials, AccountInactive, InvalidRefreshToken, DuplicateEmail):
        assert issubclass(cls, AuthError)
    assert not issubclass(InvalidConfiguration, AuthError)


def test_signer_failure_during_refresh_is_collapsed(auth_service, registered_user, monkeypatch):
    user, password = registered_user
    token = auth_service.login(user["email"], password)["refresh_token"]

    def broken_sign(*args, **kwargs):
        raise OverflowError("date value out of range")

    monkeypatch.setattr(auth_service.signer, "sign", broken_sign)

    with pytest.raises(InvalidRefreshToken) as exc:
        auth_service.refresh_tokens(token)
    assert exc.value.__cause__ is None
    assert exc.value.__suppress_context__
    # nothing was rotated, the presented token is still on file
    assert auth_service.store.find_by_token(token) is not None


def test_store_failure_during_refresh_is_collapsed(auth_service, registered_user, monkeypatch):
    user, password = registered_user
    token = auth_service.login(user["email"], password)["refresh_token"]

    def broken_rotate(*args, **kwargs):
        raise RuntimeError("driver went away")

    monkeypatch.setattr(auth_service.store, "rotate", broken_rotate)

    with pytest.raises(InvalidRefreshToken):
        auth_service.refresh_tokens(token)


def test_out_of_range_lifetime_at_refresh_time_is_collapsed(auth_service, registered_user, monkeypatch):
    user, password = registered_user
    token = auth_service.login(user["email"], password)["refresh_token"]
    monkeypatch.setattr(auth_service, "refresh_expires_in", "3000000d")

    with pytest.raises(InvalidRefreshToken):
        auth_service.refresh_tokens(token)
