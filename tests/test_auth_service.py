import pytest

from membership.auth.passwords import verify_password
from membership.errors import (
    AuthenticationError,
    DuplicateEmailError,
    NotFoundError,
    StoreError,
    ValidationError,
)

ANN = {"name": "Ann", "email": "ann@x.com", "password": "longenough1"}


def test_signup_stores_hash_and_opens_session(auth, users):
    user, token = auth.signup(ANN)
    stored = users.find_by_id(user.id)
    assert stored.password_hash != ANN["password"]
    assert verify_password(stored.password_hash, ANN["password"])
    assert stored.user_type == "user"

    sess = auth.sessions.resolve(token)
    assert sess.authenticated
    assert sess.user_id == user.id
    assert sess.user_type == "user"


def test_signup_with_short_password_creates_nothing(auth, users):
    with pytest.raises(ValidationError) as ei:
        auth.signup({**ANN, "password": "short"})
    assert ei.value.fields == {"name": "Ann", "email": "ann@x.com"}
    assert users.list_all() == []
    assert auth.sessions.collection.count() == 0


def test_signup_validates_before_hashing(auth, monkeypatch):
    def _boom(_):
        raise AssertionError("hasher must not run on invalid input")

    monkeypatch.setattr("membership.services.auth_service.hash_password", _boom)
    with pytest.raises(ValidationError):
        auth.signup({**ANN, "email": "not-an-email"})


def test_duplicate_signup_is_rejected_with_echo(auth):
    auth.signup(ANN)
    with pytest.raises(DuplicateEmailError) as ei:
        auth.signup({**ANN, "name": "Ann Two", "email": "ANN@x.com"})
    assert ei.value.message == "Email is already registered"
    assert ei.value.fields["name"] == "Ann Two"


def test_login_success(auth, make_user):
    user = make_user("ann@x.com")
    logged, token = auth.login({"email": "Ann@X.com", "password": "longenough1"})
    assert logged.id == user.id
    assert auth.sessions.resolve(token).user_id == user.id


def test_login_errors_do_not_reveal_which_check_failed(auth, make_user):
    make_user("ann@x.com")
    with pytest.raises(AuthenticationError) as wrong_pw:
        auth.login({"email": "ann@x.com", "password": "wrong-password"})
    with pytest.raises(AuthenticationError) as no_user:
        auth.login({"email": "bob@x.com", "password": "longenough1"})
    assert str(wrong_pw.value) == str(no_user.value) == "Invalid email or password"


def test_login_rejects_malformed_payload(auth):
    with pytest.raises(ValidationError):
        auth.login({"email": "ann@x.com", "password": ""})


def test_logout_is_best_effort(auth, make_user, monkeypatch):
    make_user("ann@x.com")
    _, token = auth.login({"email": "ann@x.com", "password": "longenough1"})

    def _fail(_token):
        raise StoreError()

    monkeypatch.setattr(auth.sessions, "destroy", _fail)
    auth.logout(token)  # does not raise


def test_logout_destroys_session(auth, make_user):
    make_user("ann@x.com")
    _, token = auth.login({"email": "ann@x.com", "password": "longenough1"})
    auth.logout(token)
    assert auth.sessions.resolve(token) is None


def test_promote_and_demote(auth, make_user):
    user = make_user("ann@x.com")
    assert auth.promote(user.id).user_type == "admin"
    assert auth.demote(user.id).user_type == "user"
    with pytest.raises(NotFoundError):
        auth.promote("missing")


def test_role_change_does_not_touch_live_sessions(auth, make_user):
    user = make_user("ann@x.com")
    _, token = auth.login({"email": "ann@x.com", "password": "longenough1"})
    auth.promote(user.id)
    assert auth.sessions.resolve(token).user_type == "user"
    _, fresh = auth.login({"email": "ann@x.com", "password": "longenough1"})
    assert auth.sessions.resolve(fresh).user_type == "admin"


def test_unknown_email_still_runs_a_password_verify(auth, monkeypatch):
    calls = []

    def _record(hash_value, plain):
        calls.append(hash_value)
        return True

    monkeypatch.setattr("membership.services.auth_service.verify_password", _record)
    with pytest.raises(AuthenticationError):
        auth.login({"email": "bob@x.com", "password": "longenough1"})
    assert len(calls) == 1
    assert calls[0].startswith("$argon2")


def test_logout_is_logged(auth, make_user, caplog):
    make_user("ann@x.com")
    _, token = auth.login({"email": "ann@x.com", "password": "longenough1"})
    with caplog.at_level("INFO", logger="membership.services.auth_service"):
        auth.logout(token)
    assert "Logout" in caplog.text
