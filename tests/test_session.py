import pytest

from itsdangerous import URLSafeTimedSerializer

from membership.auth.session import DEFAULT_SALT, SessionManager
from membership.infra.document_store import DocumentCollection


def test_create_and_resolve(sessions):
    token = sessions.create("u1", "Ann", "user")
    sess = sessions.resolve(token)
    assert sess.user_id == "u1"
    assert sess.name == "Ann"
    assert sess.user_type == "user"
    assert sess.authenticated
    assert not sess.is_admin
    assert sess.expires_at - sess.created_at == 3600


def test_token_only_carries_the_session_id(sessions, settings):
    token = sessions.create("u1", "Ann", "admin")
    payload = URLSafeTimedSerializer(settings.secret_key, salt=DEFAULT_SALT).loads(token)
    assert set(payload) == {"sid"}
    assert payload["sid"] == sessions.resolve(token).id


def test_tampered_or_foreign_tokens_do_not_resolve(sessions, settings, clock):
    token = sessions.create("u1", "Ann", "user")
    assert sessions.resolve(token + "x") is None
    assert sessions.resolve("") is None
    other = SessionManager(DocumentCollection("sessions", settings.sessions_path), "other-secret", clock=clock)
    assert other.resolve(token) is None


def test_absolute_expiry_after_one_hour(sessions, clock):
    token = sessions.create("u1", "Ann", "user")
    clock.advance(3599)
    assert sessions.resolve(token) is not None
    clock.advance(1)
    assert sessions.resolve(token) is None
    # resolving an expired session removes it from the store
    assert sessions.collection.count() == 0


def test_destroy_is_idempotent(sessions):
    token = sessions.create("u1", "Ann", "user")
    sessions.destroy(token)
    sessions.destroy(token)
    sessions.destroy("garbage")
    assert sessions.resolve(token) is None


def test_sessions_survive_restart(settings, clock):
    first = SessionManager(DocumentCollection("sessions", settings.sessions_path), settings.secret_key, clock=clock)
    token = first.create("u1", "Ann", "user")
    second = SessionManager(DocumentCollection("sessions", settings.sessions_path), settings.secret_key, clock=clock)
    assert second.resolve(token).user_id == "u1"


def test_purge_expired(sessions, clock):
    sessions.create("u1", "Ann", "user")
    clock.advance(1800)
    live = sessions.create("u2", "Bob", "user")
    clock.advance(1800)
    assert sessions.purge_expired() == 1
    assert sessions.resolve(live) is not None


def test_missing_secret_is_refused():
    with pytest.raises(RuntimeError):
        SessionManager(DocumentCollection("sessions"), "")
