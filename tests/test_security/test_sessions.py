"""Tests for the session-scoped context cache."""
from __future__ import annotations

import pytest

from permscope.catalog import Role
from permscope.errors import SessionNotFound
from permscope.security import sessions as sessions_module
from permscope.security.sessions import SessionCache


def test_open_and_get_returns_same_context(context_factory):
    cache = SessionCache()
    ctx = context_factory(Role.EXPERT, user_id=3)
    token = cache.open(ctx)

    assert cache.get(token) is ctx
    assert len(cache) == 1


def test_unknown_token_raises():
    with pytest.raises(SessionNotFound):
        SessionCache().get("nope")


def test_close_forgets_session(context_factory):
    cache = SessionCache()
    token = cache.open(context_factory(Role.EXPERT))
    assert cache.close(token)
    assert not cache.close(token)
    with pytest.raises(SessionNotFound):
        cache.get(token)


def test_close_user_drops_every_session_of_that_user(context_factory):
    cache = SessionCache()
    cache.open(context_factory(Role.EXPERT, user_id=1))
    cache.open(context_factory(Role.EXPERT, user_id=1))
    other = cache.open(context_factory(Role.EXPERT, user_id=2))

    assert cache.close_user(1) == 2
    assert cache.get(other).user_id == 2


def test_expired_session_is_rejected(context_factory, monkeypatch):
    now = [1000.0]
    monkeypatch.setattr(sessions_module.time, "monotonic", lambda: now[0])
    cache = SessionCache(ttl_seconds=60)
    token = cache.open(context_factory(Role.EXPERT))

    now[0] += 59
    cache.get(token)
    now[0] += 2
    with pytest.raises(SessionNotFound):
        cache.get(token)
    assert len(cache) == 0


def test_context_is_not_refreshed_after_grant_edit(db_session, make_user, registry):
    from permscope.security.auth import build_context
    from permscope.services.provisioning import update_user_grants
    from permscope.store.grants import GrantStore

    user_id = make_user("Eve Expert", Role.EXPERT)
    cache = SessionCache()
    token = cache.open(build_context(GrantStore(db_session), user_id))

    update_user_grants(db_session, registry, user_id, permissions=["customer_view"])

    assert cache.get(token).granted_permissions == registry.templates.default_permissions(Role.EXPERT)
    assert build_context(GrantStore(db_session), user_id).granted_permissions == frozenset({"customer_view"})


def test_len_counts_sessions_opened_from_several_threads(context_factory):
    import threading

    cache = SessionCache()
    threads = [
        threading.Thread(target=lambda i=i: cache.open(context_factory(Role.EXPERT, user_id=i))) for i in range(20)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(cache) == 20
