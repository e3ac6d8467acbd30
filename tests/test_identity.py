from __future__ import annotations

import pytest
from jwt.exceptions import ExpiredSignatureError, InvalidSignatureError

from src.school_portal.school_portal.common.cache import TTLCache
from src.school_portal.school_portal.core.enums import Role
from src.school_portal.school_portal.users.identity import IdentityResolver, cache_key_for
from src.school_portal.school_portal.users.model import User

from conftest import FakeClock, InMemoryUsers

TOKEN = "header.payload-with-enough-characters.signature-part"


class FakeDecoder:
    def __init__(self, claims=None, error=None):
        self.claims = claims if claims is not None else {"type": "access", "sub": "5", "role": "teacher", "csrf": "c1"}
        self.error = error
        self.calls = 0

    def __call__(self, token):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.claims


def _users(role=Role.TEACHER, is_active=True):
    return InMemoryUsers(
        [
            User(
                user_id=5,
                full_name="Tom Teacher",
                username="tom",
                email=None,
                password_hash="x",
                role=role,
                school_id=None,
                is_active=is_active,
            )
        ]
    )


def _resolver(users, decoder, clock, ttl=30):
    return IdentityResolver(users, cache=TTLCache(clock=clock), decode=decoder, ttl_seconds=ttl)


def test_cache_key_uses_token_ends():
    token = "a" * 10 + "middle-part" + "b" * 10
    assert cache_key_for(token) == "identity:" + "a" * 10 + "b" * 10
    assert cache_key_for("short") == "identity:short"


def test_resolves_identity_from_claims_and_user():
    resolver = _resolver(_users(), FakeDecoder(), FakeClock())

    identity = resolver.resolve(TOKEN)

    assert identity.user_id == 5
    assert identity.full_name == "Tom Teacher"
    assert identity.role == Role.TEACHER
    assert identity.csrf == "c1"


def test_hit_within_ttl_skips_verification():
    decoder = FakeDecoder()
    clock = FakeClock()
    resolver = _resolver(_users(), decoder, clock)

    first = resolver.resolve(TOKEN)
    clock.advance(29)
    second = resolver.resolve(TOKEN)

    assert first == second
    assert decoder.calls == 1


def test_miss_after_ttl_reverifies_and_sees_deactivation():
    decoder = FakeDecoder()
    clock = FakeClock()
    users = _users()
    resolver = _resolver(users, decoder, clock)
    assert resolver.resolve(TOKEN) is not None

    users.set_active(5, False)
    clock.advance(31)

    assert resolver.resolve(TOKEN) is None
    assert decoder.calls == 2


@pytest.mark.parametrize("error", [ExpiredSignatureError("expired"), InvalidSignatureError("bad signature")])
def test_invalid_token_resolves_to_none_and_is_cached(error):
    decoder = FakeDecoder(error=error)
    resolver = _resolver(_users(), decoder, FakeClock())

    assert resolver.resolve(TOKEN) is None
    assert resolver.resolve(TOKEN) is None
    assert decoder.calls == 1


def test_rejects_refresh_tokens_and_unknown_subjects():
    clock = FakeClock()
    assert _resolver(_users(), FakeDecoder({"type": "refresh", "sub": "5"}), clock).resolve(TOKEN) is None
    assert _resolver(_users(), FakeDecoder({"type": "access", "sub": "404"}), clock).resolve(TOKEN) is None
    assert _resolver(_users(), FakeDecoder({"type": "access", "sub": "abc"}), clock).resolve(TOKEN) is None


def test_stored_role_wins_over_token_claim():
    resolver = _resolver(_users(role=Role.SCHOOL_ADMIN), FakeDecoder(), FakeClock())

    assert resolver.resolve(TOKEN).role == Role.SCHOOL_ADMIN


def test_forget_evicts_cached_identity():
    decoder = FakeDecoder()
    resolver = _resolver(_users(), decoder, FakeClock())
    resolver.resolve(TOKEN)

    resolver.forget(TOKEN)
    resolver.resolve(TOKEN)

    assert decoder.calls == 2


def test_empty_token_is_anonymous():
    decoder = FakeDecoder()
    resolver = _resolver(_users(), decoder, FakeClock())

    assert resolver.resolve(None) is None
    assert resolver.resolve("") is None
    assert decoder.calls == 0
