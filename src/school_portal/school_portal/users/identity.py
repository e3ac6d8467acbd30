"""Resolve a bearer token or access cookie into an :class:`Identity`.

Lookups are cached for a short TTL keyed by a truncated token. A cache miss
always re-verifies the token signature/expiry and reloads the user, so the
cache only saves work and never extends a token's validity beyond the TTL.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional

from flask_jwt_extended import decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from ..common.cache import MISSING, Cache
from ..core.constants import IDENTITY_CACHE_KEY_PREFIX, IDENTITY_CACHE_TTL_SECONDS
from .model import Identity
from .repository import UserRepository

logger = logging.getLogger(__name__)

TokenDecoder = Callable[[str], Mapping[str, Any]]


def cache_key_for(token: str) -> str:
    if len(token) > 20:
        return f"{IDENTITY_CACHE_KEY_PREFIX}{token[:10]}{token[-10:]}"
    return f"{IDENTITY_CACHE_KEY_PREFIX}{token}"


class IdentityResolver:
    def __init__(
        self,
        users: UserRepository,
        *,
        cache: Cache,
        decode: Optional[TokenDecoder] = None,
        ttl_seconds: float = IDENTITY_CACHE_TTL_SECONDS,
    ):
        self._users = users
        self._cache = cache
        self._decode = decode or decode_token
        self._ttl_seconds = float(ttl_seconds)

    def resolve(self, token: Optional[str]) -> Optional[Identity]:
        if not token:
            return None

        key = cache_key_for(token)
        cached = self._cache.get(key)
        if cached is not MISSING:
            return cached

        identity = self._verify(token)
        # Negative results are cached too so a bad token cannot hammer the DB.
        self._cache.set(key, identity, ttl_seconds=self._ttl_seconds)
        return identity

    def forget(self, token: Optional[str]) -> None:
        if token:
            self._cache.delete(cache_key_for(token))

    def _verify(self, token: str) -> Optional[Identity]:
        try:
            claims = self._decode(token)
        except (PyJWTError, JWTExtendedException) as exc:
            logger.info("Rejected access token: %s", exc)
            return None

        if claims.get("type", "access") != "access":
            return None

        try:
            user_id = int(claims.get("sub"))
        except (TypeError, ValueError):
            return None

        user = self._users.get_by_id(user_id)
        if not user or not user.is_active:
            return None

        role = user.role
        if claims.get("role") and claims.get("role") != role.value:
            # Role changed since the token was issued; trust the database.
            logger.info("Token role %s differs from stored role %s for user %s", claims.get("role"), role.value, user_id)

        return Identity(
            user_id=user.user_id,
            full_name=user.full_name,
            role=role,
            school_id=user.school_id,
            csrf=claims.get("csrf"),
        )
