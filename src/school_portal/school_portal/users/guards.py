from __future__ import annotations

import hmac
from functools import wraps
from typing import Optional, Tuple

from flask import current_app, g, request

from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError
from .identity import IdentityResolver
from .model import Identity

UNSAFE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


def token_from_request() -> Tuple[Optional[str], Optional[str]]:
    """Return ``(token, source)`` where source is ``"header"`` or ``"cookie"``."""
    auth = request.headers.get("Authorization", "")
    if auth.lower().startswith("bearer "):
        token = auth[7:].strip()
        if token:
            return token, "header"

    cookie_name = current_app.config.get("JWT_ACCESS_COOKIE_NAME", "access_token_cookie")
    token = request.cookies.get(cookie_name)
    if token:
        return token, "cookie"
    return None, None


def current_identity() -> Identity:
    identity = getattr(g, "identity", None)
    if identity is None:
        raise AuthenticationError("Authentication required")
    return identity


class Guards:
    """Route decorators bound to one :class:`IdentityResolver`."""

    def __init__(self, resolver: IdentityResolver):
        self._resolver = resolver

    def authenticate(self) -> Identity:
        token, source = token_from_request()
        if not token:
            raise AuthenticationError("Authentication required")

        identity = self._resolver.resolve(token)
        if identity is None:
            raise AuthenticationError("Invalid or expired token")

        if source == "cookie" and request.method in UNSAFE_METHODS and self._csrf_enabled():
            sent = request.headers.get(current_app.config.get("JWT_ACCESS_CSRF_HEADER_NAME", "X-CSRF-TOKEN"), "")
            if not identity.csrf or not hmac.compare_digest(sent, identity.csrf):
                raise AuthorizationError("Missing or invalid CSRF token")

        g.identity = identity
        return identity

    @staticmethod
    def _csrf_enabled() -> bool:
        return bool(current_app.config.get("JWT_COOKIE_CSRF_PROTECT", True))

    def login_required(self, view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            self.authenticate()
            return view(*args, **kwargs)

        return wrapper

    def roles_required(self, *roles: Role):
        allowed = frozenset(roles)

        def decorator(view):
            @wraps(view)
            def wrapper(*args, **kwargs):
                identity = self.authenticate()
                if identity.role not in allowed:
                    raise AuthorizationError("Access forbidden: insufficient permissions")
                return view(*args, **kwargs)

            return wrapper

        return decorator
