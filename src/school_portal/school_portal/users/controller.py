from __future__ import annotations

import logging

from flask import Flask, jsonify, request
from flask_jwt_extended import create_access_token, get_csrf_token, set_access_cookies, unset_jwt_cookies

from ..common.http import json_body, query_int
from ..core.constants import AUTH_RATE_LIMIT, WRITE_RATE_LIMIT
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..container import Container
from ..extensions import limiter
from .guards import current_identity, token_from_request

logger = logging.getLogger(__name__)


def _parse_role(value) -> Role:
    try:
        return Role(str(value or "").strip().lower())
    except ValueError:
        raise ValidationError("role must be one of: school_admin, teacher, student")


def register(app: Flask, container: Container) -> None:
    guards = container.guards

    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    @limiter.limit(AUTH_RATE_LIMIT)
    def auth_login():
        data = json_body()
        username = str(data.get("username") or "").strip()
        password = str(data.get("password") or "")
        if not username or not password:
            raise ValidationError("Username and password are required")

        user = container.auth_service.authenticate(username, password)
        token = create_access_token(
            identity=str(user.user_id),
            additional_claims={"role": user.role.value, "school_id": user.school_id},
        )
        logger.info("User %s (%s) logged in", user.user_id, user.role.value)

        body = {"access_token": token, "user": user.to_public_dict()}
        if "cookies" in app.config.get("JWT_TOKEN_LOCATION", []) and app.config.get("JWT_COOKIE_CSRF_PROTECT", True):
            body["csrf_token"] = get_csrf_token(token)
        resp = jsonify(body)
        set_access_cookies(resp, token)
        return resp

    @app.route("/api/auth/logout", methods=["POST"], endpoint="auth_logout")
    def auth_logout():
        token, _ = token_from_request()
        container.identity_resolver.forget(token)
        resp = jsonify({"message": "Logged out"})
        unset_jwt_cookies(resp)
        return resp

    @app.route("/api/auth/me", methods=["GET"], endpoint="auth_me")
    @guards.login_required
    def auth_me():
        identity = current_identity()
        school_ids = container.school_access.accessible_school_ids(identity)
        return jsonify(
            {
                "user": identity.to_dict(),
                "school_ids": list(school_ids) if school_ids is not None else None,
            }
        )

    @app.route("/api/admin/users", methods=["POST"], endpoint="admin_create_user")
    @guards.roles_required(Role.ADMIN, Role.SCHOOL_ADMIN)
    @limiter.limit(WRITE_RATE_LIMIT)
    def admin_create_user():
        identity = current_identity()
        data = json_body()
        user_id = container.user_service.create_account(
            current_role=identity.role,
            current_school_id=identity.school_id,
            full_name=str(data.get("full_name") or ""),
            username=str(data.get("username") or ""),
            password=str(data.get("password") or ""),
            role=_parse_role(data.get("role")),
            email=data.get("email"),
            school_id=data.get("school_id"),
        )
        return jsonify({"id": user_id}), 201

    @app.route("/api/admin/users", methods=["GET"], endpoint="admin_list_users")
    @guards.roles_required(Role.ADMIN, Role.SCHOOL_ADMIN)
    def admin_list_users():
        identity = current_identity()
        role_s = request.args.get("role")
        users = container.user_service.list_users(
            current_role=identity.role,
            current_school_id=identity.school_id,
            role=_parse_role(role_s) if role_s else None,
            school_id=query_int("school_id"),
        )
        return jsonify({"users": [u.to_public_dict() for u in users]})

    @app.route("/api/admin/users/<int:user_id>/deactivate", methods=["POST"], endpoint="admin_deactivate_user")
    @guards.roles_required(Role.ADMIN)
    @limiter.limit(WRITE_RATE_LIMIT)
    def admin_deactivate_user(user_id: int):
        container.user_service.deactivate(current_role=current_identity().role, user_id=user_id)
        return jsonify({"message": "User deactivated"})
