from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import json_body, query_int
from ..common.validators import clamp_limit, clamp_offset
from ..core.constants import DEFAULT_LEAVE_LIMIT, MAX_PAGE_LIMIT, WRITE_RATE_LIMIT
from ..core.enums import Role
from ..container import Container
from ..extensions import limiter
from ..reports.service import parse_review_action
from ..users.guards import current_identity
from .service import parse_leave_status


def register(app: Flask, container: Container) -> None:
    guards = container.guards

    @app.route("/api/teacher/leaves", methods=["POST"], endpoint="teacher_create_leave")
    @guards.roles_required(Role.TEACHER)
    @limiter.limit(WRITE_RATE_LIMIT)
    def teacher_create_leave():
        leave = container.leave_service.create_leave(current_identity(), json_body())
        return jsonify({"leave": leave.to_dict()}), 201

    @app.route("/api/teacher/leaves", methods=["GET"], endpoint="teacher_list_leaves")
    @guards.roles_required(Role.TEACHER)
    def teacher_list_leaves():
        leaves = container.leave_service.list_mine(
            current_identity(),
            status=parse_leave_status(request.args.get("status")),
            limit=clamp_limit(request.args.get("limit"), default=DEFAULT_LEAVE_LIMIT, maximum=MAX_PAGE_LIMIT),
        )
        return jsonify({"leaves": [l.to_dict() for l in leaves]})

    @app.route("/api/school-admin/leaves", methods=["GET"], endpoint="school_admin_list_leaves")
    @guards.roles_required(Role.ADMIN, Role.SCHOOL_ADMIN)
    def school_admin_list_leaves():
        leaves = container.leave_service.list_for_school(
            current_identity(),
            school_id=query_int("school_id"),
            status=parse_leave_status(request.args.get("status")),
            limit=clamp_limit(request.args.get("limit"), default=DEFAULT_LEAVE_LIMIT, maximum=MAX_PAGE_LIMIT),
            offset=clamp_offset(request.args.get("offset")),
        )
        return jsonify({"leaves": [l.to_dict() for l in leaves]})

    @app.route("/api/school-admin/leaves/<int:leave_id>", methods=["PATCH"], endpoint="school_admin_decide_leave")
    @guards.roles_required(Role.ADMIN, Role.SCHOOL_ADMIN)
    @limiter.limit(WRITE_RATE_LIMIT)
    def school_admin_decide_leave(leave_id: int):
        data = json_body()
        leave = container.leave_service.decide(
            current_identity(),
            leave_id,
            action=parse_review_action(data.get("action")),
            notes=data.get("notes"),
        )
        return jsonify({"leave": leave.to_dict()})
