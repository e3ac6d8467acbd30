from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import json_body, query_int
from ..core.constants import WRITE_RATE_LIMIT
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..container import Container
from ..extensions import limiter
from ..users.guards import current_identity


def _required_school_id() -> int:
    school_id = query_int("school_id")
    if not school_id:
        raise ValidationError("school_id is required")
    return school_id


def register(app: Flask, container: Container) -> None:
    guards = container.guards
    managers = (Role.ADMIN, Role.SCHOOL_ADMIN)

    @app.route("/api/school-admin/schedules", methods=["GET"], endpoint="school_admin_list_schedules")
    @guards.roles_required(*managers)
    def school_admin_list_schedules():
        identity = current_identity()
        schedules = container.schedule_service.list_for_school(
            identity,
            school_id=query_int("school_id") or identity.school_id or _required_school_id(),
            teacher_id=query_int("teacher_id"),
            day_of_week=request.args.get("day"),
            include_inactive=request.args.get("include_inactive") in {"1", "true"},
        )
        return jsonify({"schedules": [s.to_dict() for s in schedules]})

    @app.route("/api/school-admin/schedules", methods=["POST"], endpoint="school_admin_create_schedule")
    @guards.roles_required(*managers)
    @limiter.limit(WRITE_RATE_LIMIT)
    def school_admin_create_schedule():
        schedule_id = container.schedule_service.create_schedule(current_identity(), json_body())
        return jsonify({"id": schedule_id}), 201

    @app.route(
        "/api/school-admin/schedules/<int:schedule_id>",
        methods=["DELETE"],
        endpoint="school_admin_deactivate_schedule",
    )
    @guards.roles_required(*managers)
    @limiter.limit(WRITE_RATE_LIMIT)
    def school_admin_deactivate_schedule(schedule_id: int):
        container.schedule_service.deactivate(current_identity(), schedule_id)
        return jsonify({"message": "Schedule deactivated"})

    @app.route("/api/school-admin/periods", methods=["GET"], endpoint="school_admin_list_periods")
    @guards.roles_required(*managers)
    def school_admin_list_periods():
        identity = current_identity()
        periods = container.schedule_service.list_periods(
            identity,
            school_id=query_int("school_id") or identity.school_id or _required_school_id(),
        )
        return jsonify({"periods": [p.to_dict() for p in periods]})

    @app.route("/api/school-admin/periods", methods=["POST"], endpoint="school_admin_create_period")
    @guards.roles_required(*managers)
    @limiter.limit(WRITE_RATE_LIMIT)
    def school_admin_create_period():
        period_id = container.schedule_service.create_period(current_identity(), json_body())
        return jsonify({"id": period_id}), 201

    @app.route("/api/teacher/schedules", methods=["GET"], endpoint="teacher_list_schedules")
    @guards.roles_required(Role.TEACHER)
    def teacher_list_schedules():
        schedules = container.schedule_service.list_for_teacher(
            current_identity(),
            school_id=_required_school_id(),
            day_of_week=request.args.get("day"),
        )
        return jsonify({"schedules": [s.to_dict() for s in schedules]})
