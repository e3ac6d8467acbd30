from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import json_body
from ..common.validators import require_positive_int
from ..core.constants import WRITE_RATE_LIMIT
from ..core.enums import Role
from ..container import Container
from ..extensions import limiter
from ..users.guards import current_identity


def register(app: Flask, container: Container) -> None:
    guards = container.guards

    @app.route("/api/schools", methods=["GET"], endpoint="list_schools")
    @guards.login_required
    def list_schools():
        schools = container.school_service.list_for(current_identity())
        return jsonify({"schools": [s.to_dict() for s in schools]})

    @app.route("/api/schools/<int:school_id>", methods=["GET"], endpoint="get_school")
    @guards.login_required
    def get_school(school_id: int):
        return jsonify({"school": container.school_service.get(current_identity(), school_id).to_dict()})

    @app.route("/api/schools/<int:school_id>/classes", methods=["GET"], endpoint="list_classes")
    @guards.login_required
    def list_classes(school_id: int):
        container.school_access.require_access(current_identity(), school_id)
        classes = container.class_service.list_for_school(school_id)
        return jsonify({"classes": [c.to_dict() for c in classes]})

    @app.route("/api/admin/schools", methods=["POST"], endpoint="admin_create_school")
    @guards.roles_required(Role.ADMIN)
    @limiter.limit(WRITE_RATE_LIMIT)
    def admin_create_school():
        data = json_body()
        school_id = container.school_service.create_school(
            current_role=current_identity().role,
            name=str(data.get("name") or ""),
            code=str(data.get("code") or ""),
            address=str(data.get("address") or ""),
        )
        return jsonify({"id": school_id}), 201

    @app.route("/api/admin/schools/<int:school_id>/teachers", methods=["POST"], endpoint="admin_assign_teacher")
    @guards.roles_required(Role.ADMIN)
    @limiter.limit(WRITE_RATE_LIMIT)
    def admin_assign_teacher(school_id: int):
        data = json_body()
        container.school_service.assign_teacher(
            current_role=current_identity().role,
            teacher_id=require_positive_int(data.get("teacher_id"), "teacher_id"),
            school_id=school_id,
        )
        return jsonify({"message": "Teacher assigned"}), 201

    @app.route(
        "/api/admin/schools/<int:school_id>/teachers/<int:teacher_id>",
        methods=["DELETE"],
        endpoint="admin_unassign_teacher",
    )
    @guards.roles_required(Role.ADMIN)
    @limiter.limit(WRITE_RATE_LIMIT)
    def admin_unassign_teacher(school_id: int, teacher_id: int):
        container.school_service.unassign_teacher(
            current_role=current_identity().role,
            teacher_id=teacher_id,
            school_id=school_id,
        )
        return jsonify({"message": "Teacher unassigned"})

    @app.route("/api/school-admin/classes", methods=["POST"], endpoint="school_admin_create_class")
    @guards.roles_required(Role.ADMIN, Role.SCHOOL_ADMIN)
    @limiter.limit(WRITE_RATE_LIMIT)
    def school_admin_create_class():
        data = json_body()
        school_id = require_positive_int(data.get("school_id"), "school_id")
        container.school_access.require_access(current_identity(), school_id)
        class_id = container.class_service.create_class(
            school_id=school_id,
            name=str(data.get("name") or ""),
            grade=str(data.get("grade") or ""),
            academic_year=str(data.get("academic_year") or ""),
        )
        return jsonify({"id": class_id}), 201
