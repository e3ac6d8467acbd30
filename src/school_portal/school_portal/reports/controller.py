from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import json_body, query_date, query_int
from ..core.constants import DEFAULT_REPORT_LIMIT, MAX_PAGE_LIMIT, WRITE_RATE_LIMIT
from ..core.enums import Role
from ..common.validators import clamp_limit, clamp_offset
from ..container import Container
from ..extensions import limiter
from ..users.guards import current_identity
from .service import ReportCreateError, parse_report_status, parse_review_action


def register(app: Flask, container: Container) -> None:
    guards = container.guards

    def _paging():
        return (
            clamp_limit(request.args.get("limit"), default=DEFAULT_REPORT_LIMIT, maximum=MAX_PAGE_LIMIT),
            clamp_offset(request.args.get("offset")),
        )

    @app.route("/api/teacher/reports", methods=["POST"], endpoint="teacher_create_report")
    @guards.roles_required(Role.TEACHER)
    @limiter.limit(WRITE_RATE_LIMIT)
    def teacher_create_report():
        try:
            report, attendance = container.report_service.create_report(current_identity(), json_body())
        except ReportCreateError as e:
            return (
                jsonify({"error": "Failed to create report", "details": str(e), "hint": ReportCreateError.hint}),
                500,
            )
        return jsonify({"report": report.to_dict(), "attendance": attendance.to_dict()}), 201

    @app.route("/api/teacher/reports/<int:report_id>", methods=["PUT"], endpoint="teacher_update_report")
    @guards.roles_required(Role.TEACHER)
    @limiter.limit(WRITE_RATE_LIMIT)
    def teacher_update_report(report_id: int):
        report, attendance = container.report_service.update_report(current_identity(), report_id, json_body())
        return jsonify({"report": report.to_dict(), "attendance": attendance.to_dict()})

    @app.route("/api/teacher/reports", methods=["GET"], endpoint="teacher_list_reports")
    @guards.roles_required(Role.TEACHER)
    def teacher_list_reports():
        limit, offset = _paging()
        reports = container.report_service.list_for_teacher(
            current_identity(),
            school_id=query_int("school_id"),
            status=parse_report_status(request.args.get("status")),
            report_date=query_date("date"),
            class_id=query_int("class_id"),
            limit=limit,
            offset=offset,
        )
        return jsonify({"reports": [r.to_dict() for r in reports], "limit": limit, "offset": offset})

    @app.route("/api/school-admin/reports", methods=["GET"], endpoint="school_admin_list_reports")
    @guards.roles_required(Role.ADMIN, Role.SCHOOL_ADMIN)
    def school_admin_list_reports():
        limit, offset = _paging()
        reports = container.report_service.list_for_school(
            current_identity(),
            school_id=query_int("school_id"),
            teacher_id=query_int("teacher_id"),
            status=parse_report_status(request.args.get("status")),
            report_date=query_date("date"),
            class_id=query_int("class_id"),
            limit=limit,
            offset=offset,
        )
        return jsonify({"reports": [r.to_dict() for r in reports], "limit": limit, "offset": offset})

    @app.route("/api/school-admin/reports/<int:report_id>", methods=["PATCH"], endpoint="school_admin_review_report")
    @guards.roles_required(Role.ADMIN, Role.SCHOOL_ADMIN)
    @limiter.limit(WRITE_RATE_LIMIT)
    def school_admin_review_report(report_id: int):
        data = json_body()
        report = container.report_service.review(
            current_identity(),
            report_id,
            action=parse_review_action(data.get("action")),
            notes=data.get("notes"),
        )
        return jsonify({"report": report.to_dict()})
