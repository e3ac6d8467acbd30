from __future__ import annotations

import csv
import io
from datetime import date

from flask import Flask, jsonify, request

from ..common.http import query_date, query_int
from ..common.validators import clamp_limit, clamp_offset
from ..core.constants import DEFAULT_ATTENDANCE_LIMIT, MAX_PAGE_LIMIT
from ..core.enums import Role
from ..container import Container
from ..users.guards import current_identity
from .service import CSV_FIELDS, default_range


def register(app: Flask, container: Container) -> None:
    guards = container.guards
    managers = (Role.ADMIN, Role.SCHOOL_ADMIN)

    def _range():
        start_default, end_default = default_range(date.today())
        return query_date("start_date") or start_default, query_date("end_date") or end_default

    def _write_csv(*, rows, filename: str):
        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for row in rows:
            writer.writerow(row)

        return app.response_class(
            out.getvalue().encode("utf-8-sig"),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/api/teacher/attendance", methods=["GET"], endpoint="teacher_attendance")
    @guards.roles_required(Role.TEACHER)
    def teacher_attendance():
        records = container.attendance_service.list_for_teacher(
            current_identity(),
            school_id=query_int("school_id"),
            start_date=query_date("start_date"),
            end_date=query_date("end_date"),
            limit=clamp_limit(request.args.get("limit"), default=DEFAULT_ATTENDANCE_LIMIT, maximum=MAX_PAGE_LIMIT),
        )
        return jsonify({"attendance": [r.to_dict() for r in records]})

    @app.route("/api/school-admin/attendance", methods=["GET"], endpoint="school_admin_attendance")
    @guards.roles_required(*managers)
    def school_admin_attendance():
        records = container.attendance_service.list_for_school(
            current_identity(),
            school_id=query_int("school_id"),
            teacher_id=query_int("teacher_id"),
            start_date=query_date("start_date"),
            end_date=query_date("end_date"),
            limit=clamp_limit(request.args.get("limit"), default=DEFAULT_ATTENDANCE_LIMIT, maximum=MAX_PAGE_LIMIT),
            offset=clamp_offset(request.args.get("offset")),
        )
        return jsonify({"attendance": [r.to_dict() for r in records]})

    @app.route("/api/school-admin/attendance/summary", methods=["GET"], endpoint="school_admin_attendance_summary")
    @guards.roles_required(*managers)
    def school_admin_attendance_summary():
        start, end = _range()
        rows = container.attendance_service.summary(
            current_identity(),
            school_id=query_int("school_id"),
            start_date=start,
            end_date=end,
        )
        return jsonify(
            {
                "start_date": start.isoformat(),
                "end_date": end.isoformat(),
                "summary": [r.to_dict() for r in rows],
            }
        )

    @app.route("/api/school-admin/attendance.csv", methods=["GET"], endpoint="school_admin_attendance_csv")
    @guards.roles_required(*managers)
    def school_admin_attendance_csv():
        start, end = _range()
        rows = container.attendance_service.export_rows(
            current_identity(),
            school_id=query_int("school_id"),
            start_date=start,
            end_date=end,
        )
        filename = f"teacher_attendance_{start.strftime('%Y%m%d')}_{end.strftime('%Y%m%d')}.csv"
        return _write_csv(rows=rows, filename=filename)
