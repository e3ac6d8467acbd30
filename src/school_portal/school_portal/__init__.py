"""School Portal package.

Feature modules (users, schools, schedules, reports, attendance, leaves) each
carry their own model/repository/service layers behind a thin Flask
controller layer.
"""
