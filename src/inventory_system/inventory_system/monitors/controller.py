from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import datetime
from enum import Enum
from functools import wraps

from flask import Flask, jsonify, request, session

from ..common.datetime_utils import parse_iso_date
from ..core.enums import Role
from ..core.exceptions import (
    AuthorizationError,
    CapacityExceeded,
    InvalidRoleTransition,
    NotAMonitor,
    NotFound,
    PersistenceFailure,
    ValidationError,
)
from ..container import Container

logger = logging.getLogger(__name__)


def _serialize(item) -> dict:
    out = {}
    for key, value in asdict(item).items():
        if isinstance(value, datetime):
            value = value.strftime("%Y-%m-%d %H:%M:%S")
        elif isinstance(value, Enum):
            value = value.value
        out[key] = value
    return out


def _error(message: str, status: int):
    return jsonify(error=message), status


def register(app: Flask, container: Container) -> None:
    service = container.monitor_service

    def admin_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return _error("Please log in to continue", 401)
            if session.get("role") != Role.ADMIN.value:
                return _error("You do not have permission", 403)
            return view(*args, **kwargs)

        return wrapper

    @app.route("/admin/monitors", methods=["GET"], endpoint="admin_monitors")
    @admin_required
    def admin_monitors():
        try:
            monitors = service.get_active_monitors()
            employees = service.list_eligible_employees()
            count = service.count_active_monitors()
            remaining = service.remaining_slots()
        except PersistenceFailure:
            logger.exception("Loading monitors failed")
            return _error("Error loading monitors", 503)

        return jsonify(
            monitors=[_serialize(m) for m in monitors],
            employees=[_serialize(e) for e in employees],
            count=count,
            max_monitors=service.max_monitors,
            remaining_slots=remaining,
        )

    @app.route("/admin/monitors/assign", methods=["POST"], endpoint="assign_monitor")
    @admin_required
    def assign_monitor():
        payload = request.get_json(silent=True)
        if payload is None:
            payload = request.form
        elif not isinstance(payload, dict):
            return _error("Request body must be a JSON object", 400)

        raw_end = payload.get("end_date") or ""
        if not isinstance(raw_end, str):
            return _error("End date must be YYYY-MM-DD", 400)
        try:
            end_date = parse_iso_date(raw_end.strip())
        except ValueError:
            return _error("End date must be YYYY-MM-DD", 400)

        try:
            assignment = service.assign_monitor(
                user_id=payload.get("employee_id"),
                assigned_by=int(session["user_id"]),
                end_date=end_date,
            )
        except CapacityExceeded as e:
            return _error(str(e), 409)
        except NotFound as e:
            return _error(str(e), 404)
        except AuthorizationError as e:
            return _error(str(e), 403)
        except (InvalidRoleTransition, ValidationError) as e:
            return _error(str(e), 400)
        except PersistenceFailure:
            logger.exception("Assign monitor failed")
            return _error("Error assigning monitor", 503)

        return jsonify(status="assigned", assignment=_serialize(assignment)), 201

    @app.route("/admin/monitors/<int:user_id>/revoke", methods=["POST"], endpoint="revoke_monitor")
    @admin_required
    def revoke_monitor(user_id: int):
        try:
            closed = service.revoke_monitor(user_id=user_id)
        except NotAMonitor as e:
            return jsonify(status="noop", message=str(e))
        except NotFound as e:
            return _error(str(e), 404)
        except ValidationError as e:
            return _error(str(e), 400)
        except PersistenceFailure:
            logger.exception("Revoke monitor failed")
            return _error("Error unassigning monitor", 503)

        return jsonify(status="revoked", assignment=_serialize(closed) if closed else None)

    @app.route("/admin/monitors/history", methods=["GET"], endpoint="monitor_history")
    @admin_required
    def monitor_history():
        user_id = request.args.get("user_id", type=int)
        limit = request.args.get("limit", default=200, type=int)
        try:
            rows = service.list_assignment_history(user_id=user_id, limit=limit)
        except ValidationError as e:
            return _error(str(e), 400)
        except PersistenceFailure:
            logger.exception("Loading monitor history failed")
            return _error("Error loading monitor history", 503)

        return jsonify(assignments=[_serialize(r) for r in rows])

    @app.route("/admin/monitors/sweep", methods=["POST"], endpoint="sweep_monitors")
    @admin_required
    def sweep_monitors():
        try:
            expired = service.sweep_expired_assignments()
        except PersistenceFailure:
            logger.exception("Manual expiry sweep failed")
            return _error("Error checking expired monitors", 503)

        return jsonify(expired=[_serialize(e) for e in expired])
