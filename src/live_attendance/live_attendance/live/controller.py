from __future__ import annotations

import logging

from flask import Flask, jsonify, request

from ..container import Container
from ..core.exceptions import FetchError
from .model import LiveFilter

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    service = container.live_dashboard_service

    def _filter_from_request() -> LiveFilter:
        payload = request.get_json(silent=True) or {}
        return LiveFilter.from_params(
            department=request.args.get("department") or payload.get("department"),
            work_location=request.args.get("location") or payload.get("location"),
        )

    def _flag(name: str):
        payload = request.get_json(silent=True) or {}
        value = payload.get(name)
        if not isinstance(value, bool):
            return None
        return value

    def _respond(state, live_filter: LiveFilter, notices: list[dict], status: int = 200):
        body = service.to_ui(state, live_filter)
        body["success"] = state.last_error is None
        body["notices"] = notices
        return jsonify(body), status

    def _collector(notices: list[dict]):
        def notify(message: str, category: str) -> None:
            notices.append({"message": message, "category": category})

        return notify

    @app.route("/api/attendance/live", methods=["GET"], endpoint="api_live_attendance")
    def api_live_attendance():
        live_filter = _filter_from_request()
        notices: list[dict] = []
        state = service.view(live_filter, notify=_collector(notices))
        return _respond(state, live_filter, notices)

    @app.route("/api/attendance/live/refresh", methods=["POST"], endpoint="api_live_attendance_refresh")
    def api_live_attendance_refresh():
        live_filter = _filter_from_request()
        notices: list[dict] = []
        state = service.refresh(live_filter, notify=_collector(notices))
        return _respond(state, live_filter, notices)

    @app.route("/api/attendance/live/reconnect", methods=["POST"], endpoint="api_live_attendance_reconnect")
    def api_live_attendance_reconnect():
        live_filter = _filter_from_request()
        notices: list[dict] = []
        state = service.reconnect(live_filter, notify=_collector(notices))
        return _respond(state, live_filter, notices)

    @app.route("/api/attendance/live/visibility", methods=["POST"], endpoint="api_live_attendance_visibility")
    def api_live_attendance_visibility():
        visible = _flag("visible")
        if visible is None:
            return jsonify({"success": False, "message": "Thiếu trường 'visible' (true/false)"}), 400

        live_filter = _filter_from_request()
        state = service.set_visible(live_filter, visible)
        return _respond(state, live_filter, [])

    @app.route("/api/attendance/live/network", methods=["POST"], endpoint="api_live_attendance_network")
    def api_live_attendance_network():
        online = _flag("online")
        if online is None:
            return jsonify({"success": False, "message": "Thiếu trường 'online' (true/false)"}), 400

        live_filter = _filter_from_request()
        controller = service.controller_for(live_filter)
        service.set_online(online)
        logger.info("Client reported network %s", "online" if online else "offline")
        state = controller.state
        return _respond(state, live_filter, [])

    @app.route("/api/attendance/live/<employee_id>", methods=["GET"], endpoint="api_live_employee_status")
    def api_live_employee_status(employee_id: str):
        try:
            data = service.employee_status(employee_id.strip())
        except FetchError as e:
            logger.warning("Live status for %s unavailable: %s", employee_id, e)
            return jsonify({"success": False, "data": None, "message": str(e)}), 503

        if data is None:
            return jsonify({"success": True, "data": None, "message": "Nhân viên chưa chấm công hôm nay"})
        return jsonify({"success": True, "data": data})
