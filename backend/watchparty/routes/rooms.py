from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from ..session import directory

bp = Blueprint("rooms", __name__)


@bp.get("/rooms")
def list_rooms():
    service = current_app.extensions["watchparty"]
    try:
        page = int(request.args.get("page", "1"))
    except ValueError:
        page = 1
    return jsonify(directory.room_list(service.registry, page, service.page_size))


@bp.get("/rooms/<room_id>")
def get_room(room_id: str):
    service = current_app.extensions["watchparty"]
    room = service.registry.get(room_id)
    if not room:
        return jsonify({"error": "room_not_found"}), 404
    return jsonify(directory.room_info(room))
