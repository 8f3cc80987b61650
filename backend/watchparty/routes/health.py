from __future__ import annotations

from flask import Blueprint, current_app, jsonify

bp = Blueprint("health", __name__)


@bp.get("/health")
def health():
    service = current_app.extensions["watchparty"]
    return jsonify({"ok": True, "rooms": len(service.registry)})
