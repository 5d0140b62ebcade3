# Overview: Read-only activity trail route.

from flask import Blueprint, jsonify, request

from ..services import activity_service

activity_bp = Blueprint("activity", __name__, url_prefix="/api/activity-logs")


@activity_bp.get("")
def list_activity_logs():
    """Newest first. Query params: limit (default 200, max 1000)."""
    limit = request.args.get("limit", 200, type=int)
    entries = activity_service.list_activity(limit=limit)
    return jsonify({"items": [e.to_dict() for e in entries], "count": len(entries)}), 200
