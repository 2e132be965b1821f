from __future__ import annotations

from flask import Blueprint

from redhope.blueprints._http import json_response
from redhope.services import get_services

bp = Blueprint("dashboard", __name__)


@bp.get("/dashboard-stats")
def dashboard_stats():
    return json_response(get_services().stats.stats().as_dict())
