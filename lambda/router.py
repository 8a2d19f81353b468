"""lambda/router.py — Route parsing and action resolution.

Pure functions of the event; no I/O.
"""
from collections import namedtuple

from helpers import get_query

API_PREFIX = "/api"

RouteInfo = namedtuple("RouteInfo", ["resource", "action_or_id"])


def _event_path(event) -> str:
    params = event.get("pathParameters") or {}
    # Catch-all route parameter, e.g. ANY /api/{route+}
    catch_all = params.get("route") or params.get("proxy")
    if catch_all:
        return catch_all
    http_ctx = (event.get("requestContext") or {}).get("http") or {}
    return event.get("rawPath") or http_ctx.get("path") or event.get("path", "") or ""


def parse_route(event) -> RouteInfo:
    path = "/" + _event_path(event).split("?", 1)[0].lstrip("/")
    if path == API_PREFIX or path.startswith(API_PREFIX + "/"):
        path = path[len(API_PREFIX):]
    segs = [s for s in path.split("/") if s]
    resource     = segs[0] if segs else "ping"
    action_or_id = segs[1] if len(segs) > 1 else None
    return RouteInfo(resource, action_or_id)


def effective_action(event, body, action_or_id):
    """Path segment, then ?action=, then body["action"]."""
    for candidate in (action_or_id, get_query(event).get("action"), (body or {}).get("action")):
        if candidate:
            return candidate
    return None
