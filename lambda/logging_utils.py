"""lambda/logging_utils.py — Auth-event and application-event logging.

Both writers are no-ops unless their table is configured
(AUTH_LOGS_TABLE / APP_LOGS_TABLE). Neither ever raises: logging must never
break the main request flow.
"""
import helpers
from helpers import _get_client_ip, get_headers, now_iso


def _log_auth_event(event: dict, username: str, success: bool, reason: str = ""):
    """Write a login attempt record to the auth log table."""
    if not helpers.AUTH_LOGS_TABLE:
        return
    try:
        ua = get_headers(event).get("user-agent", "")[:200]
        helpers.supa().table(helpers.AUTH_LOGS_TABLE).insert({
            "ts":         now_iso(),
            "username":   username or "(unknown)",
            "success":    success,
            "ip":         _get_client_ip(event),
            "user_agent": ua,
            "reason":     reason,
        }).execute()
    except Exception as e:
        print(f"[WED] _log_auth_event failed: {e}")


def _log_app_event(source: str, level: str = "info", **fields):
    """Write a structured application log entry.
    source: 'api' | 'auth' | 'storage'"""
    if not helpers.APP_LOGS_TABLE:
        return
    try:
        helpers.supa().table(helpers.APP_LOGS_TABLE).insert({
            "ts":     now_iso(),
            "source": source,
            "level":  level,
            **{k: v for k, v in fields.items() if v is not None},
        }).execute()
    except Exception as e:
        print(f"[WED] _log_app_event failed: {e}")
