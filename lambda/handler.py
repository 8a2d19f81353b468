"""lambda/handler.py — API Gateway Lambda router.

Entry point: handler.handler. Resource modules own the business rules;
this file only dispatches and maps exceptions to envelopes.

Every request is /api/{resource}[/{actionOrId}]; the resource picks a handler
from HANDLERS and unknown resources fall through to ping.
"""
from postgrest.exceptions import APIError

from helpers import ok, err, get_body, get_method, now_iso, ApiError, CORS
from router import parse_route

from auth            import handle_auth
from users           import handle_users
from images          import handle_images
from rsvp            import handle_rsvp
from calendar_events import handle_calendar
from contacts        import handle_contacts
from page_settings   import handle_page_settings
from invite          import handle_invite
from comments        import handle_comments
from transport       import handle_transport
from map_config      import handle_map_config


def ping(event, body, route):
    return ok(ok=True, time=now_iso())


HANDLERS = {
    "ping":          ping,
    "auth":          handle_auth,
    "users":         handle_users,
    "images":        handle_images,
    "rsvp":          handle_rsvp,
    "calendar":      handle_calendar,
    "contacts":      handle_contacts,
    "page-settings": handle_page_settings,
    "invite":        handle_invite,
    "comments":      handle_comments,
    "transport":     handle_transport,
    "map-config":    handle_map_config,
}


def handler(event, context):
    resource = "?"
    try:
        if get_method(event) == "OPTIONS":
            return {"statusCode": 200, "headers": CORS, "body": ""}
        route    = parse_route(event)
        resource = route.resource
        fn       = HANDLERS.get(resource, ping)
        return fn(event, get_body(event), route)
    except ApiError as e:
        return err(e.message, e.status)
    except APIError as e:
        print(f"[WED] {resource} store error: {e.message}")
        return err(e.message or "Database error", 500)
    except Exception as e:
        print(f"[WED] {resource} unhandled {type(e).__name__}: {e}")
        return err(str(e) or "Internal error", 500)
