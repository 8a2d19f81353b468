"""lambda/users.py — Admin-only account management.

@require_admin_role gates every function behind an admin-role token.
"""
from functools import wraps

from helpers import ok, err, supa, get_method
from tokens import require_admin

_USER_COLUMNS = "id, username, role, approval_status, page_id, created_at"
_EDITABLE     = ("role", "approval_status")


def require_admin_role(f):
    @wraps(f)
    def wrapper(event, *args, **kwargs):
        require_admin(event)
        return f(event, *args, **kwargs)
    return wrapper


@require_admin_role
def list_users(event):
    resp = (supa().table("admin_users")
            .select(_USER_COLUMNS)
            .order("created_at", desc=True)
            .execute())
    return ok(resp.data or [], no_store=True)


@require_admin_role
def update_user(event, body):
    user_id = body.get("id")
    if not user_id:
        return err("id required")
    changes = {k: body[k] for k in _EDITABLE if k in body}
    if not changes:
        return err("role or approval_status required")
    supa().table("admin_users").update(changes).eq("id", user_id).execute()
    return ok()


@require_admin_role
def delete_user(event, body, user_id):
    user_id = user_id or body.get("id")
    if not user_id:
        return err("id required")
    supa().table("admin_users").delete().eq("id", user_id).execute()
    return ok()


def handle_users(event, body, route):
    method = get_method(event)
    if method == "GET":    return list_users(event)
    if method == "PUT":    return update_user(event, body)
    if method == "DELETE": return delete_user(event, body, route.action_or_id)
    return err("Method not allowed", 405)
