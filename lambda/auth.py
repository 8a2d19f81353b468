"""lambda/auth.py — Authentication: login, register, me.

Accounts live in admin_users. New accounts start as 'pending' and cannot log
in until an admin approves them (PUT /users).
"""
from postgrest.exceptions import APIError

from helpers import ok, err, supa, first_row, get_method, hash_password, verify_password
from logging_utils import _log_auth_event
from router import effective_action
from tokens import issue_token, require_auth


def login(event, body):
    username = (body.get("username") or "").strip()
    password = str(body.get("password") or "")
    if not username or not password:
        return err("username/password required")

    user = first_row(
        supa().table("admin_users")
        .select("*")
        .eq("username", username)
        .limit(1)
        .execute()
    )

    if not user:
        # Timing-safe: always run a hash comparison even when user not found
        verify_password(password, "scrypt$00$00")
        _log_auth_event(event, username, False, "unknown_user")
        return err("Invalid credentials", 401)

    if not (verify_password(password, user.get("password_hash") or "")
            or verify_password(password, user.get("password") or "")):
        _log_auth_event(event, username, False, "bad_password")
        return err("Invalid credentials", 401)

    status = user.get("approval_status")
    if status and status != "approved":
        _log_auth_event(event, username, False, "pending")
        return err("Pending approval", 403)

    token = issue_token(user["id"], user.get("role"), user.get("page_id"))
    _log_auth_event(event, username, True)
    return ok(token=token, user={
        "id":       user["id"],
        "username": user["username"],
        "role":     user.get("role"),
        "page_id":  user.get("page_id"),
    })


def register(body):
    username = (body.get("username") or "").strip()
    password = str(body.get("password") or "")
    if not username or not password:
        return err("username/password required")
    try:
        resp = supa().table("admin_users").insert({
            "username":        username,
            "password_hash":   hash_password(password),
            "page_id":         body.get("page_id"),
            "approval_status": "pending",
        }).execute()
    except APIError as e:
        # Duplicate usernames surface as a unique-constraint violation
        return err(e.message or "Registration failed")
    row = first_row(resp) or {}
    return ok(status=201, id=row.get("id"))


def handle_auth(event, body, route):
    method = get_method(event)
    act    = effective_action(event, body, route.action_or_id)

    if method == "POST" and act == "login":
        return login(event, body)
    if method == "POST" and act in ("register", "signup"):
        return register(body)
    if method == "GET" and act in ("me", None):
        return ok(user=require_auth(event))

    return err("Unknown auth action", 404)
