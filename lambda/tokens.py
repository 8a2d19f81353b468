"""lambda/tokens.py — Bearer token issue and verification.

Two token formats are accepted:
  * HS256 JWT signed with JWT_SECRET (issued by POST /auth/login)
  * legacy base64-encoded JSON {userId, username, expires, role, pageId}
    issued by older admin clients. It carries no signature, so it is only
    tried after JWT verification fails and only while unexpired.
"""
import base64
import binascii
import json
from datetime import datetime, timezone, timedelta

import jwt

import helpers
from helpers import ApiError, get_headers, now_ms


def _secret() -> str:
    if not helpers.JWT_SECRET:
        print("[WED] JWT_SECRET is not set; refusing to issue or verify tokens")
        raise ApiError("Server misconfigured", 500)
    return helpers.JWT_SECRET


def issue_token(uid, role, page_id) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "uid":    uid,
        "role":   role or "user",
        "pageId": page_id,
        "iat":    int(now.timestamp()),
        "exp":    int((now + timedelta(minutes=helpers.TOKEN_TTL_MINUTES)).timestamp()),
    }
    return jwt.encode(payload, _secret(), algorithm="HS256")


def bearer(event):
    auth = get_headers(event).get("authorization", "")
    if not auth.startswith("Bearer "):
        return None
    return auth[len("Bearer "):].strip() or None


def verify_jwt(token, secret):
    """Return claims from a signed token, or None."""
    try:
        payload = jwt.decode(token, secret, algorithms=["HS256"])
    except jwt.InvalidTokenError:
        return None
    return {
        "uid":    payload.get("uid"),
        "role":   payload.get("role") or "user",
        "pageId": payload.get("pageId"),
    }


def parse_legacy_token(token):
    """Return claims from a legacy base64 JSON token, or None."""
    try:
        raw     = base64.b64decode(token + "=" * (-len(token) % 4))
        decoded = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None
    if not isinstance(decoded, dict):
        return None
    if not decoded.get("userId") or not decoded.get("username"):
        return None
    expires = decoded.get("expires")
    if isinstance(expires, bool) or not isinstance(expires, (int, float)):
        return None
    if now_ms() > expires:
        return None
    return {
        "uid":    decoded["userId"],
        "role":   decoded.get("role") or decoded.get("userRole") or "user",
        "pageId": decoded.get("pageId") or decoded.get("page_id"),
    }


def require_auth(event) -> dict:
    token = bearer(event)
    if not token:
        raise ApiError("Unauthorized", 401)
    claims = verify_jwt(token, _secret())
    if claims:
        return claims
    claims = parse_legacy_token(token)
    if claims:
        # Unsigned: role and pageId are whatever the client put there.
        print(f"[WED] legacy token accepted for uid={claims['uid']}")
        return claims
    raise ApiError("Invalid token", 401)


def require_admin(event) -> dict:
    claims = require_auth(event)
    if claims.get("role") != "admin":
        raise ApiError("Forbidden", 403)
    return claims


def is_admin(claims) -> bool:
    return claims.get("role") == "admin"


def write_page(claims, requested=None) -> str:
    """Page a write lands on.

    Non-admin callers always write to the pageId in their token; whatever the
    body names is ignored. Admins may target any page and fall back to their
    own.
    """
    page_id = (requested or claims.get("pageId")) if is_admin(claims) else claims.get("pageId")
    if not page_id:
        raise ApiError("page_id not assigned for this user", 400)
    return page_id


def owned(query, claims):
    """Restrict an update/delete by id to the caller's page (admins unrestricted)."""
    if is_admin(claims):
        return query
    return query.eq("page_id", write_page(claims))
