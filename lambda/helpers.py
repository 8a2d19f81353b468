"""lambda/helpers.py — Shared utilities, Supabase client, and constants.

Imported by all other lambda modules. Contains no business logic.
"""
import base64
import json
import os
import hashlib
import hmac
import secrets
from datetime import datetime, timezone

from supabase import create_client

# ── Configuration ─────────────────────────────────────────────────────────────

# Strip any accidental whitespace/newlines that can sneak in via Lambda env vars
JWT_SECRET           = (os.environ.get("JWT_SECRET", "") or "").strip()
SUPABASE_URL         = (os.environ.get("SUPABASE_URL", "") or "").strip().rstrip("/")
SUPABASE_SERVICE_KEY = (os.environ.get("SUPABASE_SERVICE_KEY", "") or "").strip()
IMAGES_BUCKET        = (os.environ.get("IMAGES_BUCKET", "images") or "images").strip()
TOKEN_TTL_MINUTES    = int(os.environ.get("TOKEN_TTL_MINUTES", "45") or 45)
APP_LOGS_TABLE       = (os.environ.get("APP_LOGS_TABLE", "") or "").strip()
AUTH_LOGS_TABLE      = (os.environ.get("AUTH_LOGS_TABLE", "") or "").strip()

CORS = {
    "Access-Control-Allow-Origin":  "*",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Access-Control-Allow-Methods": "GET,POST,PUT,DELETE,OPTIONS",
    "Content-Type": "application/json",
}

NO_STORE = {"Cache-Control": "no-store, no-cache, must-revalidate"}


class ApiError(Exception):
    """Raised anywhere below the entry point; converted to an err() envelope."""

    def __init__(self, message, status=400):
        super().__init__(message)
        self.message = message
        self.status  = status


# ── Supabase client ───────────────────────────────────────────────────────────

_client = None


def supa():
    """Return the cached Supabase client, creating it on first use."""
    global _client
    if _client is not None:
        return _client
    if not SUPABASE_URL or not SUPABASE_SERVICE_KEY:
        raise ApiError("Server misconfigured: Supabase credentials missing.", 500)
    _client = create_client(SUPABASE_URL, SUPABASE_SERVICE_KEY)
    return _client


def first_row(resp):
    """First row of a query response, or None."""
    rows = resp.data or []
    return rows[0] if rows else None


# ── Response helpers ──────────────────────────────────────────────────────────

def _headers(no_store):
    return {**CORS, **NO_STORE} if no_store else CORS


_NO_DATA = object()


def ok(data=_NO_DATA, status=200, no_store=False, **extra):
    body = {"success": True}
    if data is not _NO_DATA:
        body["data"] = data
    body.update(extra)
    return {"statusCode": status, "headers": _headers(no_store),
            "body": json.dumps(body, ensure_ascii=False, default=str)}


def err(msg, status=400, no_store=False):
    # Client errors are answered without touching the store
    if status >= 500:
        try:
            from logging_utils import _log_app_event
            _log_app_event("api", "error",
                           status=status, message=str(msg)[:300])
        except Exception as e:
            print(f"[WED] err logging failed: {e}")
    body = {"success": False, "error": msg}
    return {"statusCode": status, "headers": _headers(no_store),
            "body": json.dumps(body, ensure_ascii=False)}


# ── Request helpers ───────────────────────────────────────────────────────────

def get_body(event) -> dict:
    raw = event.get("body") or "{}"
    try:
        if event.get("isBase64Encoded"):
            raw = base64.b64decode(raw).decode("utf-8")
        parsed = json.loads(raw)
    except Exception:
        return {}
    return parsed if isinstance(parsed, dict) else {}


def get_query(event) -> dict:
    return event.get("queryStringParameters") or {}


def get_method(event) -> str:
    http_ctx = (event.get("requestContext") or {}).get("http") or {}
    return (http_ctx.get("method") or event.get("httpMethod", "GET")).upper()


def get_headers(event) -> dict:
    return {k.lower(): v for k, v in (event.get("headers") or {}).items()}


def _get_client_ip(event: dict) -> str:
    http_ctx = (event.get("requestContext") or {}).get("http") or {}
    return http_ctx.get("sourceIp", "unknown")


def to_int(value, default):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def now_ms() -> int:
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def with_version(url: str, version) -> str:
    """Append a v=<version> cache-buster to a URL."""
    sep = "&" if "?" in url else "?"
    return f"{url}{sep}v={version}"


# ── Password hashing (scrypt) ─────────────────────────────────────────────────

def hash_password(password: str, salt: bytes = None) -> str:
    """Hash a password with scrypt + random salt.
    Returns 'scrypt$<hex_salt>$<hex_hash>'."""
    if salt is None:
        salt = secrets.token_bytes(16)
    h = hashlib.scrypt(password.encode(), salt=salt, n=2**14, r=8, p=1, dklen=32)
    return f"scrypt${salt.hex()}${h.hex()}"


def verify_password(password: str, stored: str) -> bool:
    """Verify a password against a stored value.
    Rows created before hashing was introduced hold the plaintext password;
    those are compared directly."""
    if not stored:
        return False
    if stored.startswith("scrypt$"):
        try:
            parts = stored.split("$")
            if len(parts) != 3:
                return False
            salt = bytes.fromhex(parts[1])
            h    = hashlib.scrypt(password.encode(), salt=salt, n=2**14, r=8, p=1, dklen=32)
            return hmac.compare_digest(h.hex(), parts[2])
        except ValueError:
            return False
    return hmac.compare_digest(password.encode(), stored.encode())
