"""lambda/page_settings.py — Per-page display settings (/page-settings).

Writes are filtered to ALLOWED_SETTING_KEYS and land on the caller's own page
(token pageId); only admins may name another page in the body. GET returns a
default payload for pages that have never been saved, and derives
photo_section_image_public_url with a cache-buster taken from updated_at so a
replaced photo shows immediately.
"""
import re
from datetime import datetime, timedelta, timezone

import helpers
from helpers import ok, err, supa, first_row, get_method, get_query, now_iso, now_ms, with_version
from tokens import require_auth, write_page

ALLOWED_SETTING_KEYS = {
    "wedding_date", "wedding_time",
    "groom_name", "bride_name",
    "venue_name", "venue_address",
    "highlight_shape", "highlight_color", "highlight_text_color",
    # photo section
    "photo_section_image_url", "photo_section_image_path", "photo_section_locale",
    "overlay_text_color", "overlay_text_position",
}

_FRACTION = re.compile(r"\.(\d+)")
_EPOCH    = datetime(1970, 1, 1, tzinfo=timezone.utc)


def default_settings(page_id) -> dict:
    return {"page_id": page_id, **{k: None for k in sorted(ALLOWED_SETTING_KEYS)}}


def _version(updated_at) -> int:
    if not updated_at:
        return now_ms()
    text = str(updated_at).replace("Z", "+00:00")
    # PostgREST trims trailing zeros; fromisoformat on 3.10 wants 3 or 6 digits
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    try:
        ts = datetime.fromisoformat(text)
    except ValueError:
        return now_ms()
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return (ts - _EPOCH) // timedelta(milliseconds=1)


def storage_public_url(path: str) -> str:
    return f"{helpers.SUPABASE_URL}/storage/v1/object/public/{helpers.IMAGES_BUCKET}/{path}"


def with_photo_url(settings: dict) -> dict:
    base = settings.get("photo_section_image_url")
    if not base and settings.get("photo_section_image_path"):
        base = storage_public_url(settings["photo_section_image_path"])
    if base:
        settings = {**settings,
                    "photo_section_image_public_url": with_version(base, _version(settings.get("updated_at")))}
    return settings


def get_settings(event):
    page_id = get_query(event).get("pageId")
    if not page_id:
        return err("pageId required", no_store=True)
    row = first_row(supa().table("page_settings").select("*").eq("page_id", page_id).limit(1).execute())
    return ok(with_photo_url(row) if row else default_settings(page_id), no_store=True)


def save_settings(event, body):
    page_id   = write_page(require_auth(event), body.get("page_id"))
    sanitized = {k: v for k, v in body.items() if k in ALLOWED_SETTING_KEYS}
    payload   = {**sanitized, "page_id": page_id, "updated_at": now_iso()}
    row = first_row(supa().table("page_settings").upsert(payload, on_conflict="page_id").execute())
    return ok(row)


def handle_page_settings(event, body, route):
    method = get_method(event)
    if method == "GET":            return get_settings(event)
    if method in ("PUT", "POST"):  return save_settings(event, body)
    return err("Method not allowed", 405)
