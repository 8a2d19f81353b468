"""lambda/images.py — Gallery images: listing, uploads, ordering, deletion.

Files live in the Supabase Storage bucket IMAGES_BUCKET under
<pageId>/<ms>_<random>.<ext>; metadata rows live in the images table.

Routes:
  GET    /images/getAllPages
  GET    /images/byPage?pageId=...          (also ?action=getByPageId)
  POST   /images?action=getPresignedUrl     { fileName, pageId? }
  POST   /images?action=saveMeta            { pageId?, fileName, storagePath, displayOrder?, fileSize? }
  POST   /images?action=upload              { pageId?, fileData, originalName, fileSize?, displayOrder? }
  POST   /images                            { page_id?, public_url, display_order? }
  PUT    /images/order                      { updates: [{id, display_order}] }
  PUT    /images/updateAllOrders            { pageId?, imageOrders: [{id, order}] }
  DELETE /images[/{id}]                     { imageId?, fileName?, storageOnly? }

Writes land on the token's pageId; pageId/page_id in the body is honoured for
admins only. Updates and deletes by id never reach another page's rows.
"""
import base64
import binascii
import re
import secrets
from collections import Counter

import helpers
from helpers import ok, err, supa, first_row, get_method, get_query, now_ms, with_version
from router import effective_action
from tokens import require_auth, write_page, owned, is_admin

_DATA_URL = re.compile(r"^data:([A-Za-z0-9+/.-]+);base64,(.+)$", re.S)
_FALLBACK_ORDER = 9999


def _bucket():
    return supa().storage.from_(helpers.IMAGES_BUCKET)


def _unique_path(page_id, ext) -> str:
    return f"{page_id}/{now_ms()}_{secrets.token_hex(6)}.{ext}"


def _extension(file_name: str) -> str:
    ext = file_name.rsplit(".", 1)[-1].lower() if "." in file_name else ""
    return ext or "jpg"


# ── Reads ─────────────────────────────────────────────────────────────────────

def list_pages(event):
    rows = supa().table("images").select("page_id").execute().data or []
    counts = Counter(r.get("page_id") for r in rows)
    pages = [{"page_id": pid, "image_count": n} for pid, n in counts.items()]
    return ok(pages, no_store=True)


def list_by_page(event, page_id):
    rows = (supa().table("images")
            .select("*")
            .eq("page_id", page_id)
            .order("display_order")
            .execute()).data or []
    # One version per response so a replaced file is never served from cache
    version = now_ms()
    versioned = [
        {**row, "public_url": with_version(row["public_url"], version)} if row.get("public_url") else row
        for row in rows
    ]
    return ok(versioned, no_store=True)


# ── Uploads ───────────────────────────────────────────────────────────────────

def _own_path(claims, page_id, path) -> bool:
    # Object keys start with the page id; non-admins may only name their own
    return is_admin(claims) or str(path).startswith(f"{page_id}/")


def presign_upload(claims, body):
    file_name = body.get("fileName")
    if not file_name:
        return err("fileName required")
    page_id = write_page(claims, body.get("pageId"))
    path    = _unique_path(page_id, _extension(file_name))
    signed  = _bucket().create_signed_upload_url(path)
    return ok(signedUrl=signed.get("signed_url") or signed.get("signedUrl"),
              token=signed.get("token"),
              path=path,
              originalName=file_name)


def save_meta(claims, body):
    file_name    = body.get("fileName")
    storage_path = body.get("storagePath")
    if not file_name or not storage_path:
        return err("fileName/storagePath required")
    page_id = write_page(claims, body.get("pageId"))
    if not _own_path(claims, page_id, storage_path):
        return err("Forbidden", 403)
    row = first_row(supa().table("images").insert({
        "page_id":       page_id,
        "filename":      storage_path,
        "original_name": file_name,
        "file_size":     body.get("fileSize") or 0,
        "mime_type":     "image/jpeg",
        "public_url":    _bucket().get_public_url(storage_path),
        "display_order": body.get("displayOrder"),
    }).execute())
    return ok(row)


def upload_base64(claims, body):
    """Direct upload fallback for clients that cannot PUT to a signed URL."""
    match = _DATA_URL.match(body.get("fileData") or "")
    if not match:
        return err("Invalid file data format")
    mime_type = match.group(1)
    try:
        content = base64.b64decode(match.group(2))
    except (binascii.Error, ValueError):
        return err("Invalid file data format")
    page_id = write_page(claims, body.get("pageId"))

    path = _unique_path(page_id, "jpg")
    _bucket().upload(path, content, {"content-type": mime_type, "cache-control": "3600"})
    supa().table("images").insert({
        "page_id":       page_id,
        "filename":      path,
        "original_name": body.get("originalName"),
        "file_size":     body.get("fileSize") or len(content),
        "mime_type":     mime_type,
        "public_url":    _bucket().get_public_url(path),
        "display_order": body.get("displayOrder"),
    }).execute()
    return ok(status=201, path=path)


def insert_url(claims, body):
    public_url = body.get("public_url")
    if not public_url:
        return err("public_url required")
    page_id = write_page(claims, body.get("page_id"))
    row = first_row(supa().table("images").insert({
        "page_id":       page_id,
        "public_url":    public_url,
        "display_order": body.get("display_order", _FALLBACK_ORDER),
    }).execute()) or {}
    return ok(status=201, id=row.get("id"))


# ── Ordering ──────────────────────────────────────────────────────────────────

def _set_orders(claims, pairs, page_id=None):
    """Apply (id, order) pairs one row at a time; returns the failure count."""
    failed = 0
    for image_id, order in pairs:
        q = supa().table("images").update({"display_order": order}).eq("id", image_id)
        # Scoped by page so ids from another page are never touched
        q = q.eq("page_id", page_id) if page_id else owned(q, claims)
        try:
            q.execute()
        except Exception as e:
            print(f"[WED] image order update failed id={image_id}: {e}")
            failed += 1
    return failed


def update_orders(claims, body):
    updates = body.get("updates")
    orders  = body.get("imageOrders")

    if isinstance(updates, list):
        if any(not isinstance(u, dict) or not u.get("id") for u in updates):
            return err("every update needs an id")
        pairs = [(u["id"], u.get("display_order")) for u in updates]
        page_id = None
    elif isinstance(orders, list):
        if any(not isinstance(o, dict) or not o.get("id") for o in orders):
            return err("every imageOrders entry needs an id")
        pairs = [(o["id"], o.get("order")) for o in orders]
        page_id = write_page(claims, body.get("pageId"))
    else:
        return err("updates[] or imageOrders[] required")

    failed = _set_orders(claims, pairs, page_id)
    if failed:
        return err(f"{failed} updates failed", 500)
    return ok()


# ── Deletion ──────────────────────────────────────────────────────────────────

def delete_image(claims, body, image_id):
    file_name = body.get("fileName")
    row_id    = image_id or body.get("imageId") or body.get("id")
    if not file_name and not row_id:
        return err("fileName or id required")

    if file_name:
        page_id = claims.get("pageId") if is_admin(claims) else write_page(claims)
        if not _own_path(claims, page_id, file_name):
            return err("Forbidden", 403)
        _bucket().remove([file_name])
        if row_id and not body.get("storageOnly"):
            owned(supa().table("images").delete().eq("id", row_id), claims).execute()
        return ok()

    if not owned(supa().table("images").delete().eq("id", row_id), claims).execute().data:
        return err("Image not found", 404)
    return ok()


# ── Entry ─────────────────────────────────────────────────────────────────────

def handle_images(event, body, route):
    method = get_method(event)
    act    = effective_action(event, body, route.action_or_id)

    if method == "GET":
        page_id = get_query(event).get("pageId")
        if act == "getAllPages":
            return list_pages(event)
        if act in ("getByPageId", "byPage") and page_id:
            return list_by_page(event, page_id)
        return err("Invalid query parameters", no_store=True)

    claims = require_auth(event)

    if method == "POST":
        if act == "getPresignedUrl": return presign_upload(claims, body)
        if act == "saveMeta":        return save_meta(claims, body)
        if act == "upload":          return upload_base64(claims, body)
        return insert_url(claims, body)

    if method == "PUT":
        if act in ("order", "updateAllOrders"):
            return update_orders(claims, body)
        return err("Method not allowed", 405)

    if method == "DELETE":
        # A path segment on DELETE is the row id, never an action name
        return delete_image(claims, body, route.action_or_id)

    return err("Method not allowed", 405)
