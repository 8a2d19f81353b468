"""lambda/transport.py — Directions / transport notes per page (/transport)."""
from helpers import ok, err, supa, get_method, get_query
from tokens import require_auth, write_page


def list_transport(event):
    page_id = get_query(event).get("pageId")
    if not page_id:
        return err("pageId required", no_store=True)
    resp = (supa().table("transport_infos")
            .select("id,page_id,label,detail,display_order,created_at")
            .eq("page_id", page_id)
            .order("display_order")
            .execute())
    return ok(resp.data or [], no_store=True)


def save_transport(event, body):
    claims = require_auth(event)
    items  = body.get("items")
    if not isinstance(items, list) or any(not isinstance(it, dict) for it in items):
        return err("items[] required")
    page_id = write_page(claims, body.get("page_id"))

    existing, new = [], []
    for it in items:
        row = {
            "page_id":       page_id,
            "label":         it.get("label"),
            "detail":        it.get("detail"),
            "display_order": it.get("display_order"),
        }
        if it.get("id"):
            existing.append({"id": it["id"], **row})
        else:
            new.append(row)

    if existing:
        # Every id must already belong to this page before the upsert by id
        mine = (supa().table("transport_infos")
                .select("id")
                .eq("page_id", page_id)
                .execute()).data or []
        mine_ids = {str(r["id"]) for r in mine}
        if any(str(r["id"]) not in mine_ids for r in existing):
            return err("Forbidden", 403)

    # Bulk writes need identical keys on every row, so split on id
    if existing:
        supa().table("transport_infos").upsert(existing).execute()
    if new:
        supa().table("transport_infos").insert(new).execute()
    return ok()


def handle_transport(event, body, route):
    method = get_method(event)
    if method == "GET":           return list_transport(event)
    if method in ("PUT", "POST"): return save_transport(event, body)
    return err("Method not allowed", 405)
