"""lambda/calendar_events.py — Per-page calendar entries (/calendar)."""
from helpers import ok, err, supa, get_method, get_query, to_int
from tokens import require_auth, write_page, owned


def list_events(event):
    qs      = get_query(event)
    page_id = qs.get("pageId")
    if not page_id:
        return err("pageId required", no_store=True)
    limit  = max(1, to_int(qs.get("limit"), 50))
    offset = max(0, to_int(qs.get("offset"), 0))
    q = (supa().table("calendar_events")
         .select("id,page_id,date,title,created_at")
         .eq("page_id", page_id))
    if qs.get("from"):
        q = q.gte("date", qs["from"])
    if qs.get("to"):
        q = q.lte("date", qs["to"])
    resp = q.order("date").range(offset, offset + limit - 1).execute()
    return ok(resp.data or [], no_store=True)


def create_event(claims, body):
    if not body.get("date") or not body.get("title"):
        return err("date/title required")
    page_id = write_page(claims, body.get("page_id"))
    supa().table("calendar_events").insert({
        "page_id": page_id,
        "date":    body["date"],
        "title":   body["title"],
    }).execute()
    return ok(status=201)


def update_event(claims, body):
    if not body.get("id"):
        return err("id required")
    changes = {k: body[k] for k in ("date", "title") if k in body}
    if not changes:
        return err("date or title required")
    q = supa().table("calendar_events").update(changes).eq("id", body["id"])
    if not owned(q, claims).execute().data:
        return err("Event not found", 404)
    return ok()


def delete_event(claims, body):
    if not body.get("id"):
        return err("id required")
    q = supa().table("calendar_events").delete().eq("id", body["id"])
    if not owned(q, claims).execute().data:
        return err("Event not found", 404)
    return ok()


def handle_calendar(event, body, route):
    method = get_method(event)
    if method == "GET":
        return list_events(event)
    if method not in ("POST", "PUT", "DELETE"):
        return err("Method not allowed", 405)
    claims = require_auth(event)
    if method == "POST": return create_event(claims, body)
    if method == "PUT":  return update_event(claims, body)
    return delete_event(claims, body)
