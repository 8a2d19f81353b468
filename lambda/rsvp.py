"""lambda/rsvp.py — Guest RSVP responses.

Submission is public: guests never log in.
"""
from helpers import ok, err, supa, get_method, get_query, to_int

ATTENDING = "참석"


def list_rsvps(event):
    qs      = get_query(event)
    page_id = qs.get("pageId")
    if not page_id:
        return err("pageId required", no_store=True)
    q = (supa().table("rsvp_responses")
         .select("id,page_id,name,relation_type,guest_count,message,created_at")
         .eq("page_id", page_id))
    if str(qs.get("onlyAttending")).lower() == "true":
        q = q.eq("relation_type", ATTENDING)
    resp = q.order("created_at", desc=True).execute()
    return ok(resp.data or [], no_store=True)


def submit_rsvp(body):
    page_id       = body.get("page_id")
    name          = (body.get("name") or "").strip()
    relation_type = body.get("relation_type")
    if not page_id or not name or not relation_type:
        return err("page_id/name/relation_type required")
    guest_count = body.get("guest_count")
    supa().table("rsvp_responses").insert({
        "page_id":       page_id,
        "name":          name,
        "relation_type": relation_type,
        "guest_count":   1 if guest_count is None else to_int(guest_count, 1),
        "message":       body.get("message") or "",
    }).execute()
    return ok(status=201)


def handle_rsvp(event, body, route):
    method = get_method(event)
    if method == "GET":  return list_rsvps(event)
    if method == "POST": return submit_rsvp(body)
    return err("Method not allowed", 405)
