"""lambda/contacts.py — Family contact cards shown on the invitation (/contacts)."""
from helpers import ok, err, supa, get_method, get_query, to_int
from tokens import require_auth, write_page, owned

_EDITABLE = ("name", "phone", "relation")


def list_contacts(event):
    qs      = get_query(event)
    page_id = qs.get("pageId")
    if not page_id:
        return err("pageId required", no_store=True)
    limit  = max(1, to_int(qs.get("limit"), 100))
    offset = max(0, to_int(qs.get("offset"), 0))
    resp = (supa().table("wedding_contacts")
            .select("id,page_id,name,phone,relation,created_at")
            .eq("page_id", page_id)
            .order("created_at", desc=True)
            .range(offset, offset + limit - 1)
            .execute())
    return ok(resp.data or [], no_store=True)


def create_contact(claims, body):
    if not body.get("name"):
        return err("name required")
    page_id = write_page(claims, body.get("page_id"))
    supa().table("wedding_contacts").insert({
        "page_id":  page_id,
        "name":     body["name"],
        "phone":    body.get("phone"),
        "relation": body.get("relation"),
    }).execute()
    return ok(status=201)


def update_contact(claims, body, contact_id):
    contact_id = contact_id or body.get("id")
    if not contact_id:
        return err("id required")
    changes = {k: body[k] for k in _EDITABLE if k in body}
    if not changes:
        return err("nothing to update")
    q = supa().table("wedding_contacts").update(changes).eq("id", contact_id)
    if not owned(q, claims).execute().data:
        return err("Contact not found", 404)
    return ok()


def delete_contact(claims, body, contact_id):
    contact_id = contact_id or body.get("id")
    if not contact_id:
        return err("id required")
    q = supa().table("wedding_contacts").delete().eq("id", contact_id)
    if not owned(q, claims).execute().data:
        return err("Contact not found", 404)
    return ok()


def handle_contacts(event, body, route):
    method = get_method(event)
    if method == "GET":
        return list_contacts(event)
    if method not in ("POST", "PUT", "DELETE"):
        return err("Method not allowed", 405)
    claims = require_auth(event)
    if method == "POST": return create_contact(claims, body)
    if method == "PUT":  return update_contact(claims, body, route.action_or_id)
    return delete_contact(claims, body, route.action_or_id)
