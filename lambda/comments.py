"""lambda/comments.py — Guestbook comments (/comments).

Guests post without logging in; each comment carries a password chosen by its
author, which is required to delete it and never returned by GET.
"""
import hmac

from helpers import ok, err, supa, first_row, get_method, get_query, to_int

_PUBLIC_COLUMNS = "id,page_id,author,content,created_at"


def list_comments(event):
    qs      = get_query(event)
    page_id = qs.get("pageId")
    if not page_id:
        return err("pageId required", no_store=True)
    limit  = max(1, to_int(qs.get("limit"), 50))
    offset = max(0, to_int(qs.get("offset"), 0))
    resp = (supa().table("comments_framer")
            .select(_PUBLIC_COLUMNS, count="exact")
            .eq("page_id", page_id)
            .order("created_at", desc=True)
            .range(offset, offset + limit - 1)
            .execute())
    rows = resp.data or []
    return ok(rows, no_store=True, count=resp.count if resp.count is not None else len(rows))


def post_comment(body):
    fields = {k: body.get(k) for k in ("page_id", "author", "password", "content")}
    if not all(fields.values()):
        return err("page_id/author/password/content required")
    supa().table("comments_framer").insert(fields).execute()
    return ok(status=201)


def delete_comment(body, comment_id):
    comment_id = comment_id or body.get("id")
    page_id    = body.get("page_id")
    password   = str(body.get("password") or "")
    if not comment_id or not page_id or not password:
        return err("id/page_id/password required")
    row = first_row(supa().table("comments_framer")
                    .select("id,password")
                    .eq("id", comment_id)
                    .eq("page_id", page_id)
                    .limit(1)
                    .execute())
    if not row:
        return err("Comment not found", 404)
    if not hmac.compare_digest(str(row.get("password") or "").encode(), password.encode()):
        return err("Password does not match", 403)
    supa().table("comments_framer").delete().eq("id", comment_id).eq("page_id", page_id).execute()
    return ok()


def handle_comments(event, body, route):
    method = get_method(event)
    if method == "GET":    return list_comments(event)
    if method == "POST":   return post_comment(body)
    if method == "DELETE": return delete_comment(body, route.action_or_id)
    return err("Method not allowed", 405)
