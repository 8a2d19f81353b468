"""lambda/invite.py — Invitation card text and family names (/invite)."""
from helpers import ok, err, supa, first_row, get_method, get_query, now_iso
from tokens import require_auth, write_page

DEFAULT_INVITATION_TEXT = (
    "저희 두 사람이 하나 되는 약속의 시간에\n"
    "마음을 담아 소중한 분들을 모십니다.\n"
    "\n"
    "귀한 걸음으로 축복해 주시면 감사하겠습니다."
)

ALLOWED_INVITE_KEYS = {
    "invitation_text",
    "groom_father_name", "groom_mother_name", "groom_name",
    "bride_father_name", "bride_mother_name", "bride_name",
    "show_groom_father_chrysanthemum", "show_groom_mother_chrysanthemum",
    "show_bride_father_chrysanthemum", "show_bride_mother_chrysanthemum",
    "son_label", "daughter_label",
}


def default_invite(page_id) -> dict:
    return {
        "page_id":           page_id,
        "invitation_text":   DEFAULT_INVITATION_TEXT,
        "groom_father_name": "",
        "groom_mother_name": "",
        "groom_name":        "",
        "bride_father_name": "",
        "bride_mother_name": "",
        "bride_name":        "",
        "show_groom_father_chrysanthemum": False,
        "show_groom_mother_chrysanthemum": False,
        "show_bride_father_chrysanthemum": False,
        "show_bride_mother_chrysanthemum": False,
        "son_label":         "아들",
        "daughter_label":    "딸",
    }


def get_invite(event):
    page_id = get_query(event).get("pageId")
    if not page_id:
        return err("pageId is required", no_store=True)
    row = first_row(supa().table("invite_cards").select("*").eq("page_id", page_id).limit(1).execute())
    return ok(row or default_invite(page_id), no_store=True)


def save_invite(event, body):
    page_id = write_page(require_auth(event), body.get("page_id"))
    incoming = body.get("invite") if isinstance(body.get("invite"), dict) else body
    sanitized = {k: v for k, v in incoming.items() if k in ALLOWED_INVITE_KEYS}
    payload   = {**sanitized, "page_id": page_id, "updated_at": now_iso()}
    row = first_row(supa().table("invite_cards").upsert(payload, on_conflict="page_id").execute())
    return ok(row)


def handle_invite(event, body, route):
    method = get_method(event)
    if method == "GET":           return get_invite(event)
    if method in ("POST", "PUT"): return save_invite(event, body)
    return err("Method not allowed", 405)
