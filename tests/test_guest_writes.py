"""tests/test_guest_writes.py — Public endpoints guests use without logging in."""
import pytest


class TestRsvp:
    def test_guest_count_defaults_to_one(self, api, store):
        status, body, _ = api("POST", "/api/rsvp", body={"page_id": "p1", "name": "Kim", "relation_type": "참석"})
        assert status == 201 and body["success"] is True
        row = store.tables["rsvp_responses"][0]
        assert row["guest_count"] == 1
        assert row["message"] == ""

    def test_explicit_guest_count(self, api, store):
        api("POST", "/api/rsvp", body={"page_id": "p1", "name": "Lee", "relation_type": "참석", "guest_count": "3"})
        assert store.tables["rsvp_responses"][0]["guest_count"] == 3

    @pytest.mark.parametrize("missing", ["page_id", "name", "relation_type"])
    def test_missing_field_writes_nothing(self, api, store, missing):
        body = {"page_id": "p1", "name": "Kim", "relation_type": "참석"}
        body.pop(missing)
        status, resp, _ = api("POST", "/api/rsvp", body=body)
        assert status == 400
        assert resp["success"] is False and "required" in resp["error"]
        assert store.writes == []

    def test_list_only_attending(self, api, store):
        store.seed("rsvp_responses",
                   {"page_id": "p1", "name": "A", "relation_type": "참석", "guest_count": 1},
                   {"page_id": "p1", "name": "B", "relation_type": "불참", "guest_count": 1},
                   {"page_id": "p2", "name": "C", "relation_type": "참석", "guest_count": 1})
        _, body, _ = api("GET", "/api/rsvp", query={"pageId": "p1", "onlyAttending": "true"})
        assert [r["name"] for r in body["data"]] == ["A"]
        _, body, _ = api("GET", "/api/rsvp", query={"pageId": "p1"})
        assert [r["name"] for r in body["data"]] == ["B", "A"]

    def test_wrong_method(self, api, store):
        status, body, _ = api("PUT", "/api/rsvp", body={})
        assert status == 405
        assert body["error"] == "Method not allowed"


class TestComments:
    def _post(self, api, **overrides):
        body = {"page_id": "p1", "author": "Guest", "password": "1234", "content": "축하해요", **overrides}
        return api("POST", "/api/comments", body=body)

    def test_post_without_login(self, api, store):
        status, _, _ = self._post(api)
        assert status == 201
        assert store.tables["comments_framer"][0]["content"] == "축하해요"

    def test_missing_password_writes_nothing(self, api, store):
        status, _, _ = self._post(api, password="")
        assert status == 400
        assert store.writes == []

    def test_list_hides_password_and_counts(self, api, store):
        for i in range(3):
            self._post(api, content=f"c{i}")
        _, body, _ = api("GET", "/api/comments", query={"pageId": "p1", "limit": "2"})
        assert [c["content"] for c in body["data"]] == ["c2", "c1"]
        assert body["count"] == 3
        assert all("password" not in c for c in body["data"])

    def test_list_offset(self, api, store):
        for i in range(3):
            self._post(api, content=f"c{i}")
        _, body, _ = api("GET", "/api/comments", query={"pageId": "p1", "limit": "2", "offset": "2"})
        assert [c["content"] for c in body["data"]] == ["c0"]

    def test_delete_with_password(self, api, store):
        self._post(api)
        cid = store.tables["comments_framer"][0]["id"]
        status, _, _ = api("DELETE", f"/api/comments/{cid}", body={"page_id": "p1", "password": "1234"})
        assert status == 200
        assert store.tables["comments_framer"] == []

    def test_delete_wrong_password(self, api, store):
        self._post(api)
        cid = store.tables["comments_framer"][0]["id"]
        status, body, _ = api("DELETE", "/api/comments", body={"id": cid, "page_id": "p1", "password": "0000"})
        assert status == 403
        assert len(store.tables["comments_framer"]) == 1

    def test_delete_other_page(self, api, store):
        self._post(api)
        cid = store.tables["comments_framer"][0]["id"]
        status, _, _ = api("DELETE", "/api/comments", body={"id": cid, "page_id": "p2", "password": "1234"})
        assert status == 404
