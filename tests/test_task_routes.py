"""Integration tests for /api/tasks/* via TestClient.

Covers:
- Every task route requires a bearer token
- Create / list / update / delete round trip with camelCase payloads
- Append positions per day, and the gap a delete leaves behind
- PUT /api/tasks/reorder applies exactly what was sent, skipping foreign ids
- POST /api/tasks/normalize repairs gaps and duplicates
- Foreign task ids behave exactly like unknown ones (404)
- Malformed bodies -> 400 validation_error
"""

from __future__ import annotations

import pytest


def _create(client, headers, title: str, day: int, description: str | None = None) -> dict:
    body = {"title": title, "day": day}
    if description is not None:
        body["description"] = description
    resp = client.post("/api/tasks", json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["task"]


def _board(client, headers) -> list[tuple[str, int, int]]:
    return [(t["title"], t["day"], t["position"]) for t in client.get("/api/tasks", headers=headers).json()["tasks"]]


class TestAuthRequired:
    @pytest.mark.parametrize(
        "method, path",
        [
            ("GET", "/api/tasks"),
            ("POST", "/api/tasks"),
            ("PUT", "/api/tasks/reorder"),
            ("POST", "/api/tasks/normalize"),
            ("PUT", "/api/tasks/some-id"),
            ("DELETE", "/api/tasks/some-id"),
        ],
    )
    def test_no_token_is_401(self, api_client, method: str, path: str) -> None:
        resp = api_client.request(method, path, json={})
        assert resp.status_code == 401
        assert resp.json()["code"] == "unauthorized"


class TestCrud:
    def test_buy_milk_round_trip(self, api_client, register_user) -> None:
        account = register_user()
        headers = account["headers"]

        task = _create(api_client, headers, "Buy milk", day=2)
        assert task["title"] == "Buy milk"
        assert task["description"] == ""
        assert task["day"] == 2
        assert task["position"] == 0
        assert task["ownerId"] == account["user"]["id"]
        assert task["createdAt"]

        listed = api_client.get("/api/tasks", headers=headers).json()["tasks"]
        assert listed == [task]

        resp = api_client.put(f"/api/tasks/{task['id']}", json={"description": "oat"}, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["task"]["description"] == "oat"
        assert resp.json()["task"]["title"] == "Buy milk"

        assert api_client.delete(f"/api/tasks/{task['id']}", headers=headers).status_code == 204
        assert api_client.get("/api/tasks", headers=headers).json()["tasks"] == []

    def test_positions_append_per_day(self, api_client, register_user) -> None:
        headers = register_user()["headers"]
        assert _create(api_client, headers, "a", 0)["position"] == 0
        assert _create(api_client, headers, "b", 0)["position"] == 1
        assert _create(api_client, headers, "c", 4)["position"] == 0

    def test_list_is_ordered_by_day_then_position(self, api_client, register_user) -> None:
        headers = register_user()["headers"]
        _create(api_client, headers, "sun", 6)
        _create(api_client, headers, "mon-1", 0)
        _create(api_client, headers, "mon-2", 0)
        assert _board(api_client, headers) == [("mon-1", 0, 0), ("mon-2", 0, 1), ("sun", 6, 0)]

    def test_delete_leaves_gap(self, api_client, register_user) -> None:
        headers = register_user()["headers"]
        first = _create(api_client, headers, "first", 1)
        _create(api_client, headers, "second", 1)
        api_client.delete(f"/api/tasks/{first['id']}", headers=headers)
        assert _board(api_client, headers) == [("second", 1, 1)]

    def test_title_is_trimmed(self, api_client, register_user) -> None:
        headers = register_user()["headers"]
        assert _create(api_client, headers, "   padded  ", 3)["title"] == "padded"

    def test_update_ignores_blank_title_and_out_of_range_day(self, api_client, register_user) -> None:
        headers = register_user()["headers"]
        task = _create(api_client, headers, "keep", 3)
        resp = api_client.put(f"/api/tasks/{task['id']}", json={"title": "  ", "day": 9}, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["task"]["title"] == "keep"
        assert resp.json()["task"]["day"] == 3

    def test_update_moves_day_and_position(self, api_client, register_user) -> None:
        headers = register_user()["headers"]
        task = _create(api_client, headers, "t", 0)
        resp = api_client.put(f"/api/tasks/{task['id']}", json={"day": 5, "position": 2}, headers=headers)
        assert (resp.json()["task"]["day"], resp.json()["task"]["position"]) == (5, 2)


class TestValidation:
    @pytest.mark.parametrize(
        "body",
        [
            {"day": 1},
            {"title": "", "day": 1},
            {"title": "   ", "day": 1},
            {"title": "x"},
            {"title": "x", "day": "monday"},
        ],
    )
    def test_bad_create_body_is_400(self, api_client, register_user, body: dict) -> None:
        headers = register_user()["headers"]
        resp = api_client.post("/api/tasks", json=body, headers=headers)
        assert resp.status_code == 400
        assert resp.json()["code"] == "validation_error"

    @pytest.mark.parametrize("day", [-1, 7])
    def test_out_of_range_day_on_create_is_400(self, api_client, register_user, day: int) -> None:
        headers = register_user()["headers"]
        resp = api_client.post("/api/tasks", json={"title": "x", "day": day}, headers=headers)
        assert resp.status_code == 400
        assert api_client.get("/api/tasks", headers=headers).json()["tasks"] == []

    @pytest.mark.parametrize("body", [{}, {"tasks": "nope"}, {"tasks": [{"day": 1, "position": 0}]}])
    def test_malformed_reorder_body_is_400(self, api_client, register_user, body: dict) -> None:
        headers = register_user()["headers"]
        resp = api_client.put("/api/tasks/reorder", json=body, headers=headers)
        assert resp.status_code == 400


class TestOwnership:
    def test_foreign_task_is_not_found(self, api_client, register_user) -> None:
        owner = register_user()["headers"]
        intruder = register_user()["headers"]
        task = _create(api_client, owner, "private", 0)

        put = api_client.put(f"/api/tasks/{task['id']}", json={"title": "mine now"}, headers=intruder)
        delete = api_client.delete(f"/api/tasks/{task['id']}", headers=intruder)
        missing = api_client.delete("/api/tasks/does-not-exist", headers=intruder)

        assert put.status_code == delete.status_code == missing.status_code == 404
        assert delete.json() == missing.json()
        assert _board(api_client, owner) == [("private", 0, 0)]

    def test_list_shows_only_own_tasks(self, api_client, register_user) -> None:
        alice = register_user()["headers"]
        bob = register_user()["headers"]
        _create(api_client, alice, "alice's", 0)
        assert api_client.get("/api/tasks", headers=bob).json()["tasks"] == []


class TestReorder:
    def test_batch_is_applied_as_sent(self, api_client, register_user) -> None:
        headers = register_user()["headers"]
        a = _create(api_client, headers, "a", 0)
        b = _create(api_client, headers, "b", 0)
        c = _create(api_client, headers, "c", 0)

        batch = {
            "tasks": [
                {"id": c["id"], "day": 0, "position": 0},
                {"id": a["id"], "day": 0, "position": 1},
                {"id": b["id"], "day": 0, "position": 2},
            ]
        }
        resp = api_client.put("/api/tasks/reorder", json=batch, headers=headers)
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "updated": 3}
        assert _board(api_client, headers) == [("c", 0, 0), ("a", 0, 1), ("b", 0, 2)]

    def test_cross_day_move_does_not_renumber_source_day(self, api_client, register_user) -> None:
        headers = register_user()["headers"]
        a = _create(api_client, headers, "a", 0)
        _create(api_client, headers, "b", 0)

        batch = {"tasks": [{"id": a["id"], "day": 3, "position": 0}]}
        assert api_client.put("/api/tasks/reorder", json=batch, headers=headers).status_code == 200
        assert _board(api_client, headers) == [("b", 0, 1), ("a", 3, 0)]

    def test_foreign_ids_in_batch_are_skipped(self, api_client, register_user) -> None:
        alice = register_user()["headers"]
        bob = register_user()["headers"]
        mine = _create(api_client, alice, "mine", 0)
        theirs = _create(api_client, bob, "theirs", 0)

        batch = {
            "tasks": [
                {"id": theirs["id"], "day": 6, "position": 4},
                {"id": mine["id"], "day": 1, "position": 0},
            ]
        }
        resp = api_client.put("/api/tasks/reorder", json=batch, headers=alice)
        assert resp.status_code == 200
        assert resp.json()["updated"] == 1
        assert _board(api_client, bob) == [("theirs", 0, 0)]
        assert _board(api_client, alice) == [("mine", 1, 0)]

    def test_empty_batch_succeeds(self, api_client, register_user) -> None:
        headers = register_user()["headers"]
        resp = api_client.put("/api/tasks/reorder", json={"tasks": []}, headers=headers)
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "updated": 0}


class TestNormalize:
    def test_normalize_closes_gap_left_by_delete(self, api_client, register_user) -> None:
        headers = register_user()["headers"]
        first = _create(api_client, headers, "first", 2)
        _create(api_client, headers, "second", 2)
        _create(api_client, headers, "third", 2)
        api_client.delete(f"/api/tasks/{first['id']}", headers=headers)

        resp = api_client.post("/api/tasks/normalize", headers=headers)
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "updated": 2}
        assert _board(api_client, headers) == [("second", 2, 0), ("third", 2, 1)]

    def test_normalize_clean_board(self, api_client, register_user) -> None:
        headers = register_user()["headers"]
        _create(api_client, headers, "only", 5)
        assert api_client.post("/api/tasks/normalize", headers=headers).json()["updated"] == 0


def test_unknown_route_uses_error_envelope(api_client) -> None:
    resp = api_client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.json()["code"] == "http_404"
