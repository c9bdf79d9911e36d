"""Direct message tests — sending, conversations, read state, search, delete."""

from __future__ import annotations

import uuid

from tests.conftest import make_user


async def _send(client, headers, receiver_id, text="Hello there"):
    return await client.post(
        "/api/shared/messages",
        json={"receiver_id": str(receiver_id), "message": text},
        headers=headers,
    )


# ═════════════════════════════════════════════════════════════════════
# SENDING
# ═════════════════════════════════════════════════════════════════════


class TestSend:
    async def test_send_returns_names(self, client, employee, manager, employee_headers):
        resp = await _send(client, employee_headers, manager["id"], "  Can we talk?  ")

        assert resp.status_code == 201
        body = resp.json()
        assert body["sender_id"] == str(employee["id"])
        assert body["receiver_name"] == manager["full_name"]
        assert body["message"] == "Can we talk?"
        assert body["is_read"] is False

    async def test_unknown_receiver_is_404(self, client, employee_headers):
        resp = await _send(client, employee_headers, uuid.uuid4())

        assert resp.status_code == 404

    async def test_inactive_receiver_is_404(self, client, db, employee_headers):
        gone = await make_user(db, username="former.staff", is_active=False)

        resp = await _send(client, employee_headers, gone["id"])

        assert resp.status_code == 404

    async def test_message_to_self_is_400(self, client, employee, employee_headers):
        resp = await _send(client, employee_headers, employee["id"])

        assert resp.status_code == 400
        assert "receiver_id" in resp.json()["errors"]

    async def test_blank_message_is_400(self, client, manager, employee_headers):
        resp = await _send(client, employee_headers, manager["id"], "")

        assert resp.status_code == 400

    async def test_requires_authentication(self, client, manager):
        resp = await client.post(
            "/api/shared/messages", json={"receiver_id": str(manager["id"]), "message": "hi"},
        )

        assert resp.status_code == 401


# ═════════════════════════════════════════════════════════════════════
# CONVERSATIONS AND READ STATE
# ═════════════════════════════════════════════════════════════════════


class TestConversations:
    async def test_thread_is_oldest_first(
        self, client, employee, manager, employee_headers, manager_headers,
    ):
        await _send(client, employee_headers, manager["id"], "first")
        await _send(client, manager_headers, employee["id"], "second")
        await _send(client, employee_headers, manager["id"], "third")

        resp = await client.get(
            f"/api/shared/messages/conversations/{manager['id']}", headers=employee_headers,
        )

        assert [m["message"] for m in resp.json()["data"]] == ["first", "second", "third"]
        assert resp.json()["meta"]["total"] == 3

    async def test_overview_lists_latest_per_partner(
        self, client, employee, manager, outsider, employee_headers, outsider_headers,
    ):
        await _send(client, employee_headers, manager["id"], "to manager")
        await _send(client, outsider_headers, employee["id"], "from outsider")
        await _send(client, outsider_headers, employee["id"], "again from outsider")

        resp = await client.get("/api/shared/messages/conversations", headers=employee_headers)

        body = resp.json()
        assert [c["user_id"] for c in body] == [str(outsider["id"]), str(manager["id"])]
        assert body[0]["last_message"]["message"] == "again from outsider"
        assert body[0]["unread"] == 2
        assert body[1]["unread"] == 0

    async def test_mark_conversation_read(
        self, client, employee, manager, outsider, employee_headers, manager_headers, outsider_headers,
    ):
        await _send(client, manager_headers, employee["id"], "one")
        await _send(client, manager_headers, employee["id"], "two")
        await _send(client, outsider_headers, employee["id"], "elsewhere")

        resp = await client.put(
            f"/api/shared/messages/conversations/{manager['id']}/read", headers=employee_headers,
        )
        count = await client.get("/api/shared/messages/unread-count", headers=employee_headers)

        assert resp.json()["data"]["count"] == 2
        assert count.json() == {"data": {"count": 1}}

    async def test_sent_messages_are_not_unread_for_sender(
        self, client, manager, employee_headers, manager_headers,
    ):
        await _send(client, employee_headers, manager["id"])

        mine = await client.get("/api/shared/messages/unread-count", headers=employee_headers)
        theirs = await client.get("/api/shared/messages/unread-count", headers=manager_headers)

        assert mine.json()["data"]["count"] == 0
        assert theirs.json()["data"]["count"] == 1


# ═════════════════════════════════════════════════════════════════════
# SINGLE MESSAGE, DELETE AND SEARCH
# ═════════════════════════════════════════════════════════════════════


class TestSingleMessage:
    async def test_participants_can_read(self, client, manager, employee_headers, manager_headers):
        sent = (await _send(client, employee_headers, manager["id"])).json()

        for headers in (employee_headers, manager_headers):
            resp = await client.get(f"/api/shared/messages/{sent['id']}", headers=headers)
            assert resp.status_code == 200

    async def test_third_party_is_403(self, client, manager, employee_headers, outsider_headers):
        sent = (await _send(client, employee_headers, manager["id"])).json()

        resp = await client.get(f"/api/shared/messages/{sent['id']}", headers=outsider_headers)

        assert resp.status_code == 403

    async def test_only_sender_deletes(self, client, manager, employee_headers, manager_headers):
        sent = (await _send(client, employee_headers, manager["id"])).json()

        refused = await client.delete(f"/api/shared/messages/{sent['id']}", headers=manager_headers)
        deleted = await client.delete(f"/api/shared/messages/{sent['id']}", headers=employee_headers)
        missing = await client.get(f"/api/shared/messages/{sent['id']}", headers=employee_headers)

        assert refused.status_code == 403
        assert deleted.status_code == 204
        assert missing.status_code == 404

    async def test_search_is_case_insensitive_and_scoped(
        self, client, employee, manager, outsider, employee_headers, manager_headers, outsider_headers,
    ):
        await _send(client, employee_headers, manager["id"], "Quarterly REPORT attached")
        await _send(client, manager_headers, employee["id"], "Thanks for the report")
        await _send(client, outsider_headers, manager["id"], "Another report")
        await _send(client, employee_headers, manager["id"], "Lunch?")

        resp = await client.get("/api/shared/messages/search?q=report", headers=employee_headers)

        assert sorted(m["message"] for m in resp.json()["data"]) == [
            "Quarterly REPORT attached",
            "Thanks for the report",
        ]

    async def test_search_requires_text(self, client, employee_headers):
        resp = await client.get("/api/shared/messages/search?q=", headers=employee_headers)

        assert resp.status_code == 400
