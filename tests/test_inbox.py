"""메시지함 API 테스트 — 보호자 문의 수신, 발송 실패 보관, 답장, 일괄 처리, 통계."""

from httpx import AsyncClient

from app.config import settings
from app.services import inbox_service as inbox_module
from tests.conftest import auth_header

INBOX = "/api/v1/admin/inbox"
MY_MESSAGES = "/api/v1/app/my/messages"


def _configure_smtp(monkeypatch) -> list[tuple]:
    """SMTP 설정 후 발송 내역을 리스트에 기록."""
    sent: list[tuple] = []

    async def fake_send_email(to, subject, html, text=None, reply_to=None):
        sent.append((to, subject, reply_to))

    monkeypatch.setattr(settings, "SMTP_HOST", "smtp.test.com")
    monkeypatch.setattr(settings, "SMTP_FROM_EMAIL", "no-reply@test.com")
    monkeypatch.setattr(inbox_module, "send_email", fake_send_email)
    return sent


async def _parent_message(client: AsyncClient, parent_token: str) -> dict:
    res = await client.post(MY_MESSAGES, json={
        "subject": "Costume sizes", "body": "Which size should we order?", "message_type": "inquiry",
    }, headers=auth_header(parent_token))
    assert res.status_code == 201
    return res.json()


class TestInbox:
    """메시지함 테스트."""

    async def test_parent_message_reaches_inbox(self, client: AsyncClient, admin_token, parent_token):
        sent = await _parent_message(client, parent_token)
        assert sent["direction"] == "inbound"
        assert sent["status"] == "new"

        res = await client.get(INBOX, headers=auth_header(admin_token))
        assert res.status_code == 200
        assert [m["id"] for m in res.json()["items"]] == [sent["id"]]

        # 처음 열면 읽음 처리
        detail = await client.get(f"{INBOX}/{sent['id']}", headers=auth_header(admin_token))
        assert detail.json()["status"] == "read"
        assert detail.json()["read_at"] is not None

    async def test_send_without_smtp_archives_message(self, client: AsyncClient, admin_token, monkeypatch):
        monkeypatch.setattr(settings, "SMTP_FROM_EMAIL", "")
        res = await client.post(f"{INBOX}/send", json={
            "subject": "Schedule change", "body": "Class moves to 5pm.", "recipients": ["mom@test.com"],
        }, headers=auth_header(admin_token))
        assert res.status_code == 500
        message_id = res.json()["detail"]["message_id"]

        archived = await client.get(INBOX, params={"status": "archived"}, headers=auth_header(admin_token))
        assert [m["id"] for m in archived.json()["items"]] == [message_id]

    async def test_send_requires_recipients(self, client: AsyncClient, admin_token):
        res = await client.post(f"{INBOX}/send", json={
            "subject": "Hello", "body": "Body", "recipients": ["  "],
        }, headers=auth_header(admin_token))
        assert res.status_code == 400

    async def test_send_delivers_to_each_recipient(self, client: AsyncClient, admin_token, monkeypatch):
        sent = _configure_smtp(monkeypatch)
        res = await client.post(f"{INBOX}/send", json={
            "subject": "Recital", "body": "Tickets are on sale.", "recipients": ["A@test.com", "b@test.com"],
        }, headers=auth_header(admin_token))
        assert res.status_code == 201
        assert res.json()["recipients"] == ["a@test.com", "b@test.com"]
        assert [s[0] for s in sent] == ["a@test.com", "b@test.com"]
        assert sent[0][1] == "[Test Studio] Recital"

    async def test_reply_marks_original_in_progress(
        self, client: AsyncClient, admin_token, parent_token, monkeypatch
    ):
        sent = _configure_smtp(monkeypatch)
        original = await _parent_message(client, parent_token)

        res = await client.post(f"{INBOX}/{original['id']}/reply", json={
            "body": "Please order a child medium.",
        }, headers=auth_header(admin_token))
        assert res.status_code == 201
        assert res.json()["subject"] == "Re: Costume sizes"
        assert sent[0][0] == "parent@test.com"

        detail = await client.get(f"{INBOX}/{original['id']}", headers=auth_header(admin_token))
        assert detail.json()["status"] == "in_progress"
        assert len(detail.json()["thread"]) == 2

        # 보호자 화면에서 스레드로 확인
        mine = await client.get(MY_MESSAGES, headers=auth_header(parent_token))
        assert [m["direction"] for m in mine.json()[0]["messages"]] == ["inbound", "outbound"]

    async def test_bulk_assign_is_admin_only(self, client: AsyncClient, staff_token, admin_user, parent_token):
        original = await _parent_message(client, parent_token)
        res = await client.post(f"{INBOX}/bulk-action", json={
            "message_ids": [original["id"]], "action": "assign", "assigned_to": str(admin_user.id),
        }, headers=auth_header(staff_token))
        assert res.status_code == 403

    async def test_bulk_star_and_stats(self, client: AsyncClient, admin_token, parent_token):
        first = await _parent_message(client, parent_token)
        await _parent_message(client, parent_token)

        res = await client.post(f"{INBOX}/bulk-action", json={
            "message_ids": [first["id"]], "action": "star",
        }, headers=auth_header(admin_token))
        assert res.json() == {"updated": 1}

        starred = await client.get(INBOX, params={"is_starred": True}, headers=auth_header(admin_token))
        assert starred.json()["total"] == 1

        stats = await client.get(f"{INBOX}/stats", headers=auth_header(admin_token))
        data = stats.json()
        assert data["total"] == 2
        assert data["unread"] == 2
        assert data["by_type"]["inquiry"] == 2
        assert data["requires_action"] == 2
        assert data["avg_response_time_hours"] is None

    async def test_parent_cannot_open_admin_inbox(self, client: AsyncClient, parent_token):
        res = await client.get(INBOX, headers=auth_header(parent_token))
        assert res.status_code == 403
