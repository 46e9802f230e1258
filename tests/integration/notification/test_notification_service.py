import json
import pytest

import httpx

from src.core.service.notification.notification_service import (
    LoggingNotificationService,
    TelegramNotificationService,
    create_notification_service,
    format_feedback,
)


class TelegramStub:
    """Records Bot API calls and fails for the listed chats"""

    def __init__(self, failing_chats=(), unreachable_chats=()):
        self.failing_chats = set(failing_chats)
        self.unreachable_chats = set(unreachable_chats)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        self.requests.append((request.url.path, payload))
        if payload["chat_id"] in self.unreachable_chats:
            raise httpx.ConnectError("connection refused", request=request)
        if payload["chat_id"] in self.failing_chats:
            return httpx.Response(400, json={"ok": False, "description": "chat not found"})
        return httpx.Response(200, json={"ok": True})


def _service(stub, chat_ids):
    client = httpx.AsyncClient(transport=httpx.MockTransport(stub))
    return TelegramNotificationService("123:abc", chat_ids, client=client)


async def test_app_notification_reaches_every_chat():
    stub = TelegramStub()
    service = _service(stub, ["1", "2"])

    assert await service.send_app_creation_notification("My App", "Does things", 7, 42) is True

    assert {payload["chat_id"] for _, payload in stub.requests} == {"1", "2"}
    path, payload = stub.requests[0]
    assert path == "/bot123:abc/sendMessage"
    assert payload["parse_mode"] == "Markdown"
    assert payload["text"] == (
        "🆕 New App Created!\n\n📱 *My App* (ID: 7)\n\nDoes things\n\n📊 Total Apps: *42*"
    )
    await service.close()


async def test_template_and_registration_messages():
    stub = TelegramStub()
    service = _service(stub, ["1"])

    await service.send_template_creation_notification("Landing", "A page", 3, 9)
    await service.send_user_registration_notification("0xabc", 100)

    assert stub.requests[0][1]["text"] == (
        "🆕 New Template Created!\n\n📋 *Landing* (ID: 3)\n\nA page\n\n📊 Total Templates: *9*"
    )
    assert stub.requests[1][1]["text"] == (
        "👤 New User Registered!\n\n🔑 Address: `0xabc`\n\n📊 Total Users: *100*"
    )
    await service.close()


async def test_partial_failure_still_succeeds():
    stub = TelegramStub(failing_chats={"1"}, unreachable_chats={"2"})
    service = _service(stub, ["1", "2", "3"])

    assert await service.send_feedback_notification("Great hackathon") is True
    await service.close()


async def test_all_chats_failing_returns_false():
    stub = TelegramStub(failing_chats={"1"}, unreachable_chats={"2"})
    service = _service(stub, ["1", "2"])

    assert await service.send_user_registration_notification("0xabc", 1) is False
    await service.close()


async def test_no_chats_configured():
    stub = TelegramStub()
    service = _service(stub, [])

    assert await service.send_feedback_notification("hello") is False
    assert stub.requests == []
    await service.close()


def test_format_feedback_truncates_long_text():
    text = format_feedback("x" * 2500)
    assert "📧 Email: Not provided" in text
    assert text.endswith("x" * 10 + "... (truncated)")
    assert text.count("x") == 2000


def test_format_feedback_with_email():
    assert "📧 Email: dev@example.com" in format_feedback("ok", "dev@example.com")


async def test_logging_service_always_succeeds():
    service = LoggingNotificationService()
    assert await service.send_app_creation_notification("a", "b", 1, 1) is True
    assert await service.send_template_creation_notification("a", "b", 1, 1) is True
    assert await service.send_user_registration_notification("0xabc", 1) is True
    assert await service.send_feedback_notification("feedback", None) is True


def test_factory_falls_back_to_logging(monkeypatch):
    from src.core.service.notification import notification_service
    monkeypatch.setattr(notification_service.settings, "TELEGRAM_BOT_TOKEN", None)
    assert isinstance(create_notification_service(), LoggingNotificationService)


def test_factory_uses_telegram_when_configured(monkeypatch):
    from src.core.service.notification import notification_service
    monkeypatch.setattr(notification_service.settings, "TELEGRAM_BOT_TOKEN", "123:abc")
    monkeypatch.setattr(notification_service.settings, "TELEGRAM_CHAT_IDS", "1, 2")

    service = create_notification_service()
    assert isinstance(service, TelegramNotificationService)
    assert service.chat_ids == ["1", "2"]
