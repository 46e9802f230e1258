import json
import pytest

from httpx import ASGITransport, AsyncClient
from openai import OpenAIError

from src.core.dependencies import get_ai_content_service
from src.infra.repository.template_repository import TemplateRepository
from tests.helpers import auth_headers, completion, sign

SCHEMA = json.dumps({
    "type": "object",
    "properties": {"title": {"type": "string"}},
    "required": ["title"]
})


@pytest.fixture
async def user(wallet, register):
    await register(wallet)
    return wallet


@pytest.fixture
async def template(session_factory, user):
    async with session_factory() as session:
        return await TemplateRepository(session).create(
            title="Landing page",
            description=None,
            url="https://example.com",
            json_data=SCHEMA,
            owner_address=user.address
        )


async def _challenge(client, account):
    response = await client.get("/api/ai/challenge", headers=auth_headers(account))
    assert response.status_code == 200
    return response.json()["challenge"]


async def _prompt(client, account, template_id, challenge, signature=None):
    return await client.post(
        "/api/ai/process-prompt",
        json={
            "prompt": "A landing page for a bakery",
            "templateId": template_id,
            "challenge": challenge,
            "signature": signature or sign(account, challenge)
        },
        headers=auth_headers(account)
    )


async def test_get_challenge(client, user):
    response = await client.get("/api/ai/challenge", headers=auth_headers(user))

    assert response.status_code == 200
    body = response.json()
    assert len(body["challenge"]) == 36
    assert body["remaining_attempts"] == 10
    assert body["max_attempts"] == 10
    assert body["reset_date"].endswith("T00:00:00Z")


async def test_get_challenge_requires_wallet_header(client):
    response = await client.get("/api/ai/challenge")

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


async def test_get_challenge_for_unregistered_wallet(client, wallet):
    response = await client.get("/api/ai/challenge", headers=auth_headers(wallet))

    assert response.status_code == 404
    assert response.json()["error"]["message"] == "User not found"


async def test_verify_challenge(client, user):
    challenge = await _challenge(client, user)

    response = await client.post("/api/ai/verify-challenge", json={
        "address": user.address,
        "challenge": challenge,
        "signature": sign(user, challenge)
    })

    assert response.status_code == 200
    assert response.json() == {"success": True, "remaining_attempts": 9, "max_attempts": 10, "reason": None}

    remaining = await client.get("/api/ai/remaining-requests", headers=auth_headers(user))
    assert remaining.json()["remaining_attempts"] == 9


async def test_verify_challenge_with_foreign_signature(client, user, other_wallet):
    challenge = await _challenge(client, user)

    response = await client.post("/api/ai/verify-challenge", json={
        "address": user.address,
        "challenge": challenge,
        "signature": sign(other_wallet, challenge)
    })

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert body["reason"] == "invalid_signature"
    assert body["remaining_attempts"] == 10


async def test_remaining_requests(client, user):
    response = await client.get("/api/ai/remaining-requests", headers=auth_headers(user))

    assert response.status_code == 200
    assert response.json()["remaining_attempts"] == 10
    assert response.json()["max_attempts"] == 10


async def test_process_prompt(client, user, template, openai_client):
    challenge = await _challenge(client, user)

    response = await _prompt(client, user, template.id, challenge)

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "data": {"result": {"title": "Generated"}, "requiredValidation": False},
        "remaining_attempts": 9,
        "max_attempts": 10
    }
    messages = openai_client.chat.completions.create.call_args.kwargs["messages"]
    assert messages[-1] == {"role": "user", "content": "A landing page for a bakery"}
    assert '"required": [' in messages[0]["content"]


async def test_process_prompt_with_unusable_reply(client, user, template, openai_client):
    openai_client.chat.completions.create.return_value = completion("Sorry, I cannot help with that.")
    challenge = await _challenge(client, user)

    response = await _prompt(client, user, template.id, challenge)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["requiredValidation"] is True
    assert data["result"]["rawText"] == "Sorry, I cannot help with that."
    assert data["result"]["message"] == "AI response could not be parsed as valid JSON."
    assert data["result"]["validationErrors"] == []


async def test_process_prompt_with_non_conforming_reply(client, user, template, openai_client):
    openai_client.chat.completions.create.return_value = completion('{"heading": "x"}')
    challenge = await _challenge(client, user)

    response = await _prompt(client, user, template.id, challenge)

    data = response.json()["data"]
    assert data["requiredValidation"] is True
    assert data["result"]["validationErrors"] == ["'title' is a required property"]


async def test_process_prompt_rejected_by_gate(client, user, template, other_wallet, openai_client):
    challenge = await _challenge(client, user)

    response = await _prompt(client, user, template.id, challenge, signature=sign(other_wallet, challenge))

    assert response.status_code == 403
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "FORBIDDEN"
    assert body["error"]["details"] == {"reason": "invalid_signature"}
    assert body["remaining_attempts"] == 10
    assert body["max_attempts"] == 10
    openai_client.chat.completions.create.assert_not_awaited()


async def test_process_prompt_replayed_challenge(client, user, template):
    challenge = await _challenge(client, user)
    assert (await _prompt(client, user, template.id, challenge)).status_code == 200

    replay = await _prompt(client, user, template.id, challenge)

    assert replay.status_code == 403
    assert replay.json()["error"]["details"] == {"reason": "invalid_challenge"}


async def test_process_prompt_unknown_template_keeps_challenge(client, user, template):
    challenge = await _challenge(client, user)

    response = await _prompt(client, user, 999, challenge)
    assert response.status_code == 404
    assert response.json()["error"]["message"] == "Template not found"

    # Quota and challenge are untouched
    retry = await _prompt(client, user, template.id, challenge)
    assert retry.status_code == 200
    assert retry.json()["remaining_attempts"] == 9


async def test_process_prompt_refunds_upstream_failure(client, user, template, openai_client):
    openai_client.chat.completions.create.side_effect = OpenAIError("timed out")
    challenge = await _challenge(client, user)

    response = await _prompt(client, user, template.id, challenge)

    assert response.status_code == 502
    assert response.json()["error"]["code"] == "UPSTREAM_FAILURE"

    remaining = await client.get("/api/ai/remaining-requests", headers=auth_headers(user))
    assert remaining.json()["remaining_attempts"] == 10


async def test_process_prompt_without_ai_service(app, client, user, template):
    app.dependency_overrides[get_ai_content_service] = lambda: None
    challenge = await _challenge(client, user)

    response = await _prompt(client, user, template.id, challenge)

    assert response.status_code == 503
    assert response.json()["error"]["code"] == "SERVICE_UNAVAILABLE"


async def test_process_prompt_with_unresolvable_ref_template(client, user, session_factory):
    async with session_factory() as session:
        broken = await TemplateRepository(session).create(
            title="Broken",
            description=None,
            url="https://example.com",
            json_data=json.dumps({"type": "object", "properties": {"title": {"$ref": "urn:example:missing"}}}),
            owner_address=user.address
        )
    challenge = await _challenge(client, user)

    response = await _prompt(client, user, broken.id, challenge)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["requiredValidation"] is True
    assert data["result"]["validationErrors"] == ["Template JSON Schema has an unresolvable $ref"]


async def test_process_prompt_refunds_unexpected_failure(app, user, template, openai_client):
    openai_client.chat.completions.create.side_effect = RuntimeError("boom")
    transport = ASGITransport(app=app, raise_app_exceptions=False)

    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        challenge = await _challenge(client, user)
        response = await _prompt(client, user, template.id, challenge)

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "INTERNAL_ERROR"

        remaining = await client.get("/api/ai/remaining-requests", headers=auth_headers(user))
        assert remaining.json()["remaining_attempts"] == 10
