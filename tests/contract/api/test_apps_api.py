import json
import pytest

from src.infra.repository.app_repository import AppRepository
from src.infra.repository.template_repository import TemplateRepository
from tests.helpers import auth_headers, sign

SCHEMA = json.dumps({
    "type": "object",
    "properties": {"title": {"type": "string"}},
    "required": ["title"]
})


@pytest.fixture
async def template(session_factory, wallet, register):
    await register(wallet)
    async with session_factory() as session:
        return await TemplateRepository(session).create(
            title="Landing page",
            description=None,
            url="https://example.com",
            json_data=SCHEMA,
            owner_address=wallet.address
        )


def _payload(account, template_id, name="My App", json_data='{"title": "Hello"}', **overrides):
    payload = {
        "name": name,
        "description": "An app",
        "template_id": template_id,
        "json_data": json_data,
        "signature": sign(account, f"Create app: {name.strip()}")
    }
    payload.update(overrides)
    return payload


async def _create(client, account, template_id, name="My App"):
    response = await client.post(
        "/api/my-apps", json=_payload(account, template_id, name), headers=auth_headers(account)
    )
    assert response.status_code == 201
    return response.json()


async def test_create_app(client, wallet, template, notification_service):
    body = await _create(client, wallet, template.id, "  My App  ")

    assert body["name"] == "My App"
    assert body["template_id"] == template.id
    assert body["owner_address"] == wallet.address.lower()
    assert body["moderated"] is False
    notification_service.send_app_creation_notification.assert_awaited_once_with("My App", "An app", body["id"], 1)


async def test_create_app_when_submissions_disabled(client, wallet, template, flag_redis, session_factory):
    flag_redis.get.return_value = "0"

    response = await client.post(
        "/api/my-apps", json=_payload(wallet, template.id), headers=auth_headers(wallet)
    )

    assert response.status_code == 403
    assert response.json()["error"]["message"] == (
        "Submissions are currently disabled. Thank you for your participation in the hackathon!"
    )
    async with session_factory() as session:
        assert await AppRepository(session).count() == 0


@pytest.mark.parametrize("overrides, message", [
    ({"name": ""}, "Name is required"),
    ({"json_data": "not json"}, "Invalid JSON format"),
    ({"json_data": "{}"}, "Empty JSON objects/arrays are not allowed"),
    ({"json_data": '{"title": 5}'}, "Invalid JSON data: 5 is not of type 'string'"),
])
async def test_create_app_validation(client, wallet, template, overrides, message):
    payload = _payload(wallet, template.id)
    payload.update(overrides)

    response = await client.post("/api/my-apps", json=payload, headers=auth_headers(wallet))

    assert response.status_code == 400
    assert response.json()["error"]["message"] == message


async def test_create_app_with_unknown_template(client, wallet, template):
    response = await client.post("/api/my-apps", json=_payload(wallet, 999), headers=auth_headers(wallet))

    assert response.status_code == 404
    assert response.json()["error"]["message"] == "Template with ID 999 not found"


async def test_create_app_with_bad_signature(client, wallet, other_wallet, template):
    payload = _payload(wallet, template.id, signature=sign(other_wallet, "Create app: My App"))

    response = await client.post("/api/my-apps", json=payload, headers=auth_headers(wallet))

    assert response.status_code == 401


async def test_my_apps(client, wallet, template):
    await _create(client, wallet, template.id, "First")
    await _create(client, wallet, template.id, "Second")

    response = await client.get("/api/my-apps", headers=auth_headers(wallet))

    assert response.status_code == 200
    assert [a["name"] for a in response.json()] == ["Second", "First"]


async def test_public_apps(client, wallet, template, session_factory):
    first = await _create(client, wallet, template.id, "First")
    await _create(client, wallet, template.id, "Second")
    async with session_factory() as session:
        await AppRepository(session).set_moderated([first["id"]], True)

    response = await client.get("/api/apps")

    assert response.status_code == 200
    body = response.json()
    assert [a["id"] for a in body["data"]] == [first["id"]]
    assert body["pagination"]["total"] == 1
    assert body["pagination"]["limit"] == 12

    single = await client.get(f"/api/apps/{first['id']}")
    assert single.json()["name"] == "First"


async def test_get_missing_app(client):
    response = await client.get("/api/apps/999")

    assert response.status_code == 404
    assert response.json()["error"]["message"] == "App not found"


async def test_delete_app(client, wallet, other_wallet, template):
    app = await _create(client, wallet, template.id)
    app_id = app["id"]

    missing = await client.request(
        "DELETE", "/api/my-apps/999", json={"signature": "0x00"}, headers=auth_headers(wallet)
    )
    assert missing.status_code == 404

    foreign = await client.request(
        "DELETE",
        f"/api/my-apps/{app_id}",
        json={"signature": sign(other_wallet, f"Delete application #{app_id}")},
        headers=auth_headers(other_wallet)
    )
    assert foreign.status_code == 403
    assert foreign.json()["error"]["message"] == "Not authorized to delete this app"

    response = await client.request(
        "DELETE",
        f"/api/my-apps/{app_id}",
        json={"signature": sign(wallet, f"Delete application #{app_id}")},
        headers=auth_headers(wallet)
    )
    assert response.status_code == 200
    assert response.json() == {"message": "App deleted successfully"}
    assert (await client.get(f"/api/apps/{app_id}")).status_code == 404


async def test_create_app_against_template_with_unresolvable_ref(client, wallet, template, session_factory):
    # Stored before template validation rejected such schemas
    async with session_factory() as session:
        broken = await TemplateRepository(session).create(
            title="Broken",
            description=None,
            url="https://example.com",
            json_data=json.dumps({"type": "object", "properties": {"title": {"$ref": "urn:example:missing"}}}),
            owner_address=wallet.address
        )

    response = await client.post("/api/my-apps", json=_payload(wallet, broken.id), headers=auth_headers(wallet))

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Invalid JSON data: Template JSON Schema has an unresolvable $ref"
