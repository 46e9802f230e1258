from eth_account import Account

from src.infra.models import AppModel, TemplateModel, UserModel
from tests.helpers import sign

REGISTRATION_MESSAGE = "Web4 Apps Registration"


async def test_check_unregistered_user(client, wallet):
    response = await client.get(f"/api/check/{wallet.address}")

    assert response.status_code == 200
    assert response.json() == {"isRegistered": False, "address": wallet.address.lower()}


async def test_check_invalid_address(client):
    response = await client.get("/api/check/0x123")

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "INVALID_INPUT"
    assert body["error"]["message"] == "Invalid Ethereum address format"


async def test_register_user(client, wallet, notification_service):
    response = await client.post("/api/register", json={
        "address": wallet.address,
        "signature": sign(wallet, REGISTRATION_MESSAGE),
        "message": REGISTRATION_MESSAGE
    })

    assert response.status_code == 201
    assert response.json() == {"address": wallet.address.lower()}
    notification_service.send_user_registration_notification.assert_awaited_once_with(wallet.address.lower(), 1)

    check = await client.get(f"/api/check/{wallet.address}")
    assert check.json()["isRegistered"] is True


async def test_register_twice_conflicts(client, wallet):
    payload = {"address": wallet.address, "signature": sign(wallet, REGISTRATION_MESSAGE)}
    assert (await client.post("/api/register", json=payload)).status_code == 201

    response = await client.post("/api/register", json=payload)
    assert response.status_code == 409
    assert response.json()["error"]["message"] == "User already registered"


async def test_register_with_foreign_signature(client, wallet, other_wallet):
    response = await client.post("/api/register", json={
        "address": wallet.address,
        "signature": sign(other_wallet, REGISTRATION_MESSAGE)
    })

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_SIGNATURE"


async def test_register_with_wrong_message(client, wallet):
    response = await client.post("/api/register", json={
        "address": wallet.address,
        "signature": sign(wallet, "Something else"),
        "message": "Something else"
    })

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Invalid registration message"


async def test_register_survives_notification_failure(client, wallet, notification_service):
    notification_service.send_user_registration_notification.return_value = False

    response = await client.post("/api/register", json={
        "address": wallet.address,
        "signature": sign(wallet, REGISTRATION_MESSAGE)
    })
    assert response.status_code == 201


async def test_register_missing_fields(client):
    response = await client.post("/api/register", json={})

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "INVALID_INPUT"


async def _seed_leaderboard(session_factory):
    winner, creator, team = (Account.create().address.lower() for _ in range(3))
    async with session_factory() as session:
        session.add_all([
            UserModel(address=winner, win_1_amount="250"),
            UserModel(address=creator),
            UserModel(address=team, win_1_amount="999"),
        ])
        await session.flush()
        session.add(TemplateModel(id=1, title="t", url="https://example.com", json_data="{}", owner_address=team))
        await session.flush()
        for owner, count in [(winner, 1), (creator, 2)]:
            for i in range(count):
                session.add(AppModel(name=f"app {i}", owner_address=owner, template_id=1, json_data="{}"))
        session.add(AppModel(name="team app", owner_address=team, template_id=1, json_data="{}"))
        await session.commit()
    return winner, creator, team


async def test_users_with_app_counts(client, session_factory, monkeypatch):
    winner, creator, team = await _seed_leaderboard(session_factory)
    from src.api.controller.users import users_controller
    monkeypatch.setattr(users_controller, "EXCLUDED_ADDRESSES", [team])

    response = await client.get("/api/with-app-counts", params={"address": creator})

    assert response.status_code == 200
    body = response.json()
    assert [u["app_count"] for u in body["users"]] == [1, 2]
    assert body["users"][0] == {
        "trimmed_address": f"{winner[:7]}...{winner[-5:]}",
        "app_count": 1,
        "is_user": False,
        "win_1_amount": "250"
    }
    assert body["users"][1]["is_user"] is True
    assert body["user_record"]["rank"] == 2
    assert body["user_record"]["app_count"] == 2


async def test_users_with_app_counts_without_caller(client, session_factory):
    await _seed_leaderboard(session_factory)

    response = await client.get("/api/with-app-counts")

    assert response.status_code == 200
    assert response.json()["user_record"] is None


async def test_winners(client, session_factory):
    winner, _, team = await _seed_leaderboard(session_factory)

    response = await client.get("/api/winners")

    assert response.status_code == 200
    assert response.json()["winners"] == [
        {"address": team, "app_count": 1, "win_1_amount": "999"},
        {"address": winner, "app_count": 1, "win_1_amount": "250"},
    ]
