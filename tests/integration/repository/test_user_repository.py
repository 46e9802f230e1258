import pytest
from datetime import datetime, timezone

from eth_account import Account

from src.core.exceptions.base import ConflictError
from src.infra.models import AppModel, TemplateModel, UserModel
from src.infra.repository.user_repository import UserRepository

NOW = datetime(2025, 3, 11, 12, 0, tzinfo=timezone.utc)
MIDNIGHT = datetime(2025, 3, 12, tzinfo=timezone.utc)


async def test_create_stores_lowercase_address(user_repository):
    address = Account.create().address
    user = await user_repository.create(address)

    assert user.address == address.lower()
    assert user.ai_usage_count == 0
    assert user.ai_challenge_uuid is None
    assert await user_repository.get_by_address(address.upper().replace("0X", "0x")) is not None
    assert await user_repository.count() == 1


async def test_create_duplicate_raises_conflict(session_factory):
    address = Account.create().address
    async with session_factory() as first:
        await UserRepository(first).create(address)

    async with session_factory() as second:
        with pytest.raises(ConflictError):
            await UserRepository(second).create(address)


async def test_consume_challenge_is_single_use(user_repository, registered_wallet):
    address = registered_wallet.address
    await user_repository.store_challenge(address, "token-1", NOW)

    assert await user_repository.consume_challenge(address, "token-1", 10) == 1
    assert await user_repository.consume_challenge(address, "token-1", 10) is None

    user = await user_repository.get_by_address(address)
    assert user.ai_usage_count == 1
    assert user.ai_challenge_uuid is None


async def test_consume_challenge_respects_limit(user_repository, registered_wallet):
    address = registered_wallet.address
    await user_repository.store_challenge(address, "token-1", NOW)
    assert await user_repository.consume_challenge(address, "token-1", 1) == 1

    await user_repository.store_challenge(address, "token-2", NOW)
    assert await user_repository.consume_challenge(address, "token-2", 1) is None

    user = await user_repository.get_by_address(address)
    assert user.ai_usage_count == 1
    assert user.ai_challenge_uuid == "token-2"


async def test_consume_rejects_stale_token(user_repository, registered_wallet):
    address = registered_wallet.address
    await user_repository.store_challenge(address, "token-1", NOW)
    await user_repository.store_challenge(address, "token-2", NOW)

    assert await user_repository.consume_challenge(address, "token-1", 10) is None
    assert await user_repository.consume_challenge(address, "token-2", 10) == 1


async def test_store_challenge_leaves_counter_untouched(user_repository, registered_wallet):
    address = registered_wallet.address
    await user_repository.roll_usage_window(address, NOW, MIDNIGHT)
    await user_repository.store_challenge(address, "token-1", NOW)
    await user_repository.consume_challenge(address, "token-1", 10)

    await user_repository.store_challenge(address, "token-2", NOW)

    user = await user_repository.get_by_address(address)
    assert user.ai_usage_count == 1
    assert user.ai_usage_reset_date == MIDNIGHT
    assert user.ai_challenge_created_at == NOW


async def test_roll_usage_window_only_once_per_window(user_repository, registered_wallet):
    address = registered_wallet.address
    assert await user_repository.roll_usage_window(address, NOW, MIDNIGHT) is True
    # The window is open until midnight, a second roll is a no-op
    assert await user_repository.roll_usage_window(address, NOW, MIDNIGHT) is False

    user = await user_repository.get_by_address(address)
    assert user.ai_usage_reset_date == MIDNIGHT


async def test_invalidate_challenge_matches_token(user_repository, registered_wallet):
    address = registered_wallet.address
    await user_repository.store_challenge(address, "token-1", NOW)

    assert await user_repository.invalidate_challenge(address, "other") is False
    assert await user_repository.invalidate_challenge(address, "token-1") is True

    user = await user_repository.get_by_address(address)
    assert user.ai_challenge_uuid is None


async def test_leaderboard_orders_by_prize_then_app_count(session, user_repository):
    alice, bob, carol, team = (Account.create().address.lower() for _ in range(4))
    session.add_all([
        UserModel(address=alice, win_1_amount=None),
        UserModel(address=bob, win_1_amount="500"),
        UserModel(address=carol, win_1_amount=None),
        UserModel(address=team, win_1_amount="900"),
    ])
    await session.flush()
    session.add(TemplateModel(id=1, title="t", url="https://example.com", json_data="{}", owner_address=alice))
    await session.flush()
    apps = [(alice, 3), (bob, 1), (carol, 1), (team, 5)]
    for owner, count in apps:
        for i in range(count):
            session.add(AppModel(name=f"app {i}", owner_address=owner, template_id=1, json_data="{}"))
    await session.commit()

    rows = await user_repository.get_users_with_app_counts([team])
    assert [row[0] for row in rows] == [bob, alice, carol]
    assert rows[1] == (alice, None, 3)

    limited = await user_repository.get_users_with_app_counts([team], limit=1)
    assert len(limited) == 1

    winners = await user_repository.get_winners()
    assert [row[0] for row in winners] == [team, bob]
    assert winners[1] == (bob, "500", 1)
