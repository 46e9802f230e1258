import pytest
from unittest.mock import AsyncMock

import redis.asyncio as redis

from src.core.exceptions.base import ServiceUnavailableError
from src.core.service.system.feature_flags import FeatureFlagService


@pytest.fixture
def redis_client():
    client = AsyncMock()
    client.get.return_value = None
    return client


async def test_default_when_flag_unset(redis_client):
    assert await FeatureFlagService(redis_client, submissions_default=True).get_submissions_enabled() is True
    assert await FeatureFlagService(redis_client, submissions_default=False).get_submissions_enabled() is False
    redis_client.get.assert_awaited_with("feature_flag:submissions_enabled")


@pytest.mark.parametrize("stored, expected", [("1", True), ("0", False)])
async def test_reads_stored_flag(redis_client, stored, expected):
    redis_client.get.return_value = stored
    assert await FeatureFlagService(redis_client, submissions_default=not expected).get_submissions_enabled() is expected


async def test_default_without_redis():
    assert await FeatureFlagService(None, submissions_default=True).get_submissions_enabled() is True


async def test_default_when_redis_fails(redis_client):
    redis_client.get.side_effect = redis.ConnectionError("down")
    assert await FeatureFlagService(redis_client, submissions_default=False).get_submissions_enabled() is False


async def test_set_flag(redis_client):
    await FeatureFlagService(redis_client).set_submissions_enabled(False)
    redis_client.set.assert_awaited_once_with("feature_flag:submissions_enabled", "0")


async def test_set_flag_without_redis():
    with pytest.raises(ServiceUnavailableError):
        await FeatureFlagService(None).set_submissions_enabled(True)


async def test_set_flag_when_redis_fails(redis_client):
    redis_client.set.side_effect = redis.ConnectionError("down")
    with pytest.raises(ServiceUnavailableError):
        await FeatureFlagService(redis_client).set_submissions_enabled(True)
