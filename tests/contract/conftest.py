"""
API test fixtures: the real application wired to the in-memory database
with external collaborators replaced by mocks.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from httpx import ASGITransport, AsyncClient

from src.app import create_app
from src.core.dependencies import get_ai_content_service, get_feature_flag_service, get_notification_service
from src.core.service.ai.ai_content_service import AiContentService
from src.core.service.notification.notification_service import NotificationService
from src.core.service.system.feature_flags import FeatureFlagService
from src.infra.database import get_async_session
from src.infra.repository.user_repository import UserRepository
from tests.helpers import completion

NOTIFICATION_METHODS = (
    "send_app_creation_notification",
    "send_template_creation_notification",
    "send_user_registration_notification",
    "send_feedback_notification",
)


@pytest.fixture
def notification_service():
    service = AsyncMock(spec=NotificationService)
    for method in NOTIFICATION_METHODS:
        getattr(service, method).return_value = True
    return service


@pytest.fixture
def flag_redis():
    client = AsyncMock()
    client.get.return_value = None
    return client


@pytest.fixture
def openai_client():
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=completion('{"title": "Generated"}'))
    return client


@pytest.fixture
def app(session_factory, notification_service, flag_redis, openai_client):
    app = create_app()

    async def override_session():
        async with session_factory() as session:
            yield session

    content_service = AiContentService(client=openai_client)

    app.dependency_overrides[get_async_session] = override_session
    app.dependency_overrides[get_notification_service] = lambda: notification_service
    app.dependency_overrides[get_feature_flag_service] = lambda: FeatureFlagService(flag_redis, submissions_default=True)
    app.dependency_overrides[get_ai_content_service] = lambda: content_service
    return app


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
def register(session_factory):
    async def _register(account):
        async with session_factory() as session:
            return await UserRepository(session).create(account.address)
    return _register
