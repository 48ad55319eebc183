from collections.abc import AsyncGenerator

import httpx
import pytest_asyncio
from dishka import AsyncContainer

from greenrun.main import create_app
from greenrun.settings import Settings


@pytest_asyncio.fixture
async def client(test_settings: Settings, unit_container: AsyncContainer) -> AsyncGenerator[httpx.AsyncClient, None]:
    app = create_app(test_settings, container=unit_container)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test/api/v1") as c:
        yield c
