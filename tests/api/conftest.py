"""API test fixtures: an app bound to the fakeredis store and an ASGI client."""

import httpx
import pytest

from tripcoord.main import create_app


@pytest.fixture
def app(store):
    return create_app(store=store)


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
