"""Tests for the webhook HTTP listener."""

import json

import pytest
import pytest_asyncio
from aiohttp import test_utils

from hookcord.bot.core.webhook_server import WebhookServer
from hookcord.dispatcher import Dispatcher
from hookcord.registry import SubscriptionRegistry

from .conftest import github_payload, make_channel


@pytest.fixture
def dispatcher(registry, transport):
    return Dispatcher(registry, transport)


@pytest_asyncio.fixture
async def client(dispatcher):
    server = WebhookServer(dispatcher)
    async with test_utils.TestClient(test_utils.TestServer(server.app)) as client:
        yield client


def _headers(event: str = "push", delivery: str | None = "d-1") -> dict[str, str]:
    headers = {"X-GitHub-Event": event, "Content-Type": "application/json"}
    if delivery:
        headers["X-GitHub-Delivery"] = delivery
    return headers


class TestWebhook:
    async def test_accepts_and_dispatches_in_background(
        self, client, registry, dispatcher, transport
    ):
        await registry.create(make_channel("C1"))
        await registry.add_repo_to_channel("C1", "acme/widgets")

        resp = await client.post(
            "/", data=json.dumps(github_payload(ref="refs/heads/main")), headers=_headers()
        )
        assert resp.status == 202
        assert await resp.text() == "Processing event."

        await dispatcher.drain()
        assert [cid for cid, _ in transport.sent] == ["C1"]

    async def test_webhook_path_alias(self, client):
        resp = await client.post("/webhook", data=json.dumps(github_payload()), headers=_headers())
        assert resp.status == 202

    async def test_rejects_missing_repository(self, client, dispatcher):
        resp = await client.post("/", data=json.dumps({"zen": "hi"}), headers=_headers("ping"))
        assert resp.status == 403
        assert dispatcher.pending == 0

    async def test_rejects_missing_event_header(self, client):
        resp = await client.post(
            "/", data=json.dumps(github_payload()), headers={"Content-Type": "application/json"}
        )
        assert resp.status == 403

    async def test_rejects_invalid_json(self, client):
        resp = await client.post("/", data="{not json", headers=_headers())
        assert resp.status == 403

    @pytest.mark.parametrize(
        ("event", "extra"),
        [
            ("push", {"ref": 5}),
            ("pull_request", {"action": "opened", "pull_request": "x"}),
        ],
    )
    async def test_rejects_wrongly_typed_fields(self, client, dispatcher, event, extra):
        resp = await client.post(
            "/", data=json.dumps(github_payload(**extra)), headers=_headers(event)
        )
        assert resp.status == 403
        assert dispatcher.pending == 0

    async def test_duplicate_delivery_processed_once(
        self, client, registry, dispatcher, transport
    ):
        await registry.create(make_channel("C1"))
        await registry.add_repo_to_channel("C1", "acme/widgets")
        body = json.dumps(github_payload(ref="refs/heads/main"))

        first = await client.post("/", data=body, headers=_headers(delivery="same"))
        second = await client.post("/", data=body, headers=_headers(delivery="same"))
        assert first.status == 202
        assert second.status == 200

        await dispatcher.drain()
        assert len(transport.sent) == 1


class TestHealth:
    async def test_health_reports_readiness(self, client):
        resp = await client.get("/health")
        assert resp.status == 200
        body = await resp.json()
        assert body["registry_ready"] is True
        assert body["bot_ready"] is False
        assert body["status"] == "starting"

    async def test_ping(self, client):
        resp = await client.get("/ping")
        assert await resp.text() == "pong"


class TestDroppedDelivery:
    async def test_redelivery_processed_after_drop(self, store, transport):
        registry = SubscriptionRegistry(store, load_retries=1, load_retry_delay=0)
        dispatcher = Dispatcher(registry, transport, ready_timeout=0.01)
        server = WebhookServer(dispatcher)
        body = json.dumps(github_payload(ref="refs/heads/main"))

        async with test_utils.TestClient(test_utils.TestServer(server.app)) as client:
            first = await client.post("/", data=body, headers=_headers(delivery="late"))
            assert first.status == 202
            await dispatcher.drain()
            assert "late" not in server.deliveries

            await registry.load()
            await registry.create(make_channel("C1"))
            await registry.add_repo_to_channel("C1", "acme/widgets")

            again = await client.post("/", data=body, headers=_headers(delivery="late"))
            assert again.status == 202
            await dispatcher.drain()
            assert [cid for cid, _ in transport.sent] == ["C1"]
