"""Tests for offline-aware mutations and reconnect reconciliation."""

import json

import httpx
import pytest
import pytest_asyncio

from app.client.__main__ import main
from app.client.api import ApiClient
from app.client.connectivity import ConnectivityMonitor
from app.client.errors import NETWORK, OFFLINE, ApiError, is_connectivity_error
from app.client.queue import MutationQueue
from app.client.storage import JsonFileStorage, MemoryStorage
from app.client.sync import SyncCoordinator, plural

BASE_URL = "http://test/api/v1"


class FakeServer:
    """Mock transport handler that can be switched between up, down and scripted answers."""

    def __init__(self):
        self.down = False
        self.statuses = []
        self.requests = []

    def __call__(self, request: httpx.Request):
        if self.down:
            raise httpx.ConnectError("unreachable", request=request)
        self.requests.append(request)
        status = self.statuses.pop(0) if self.statuses else 200
        return httpx.Response(status, json={"detail": f"status {status}"} if status >= 400 else {"ok": True})


@pytest.fixture
def server():
    return FakeServer()


@pytest.fixture
def monitor():
    return ConnectivityMonitor(online=True)


@pytest_asyncio.fixture
async def api(server, monitor):
    client = ApiClient(BASE_URL, token="tok", monitor=monitor, transport=httpx.MockTransport(server))
    yield client
    await client.aclose()


@pytest.fixture
def notices():
    return []


@pytest.fixture
def coordinator(api, notices):
    def notify(message, level):
        notices.append((level, message))
    return SyncCoordinator(api, MutationQueue(MemoryStorage()), notify=notify)


def test_plural():
    assert plural(1, "offline change") == "1 offline change"
    assert plural(3, "offline change") == "3 offline changes"


@pytest.mark.asyncio
async def test_coordinator_shares_the_api_monitor(coordinator, monitor):
    assert coordinator.queue.monitor is monitor


@pytest.mark.asyncio
async def test_mutate_online_returns_server_body(coordinator, server):
    result = await coordinator.mutate("/appointments", "POST", {"clientName": "A"}, allow_offline_queue=True)
    assert result.queued is False
    assert result.body == {"ok": True}
    assert coordinator.queue.pending_count == 0


@pytest.mark.asyncio
async def test_mutate_queues_opted_in_network_failure(coordinator, server, notices):
    server.down = True
    result = await coordinator.mutate(
        "/appointments/1/status", "PATCH", {"status": "cancelled"},
        allow_offline_queue=True, description="Cancel appointment",
    )
    assert result.queued is True
    entries = coordinator.queue.load()
    assert [(e.path, e.method) for e in entries] == [("/appointments/1/status", "PATCH")]
    assert json.loads(entries[0].body) == {"status": "cancelled"}
    assert notices == [("info", "Cancel appointment queued offline (1 pending).")]


@pytest.mark.asyncio
async def test_mutate_queues_when_monitor_is_offline(coordinator, monitor, server, notices):
    monitor.online = False
    result = await coordinator.mutate("/types", "POST", {"name": "X"}, allow_offline_queue=True)
    assert result.queued is True
    assert server.requests == []
    assert notices[-1] == ("info", "Change queued offline (1 pending).")


@pytest.mark.asyncio
async def test_mutate_without_opt_in_raises_connectivity_error(coordinator, server):
    server.down = True
    with pytest.raises(ApiError) as exc:
        await coordinator.mutate("/appointments", "POST", {"clientName": "A"})
    assert exc.value.code == NETWORK
    assert coordinator.queue.pending_count == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [400, 401, 404, 500])
async def test_http_errors_are_never_queued(coordinator, server, status):
    server.statuses = [status]
    with pytest.raises(ApiError) as exc:
        await coordinator.mutate("/appointments", "POST", {"clientName": "A"}, allow_offline_queue=True)
    assert exc.value.code == status
    assert exc.value.message == f"status {status}"
    assert coordinator.queue.pending_count == 0


@pytest.mark.asyncio
async def test_offline_proxy_response_is_classified_offline():
    def handler(request):
        return httpx.Response(503, json={"error": "Offline"})

    async with ApiClient(BASE_URL, transport=httpx.MockTransport(handler)) as proxied:
        with pytest.raises(ApiError) as exc:
            await proxied.call("/dashboard")
    assert exc.value.code == OFFLINE
    assert exc.value.is_connectivity


@pytest.mark.asyncio
async def test_reconnect_flushes_and_refreshes(coordinator, monitor, server, notices):
    refreshed = []

    async def reload_dashboard():
        refreshed.append("dashboard")

    coordinator.refreshers.append(reload_dashboard)
    coordinator.bind()

    await monitor.set_online(False)
    await coordinator.mutate("/appointments/1", "DELETE", allow_offline_queue=True, description="Delete appointment")
    await coordinator.mutate("/appointments/2", "DELETE", allow_offline_queue=True, description="Delete appointment")

    await monitor.set_online(True)

    assert [r.url.path for r in server.requests] == ["/api/v1/appointments/1", "/api/v1/appointments/2"]
    assert coordinator.queue.pending_count == 0
    assert refreshed == ["dashboard"]
    assert ("info", "You are offline. Changes you make will sync when the connection returns.") in notices
    assert ("success", "Connection restored. Syncing latest data.") in notices
    assert notices[-1] == ("success", "Synced 2 offline changes.")


@pytest.mark.asyncio
async def test_same_state_does_not_refire(coordinator, monitor, notices):
    coordinator.bind()
    await monitor.set_online(True)
    assert notices == []


@pytest.mark.asyncio
async def test_rejected_replays_are_reported(coordinator, server, notices):
    server.down = True
    await coordinator.mutate("/appointments/1", "PUT", {"time": "09:00"}, allow_offline_queue=True)
    server.down = False
    server.statuses = [400]

    result = await coordinator.flush()

    assert result.as_dict() == {"synced": 0, "dropped": 1}
    assert notices[-1] == ("error", "1 offline change could not be applied.")


@pytest.mark.asyncio
async def test_unauthorized_replay_prompts_login(coordinator, server, notices):
    logged_out = []

    async def on_unauthorized():
        logged_out.append(True)

    coordinator.on_unauthorized = on_unauthorized
    coordinator.queue.enqueue("/appointments/1", "DELETE")
    server.statuses = [401]

    result = await coordinator.flush()

    assert result.stopped_reason == "unauthorized"
    assert coordinator.queue.pending_count == 1
    assert logged_out == [True]
    assert notices[-1] == ("error", "Session expired. Log in again to sync pending changes.")


@pytest.mark.asyncio
async def test_refresh_stops_quietly_on_connectivity_loss(coordinator):
    calls = []

    async def dropped_connection():
        calls.append("first")
        raise ApiError("gone", OFFLINE)

    async def never_reached():
        calls.append("second")

    coordinator.refreshers = [dropped_connection, never_reached]
    await coordinator.refresh()
    assert calls == ["first"]


@pytest.mark.asyncio
async def test_refresh_continues_past_http_errors(coordinator):
    calls = []

    async def failing():
        calls.append("first")
        raise ApiError("boom", 500, status=500)

    async def next_one():
        calls.append("second")

    coordinator.refreshers = [failing, next_one]
    await coordinator.refresh()
    assert calls == ["first", "second"]


def test_cli_status_lists_pending(tmp_path, capsys):
    queue_file = tmp_path / "queue.json"
    MutationQueue(JsonFileStorage(queue_file)).enqueue("/appointments/1", "DELETE", None, "Delete appointment")

    assert main(["--queue-file", str(queue_file), "status"]) == 0
    out = capsys.readouterr().out
    assert "/appointments/1" in out
    assert "Delete appointment" in out
    assert "Total: 1 pending" in out


def test_cli_status_empty(tmp_path, capsys):
    assert main(["--queue-file", str(tmp_path / "none.json"), "status"]) == 0
    assert "No pending offline changes." in capsys.readouterr().out


def test_cli_flush_requires_token(tmp_path, capsys):
    assert main(["--queue-file", str(tmp_path / "q.json"), "--token", "", "flush"]) == 2
    assert "--token" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_unbind_stops_reacting_to_connectivity(coordinator, monitor, notices):
    coordinator.bind()
    coordinator.unbind()
    await monitor.set_online(False)
    await monitor.set_online(True)
    assert notices == []
    assert monitor.online is True


def test_connectivity_error_classification():
    assert is_connectivity_error(ApiError("offline", OFFLINE))
    assert is_connectivity_error(ApiError("network", NETWORK))
    assert not is_connectivity_error(ApiError("server", 503, status=503))
    assert not is_connectivity_error(RuntimeError("boom"))
    assert not is_connectivity_error(None)
