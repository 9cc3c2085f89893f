"""Mobile alert session controller tests."""

import asyncio

from alertline.client.api import AlertApiClient
from alertline.client.models import DevicePosition
from alertline.client.session import AlertSessionController
from alertline.client.storage import (
    ACTIVE_ALERT_KEY,
    ALERT_HISTORY_KEY,
    CONTACTS_KEY,
    PENDING_LOCATIONS_KEY,
    LocalStateStore,
)

BASE_URL = "http://alerts.test/api"


def _lat(n):
    return 14.0 + n * 0.01


class Positions:
    """Device location provider returning a new fix on every call."""

    def __init__(self):
        self.count = 0

    async def __call__(self):
        self.count += 1
        return DevicePosition(latitude=_lat(self.count), longitude=121.0, accuracy=5.0)


def _controller(server, store=None, notes=None):
    notes = notes if notes is not None else []
    return AlertSessionController(
        AlertApiClient(BASE_URL, transport=server.transport()),
        store or LocalStateStore(),
        Positions(),
        notify=lambda title, message: notes.append((title, message)),
        user_name="Maria",
        gps_interval=60,
        poll_interval=60,
    )


def test_send_alert_starts_tracking(alert_server):
    store = LocalStateStore()
    store.set(CONTACTS_KEY, [{"name": "Jose", "phone": "0917-555-0101"}])
    notes = []

    async def scenario():
        controller = _controller(alert_server, store, notes)
        active = await controller.send_alert("medical")
        tracking = controller.tracking
        await controller.close()
        return active, tracking

    active, tracking = asyncio.run(scenario())
    assert active.id == "srv-1"
    assert active.status == "pending"
    assert tracking is True
    assert store.get(ACTIVE_ALERT_KEY)["id"] == "srv-1"
    history = store.get(ALERT_HISTORY_KEY)
    assert history[0]["id"] == "srv-1"
    assert history[0]["status"] == "sent"
    assert notes[-1][0] == "Alert Sent"

    _, _, payload = alert_server.requests[0]
    assert payload["type"] == "medical"
    assert payload["user_phone"] == "0917-555-0101"
    assert payload["emergency_contacts"][0]["relationship"] == "Contact"
    assert payload["location"]["latitude"] == _lat(1)


def test_send_alert_failure_keeps_local_entry(alert_server):
    """A failed send records a local-only entry and explains how to fix connectivity."""
    alert_server.offline = True
    store = LocalStateStore()
    notes = []

    async def scenario():
        controller = _controller(alert_server, store, notes)
        result = await controller.send_alert("fire")
        return controller, result

    controller, result = asyncio.run(scenario())
    assert result is None
    assert controller.is_online is False
    assert controller.active_alert is None
    assert store.get(ACTIVE_ALERT_KEY) is None
    history = store.get(ALERT_HISTORY_KEY)
    assert len(history) == 1
    assert history[0]["status"] == "sent"
    assert not history[0]["id"].startswith("srv-")
    title, message = notes[-1]
    assert title == "Connection Error"
    assert BASE_URL in message


def test_offline_samples_queue_and_flush_in_order(alert_server):
    store = LocalStateStore()

    async def scenario():
        controller = _controller(alert_server, store)
        await controller.send_alert("accident")
        await controller.set_online(False)
        await controller.location_tick()
        await controller.location_tick()
        queued = len(store.get(PENDING_LOCATIONS_KEY, []))
        pushed_while_offline = len(alert_server.location_pushes())
        await controller.set_online(True)
        await controller.close()
        return controller, queued, pushed_while_offline

    controller, queued, pushed_while_offline = asyncio.run(scenario())
    assert queued == 2
    assert pushed_while_offline == 0
    assert [p["latitude"] for p in alert_server.location_pushes()] == [_lat(2), _lat(3)]
    assert controller.pending == []
    assert store.get(PENDING_LOCATIONS_KEY) is None


def test_network_failure_queues_then_next_push_flushes(alert_server):
    async def scenario():
        controller = _controller(alert_server)
        await controller.send_alert("crime")
        alert_server.offline = True
        await controller.location_tick()
        queued = len(controller.pending)
        alert_server.offline = False
        await controller.location_tick()
        await controller.close()
        return controller, queued

    controller, queued = asyncio.run(scenario())
    assert queued == 1
    assert controller.pending == []
    delivered = alert_server.location_pushes()
    # failed attempt, live push, then the drained sample
    assert [p["latitude"] for p in delivered] == [_lat(2), _lat(3), _lat(2)]
    assert delivered[1]["address"] == "Live location update"
    assert "address" not in delivered[2]


def test_rejected_push_is_dropped(alert_server):
    alert_server.location_status = 400

    async def scenario():
        controller = _controller(alert_server)
        await controller.send_alert("other")
        await controller.location_tick()
        await controller.close()
        return controller

    controller = asyncio.run(scenario())
    assert controller.pending == []
    assert len(alert_server.location_pushes()) == 1


def test_failed_flush_entries_are_lost(alert_server):
    async def scenario():
        controller = _controller(alert_server)
        await controller.send_alert("medical")
        await controller.set_online(False)
        await controller.location_tick()
        await controller.location_tick()
        alert_server.location_status = 500
        delivered = await controller.flush_pending()
        await controller.close()
        return controller, delivered

    controller, delivered = asyncio.run(scenario())
    assert delivered == 0
    assert controller.pending == []
    assert len(alert_server.location_pushes()) == 2


def test_poll_follows_server_status(alert_server):
    store = LocalStateStore()
    notes = []

    async def scenario():
        controller = _controller(alert_server, store, notes)
        active = await controller.send_alert("SOS")

        alert_server.alerts[active.id].update(status="responding", responder_name="Alex")
        await controller.poll_status()
        responding = (controller.active_alert.status, controller.active_alert.responder_name)
        history_after_claim = store.get(ALERT_HISTORY_KEY)[0]["status"]

        await controller.poll_status()
        requests_before_resolve = len(alert_server.requests)

        alert_server.alerts[active.id]["status"] = "resolved"
        await controller.poll_status()
        return controller, responding, history_after_claim, requests_before_resolve

    controller, responding, history_after_claim, requests_before = asyncio.run(scenario())
    assert responding == ("responding", "Alex")
    assert history_after_claim == "received"
    assert len(alert_server.requests) == requests_before + 1
    assert controller.active_alert is None
    assert controller.tracking is False
    assert store.get(ACTIVE_ALERT_KEY) is None
    assert store.get(ALERT_HISTORY_KEY)[0]["status"] == "resolved"
    assert [n[0] for n in notes] == ["Alert Sent", "Help Is On The Way", "Emergency Resolved"]


def test_poll_defaults_responder_name(alert_server):
    async def scenario():
        controller = _controller(alert_server)
        active = await controller.send_alert("fire")
        alert_server.alerts[active.id]["status"] = "responding"
        await controller.poll_status()
        await controller.close()
        return controller

    controller = asyncio.run(scenario())
    assert controller.active_alert.responder_name == "Responder"


def test_poll_cancelled_by_server(alert_server):
    store = LocalStateStore()

    async def scenario():
        controller = _controller(alert_server, store)
        active = await controller.send_alert("natural")
        alert_server.alerts[active.id]["status"] = "cancelled"
        await controller.poll_status()
        return controller

    controller = asyncio.run(scenario())
    assert controller.active_alert is None
    assert store.get(ALERT_HISTORY_KEY)[0]["status"] == "cancelled"


def test_cancel_clears_local_state_even_on_server_error(alert_server):
    store = LocalStateStore()
    alert_server.status_status = 500

    async def scenario():
        controller = _controller(alert_server, store)
        await controller.send_alert("medical")
        cancelled = await controller.cancel_alert()
        return controller, cancelled

    controller, cancelled = asyncio.run(scenario())
    assert cancelled is True
    assert controller.active_alert is None
    assert controller.tracking is False
    assert store.get(ACTIVE_ALERT_KEY) is None
    assert alert_server.requests[-1][2] == {"status": "cancelled"}


def test_cancel_without_active_alert(alert_server):
    async def scenario():
        return await _controller(alert_server).cancel_alert()

    assert asyncio.run(scenario()) is False
    assert alert_server.requests == []


def test_foreground_resume_forces_location_push(alert_server):
    async def scenario():
        controller = _controller(alert_server)
        await controller.send_alert("rescue")
        await controller.handle_app_state("background")
        await controller.handle_app_state("active")
        await controller.handle_app_state("active")
        await controller.close()

    asyncio.run(scenario())
    assert len(alert_server.location_pushes()) == 1


def test_restore_resumes_saved_session(alert_server, tmp_path):
    path = tmp_path / "state.json"
    saved = LocalStateStore(path)
    saved.set(ACTIVE_ALERT_KEY, {"id": "srv-9", "type": "medical", "status": "responding", "responder_name": "Alex"})
    saved.set(PENDING_LOCATIONS_KEY, [{"alert_id": "srv-9", "latitude": 14.5, "longitude": 121.0}])

    async def scenario():
        controller = _controller(alert_server, LocalStateStore(path))
        await controller.restore()
        tracking = controller.tracking
        await controller.close()
        return controller, tracking

    controller, tracking = asyncio.run(scenario())
    assert controller.active_alert.id == "srv-9"
    assert controller.active_alert.responder_name == "Alex"
    assert len(controller.pending) == 1
    assert tracking is True


def test_send_alert_without_location_fix(alert_server):
    """No fix means no request; the attempt is still kept in local history."""
    store = LocalStateStore()
    notes = []

    async def no_fix():
        return None

    async def scenario():
        controller = AlertSessionController(
            AlertApiClient(BASE_URL, transport=alert_server.transport()),
            store,
            no_fix,
            notify=lambda title, message: notes.append((title, message)),
        )
        return controller, await controller.send_alert("medical")

    controller, result = asyncio.run(scenario())
    assert result is None
    assert alert_server.requests == []
    assert controller.is_online is True
    assert store.get(ALERT_HISTORY_KEY)[0]["location"] == "Unknown"
    assert notes[-1][0] == "Location Unavailable"


def test_close_stops_timers_and_http_client(alert_server):
    async def scenario():
        controller = _controller(alert_server)
        await controller.send_alert("medical")
        await controller.close()
        return controller

    controller = asyncio.run(scenario())
    assert controller.tracking is False
    assert controller._api._client.is_closed
