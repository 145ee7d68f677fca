import asyncio

from starlette.websockets import WebSocketState

from ermakplan.services.live_hub import WELCOME_MESSAGE, LiveHub, make_event, start_liveness


class FakeSocket:
    def __init__(self, fail_sends=False):
        self.sent = []
        self.closed_with = None
        self.fail_sends = fail_sends
        self.client_state = WebSocketState.CONNECTED

    async def send_json(self, payload):
        if self.fail_sends:
            raise RuntimeError("socket gone")
        self.sent.append(payload)

    async def close(self, code=1000):
        self.closed_with = code
        self.client_state = WebSocketState.DISCONNECTED


def test_connect_sends_welcome():
    async def scenario():
        hub = LiveHub()
        ws = FakeSocket()
        await hub.connect(ws)
        return hub, ws

    hub, ws = asyncio.run(scenario())
    assert len(hub) == 1
    assert ws.sent == [make_event("notification", "create", {"message": WELCOME_MESSAGE})]


def test_broadcast_skips_closed_and_survives_failures():
    async def scenario():
        hub = LiveHub()
        good, closed, broken = FakeSocket(), FakeSocket(), FakeSocket()
        for ws in (good, closed, broken):
            await hub.connect(ws)
        closed.client_state = WebSocketState.DISCONNECTED
        broken.fail_sends = True
        delivered = await hub.broadcast(make_event("location_report", "delete", {"id": 1}))
        return hub, delivered, good, closed

    hub, delivered, good, closed = asyncio.run(scenario())
    assert delivered == 1
    assert good.sent[-1] == {"type": "location_report", "action": "delete", "data": {"id": 1}}
    assert len(closed.sent) == 1
    # Failed sends stay registered until a sweep evicts them
    assert len(hub) == 3


def test_sweep_keeps_quiet_readers_and_evicts_failed_sends():
    async def scenario():
        hub = LiveHub()
        quiet, broken = FakeSocket(), FakeSocket()
        await hub.connect(quiet)
        await hub.connect(broken)
        broken.fail_sends = True

        # First sweep: the ping to `broken` fails and flags it
        await hub.sweep()
        first_round = len(hub)
        await hub.sweep()
        await hub.sweep()
        return hub, first_round, quiet, broken

    hub, first_round, quiet, broken = asyncio.run(scenario())
    assert first_round == 2
    assert len(hub) == 1
    assert broken.closed_with == 1001
    # Never wrote anything back, still registered and pinged every round
    assert quiet.closed_with is None
    assert quiet.sent.count({"type": "ping"}) == 3


def test_failed_broadcast_is_evicted_on_next_sweep():
    async def scenario():
        hub = LiveHub()
        ws = FakeSocket()
        await hub.connect(ws)
        ws.fail_sends = True
        await hub.broadcast(make_event("location_report", "delete", {"id": 1}))
        before = len(hub)
        await hub.sweep()
        return hub, before, ws

    hub, before, ws = asyncio.run(scenario())
    assert before == 1
    assert len(hub) == 0
    assert ws.closed_with == 1001


def test_disconnect_is_idempotent():
    async def scenario():
        hub = LiveHub()
        ws = FakeSocket()
        await hub.connect(ws)
        await hub.disconnect(ws)
        await hub.disconnect(ws)
        await hub.mark_alive(ws)
        return hub

    assert len(asyncio.run(scenario())) == 0


def test_liveness_loop_disabled_for_non_positive_interval():
    async def scenario():
        return start_liveness(LiveHub(), 0)

    assert asyncio.run(scenario()) is None


def test_liveness_loop_runs_sweeps():
    async def scenario():
        hub = LiveHub()
        quiet, broken = FakeSocket(), FakeSocket()
        await hub.connect(quiet)
        await hub.connect(broken)
        broken.fail_sends = True
        task = start_liveness(hub, 0.01)
        await asyncio.sleep(0.05)
        task.cancel()
        return hub, quiet, broken

    hub, quiet, broken = asyncio.run(scenario())
    assert broken.closed_with == 1001
    assert quiet.closed_with is None
    assert len(hub) == 1
    assert {"type": "ping"} in quiet.sent
