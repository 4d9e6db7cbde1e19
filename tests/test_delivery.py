import asyncio
import json

from delivery import DeliveryOutcome, OutboxDeliverer


class FakeWebSocket:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    async def send_text(self, text: str):
        if self.fail:
            raise RuntimeError("socket is closed")
        self.sent.append(json.loads(text))


async def drain():
    for _ in range(10):
        await asyncio.sleep(0)


def test_frames_are_written_in_order():
    async def scenario():
        deliverer = OutboxDeliverer(max_size=10)
        ws = FakeWebSocket()
        deliverer.register("c1", ws)
        outcomes = [deliverer.deliver("c1", "new-message", {"n": i}) for i in range(5)]
        await drain()
        deliverer.unregister("c1")
        return outcomes, ws.sent

    outcomes, sent = asyncio.run(scenario())

    assert outcomes == [DeliveryOutcome.DELIVERED] * 5
    assert sent == [{"event": "new-message", "data": {"n": i}} for i in range(5)]


def test_full_outbox_drops_new_frames():
    async def scenario():
        deliverer = OutboxDeliverer(max_size=2)
        ws = FakeWebSocket()
        deliverer.register("c1", ws)
        # Writer has not run yet, so the queue fills up
        outcomes = [deliverer.deliver("c1", "room-list", [i]) for i in range(3)]
        await drain()
        after_drain = deliverer.deliver("c1", "room-list", [3])
        await drain()
        deliverer.unregister("c1")
        return outcomes, after_drain, ws.sent

    outcomes, after_drain, sent = asyncio.run(scenario())

    assert outcomes == [DeliveryOutcome.DELIVERED, DeliveryOutcome.DELIVERED, DeliveryOutcome.BACKLOGGED]
    assert after_drain is DeliveryOutcome.DELIVERED
    assert [frame["data"] for frame in sent] == [[0], [1], [3]]


def test_send_failure_closes_outbox():
    async def scenario():
        deliverer = OutboxDeliverer(max_size=10)
        outbox = deliverer.register("c1", FakeWebSocket(fail=True))
        first = deliverer.deliver("c1", "participants", {"participants": []})
        await drain()
        second = deliverer.deliver("c1", "participants", {"participants": []})
        return first, second, outbox.closed, deliverer.pending_writers

    first, second, closed, pending = asyncio.run(scenario())

    assert first is DeliveryOutcome.DELIVERED
    assert closed is True
    assert second is DeliveryOutcome.CLOSED
    assert pending == 0


def test_unregister_cancels_writer():
    async def scenario():
        deliverer = OutboxDeliverer(max_size=10)
        outbox = deliverer.register("c1", FakeWebSocket())
        await drain()
        deliverer.unregister("c1")
        await drain()
        return (
            deliverer.deliver("c1", "room-list", []),
            outbox.task.cancelled(),
            deliverer.pending_writers,
            deliverer.connection_ids(),
            deliverer.unregister("c1"),
        )

    outcome, cancelled, pending, connection_ids, second_unregister = asyncio.run(scenario())

    assert outcome is DeliveryOutcome.UNKNOWN_CONNECTION
    assert cancelled is True
    assert pending == 0
    assert connection_ids == []
    assert second_unregister is None


def test_unknown_connection():
    deliverer = OutboxDeliverer()
    assert deliverer.deliver("nobody", "room-list", []) is DeliveryOutcome.UNKNOWN_CONNECTION
