import json

import pytest


def frame(event, data=None):
    return json.dumps({"event": event, "data": data})


def test_connected_assigns_unique_ids(gateway, deliverer):
    first = gateway.connected(websocket=None)
    second = gateway.connected(websocket=None)

    assert first != second
    assert deliverer.connection_ids() == [first, second]
    assert gateway.connection_count == 2


def test_join_and_message_frames(gateway, deliverer, registry):
    a = gateway.connected(websocket=None)
    b = gateway.connected(websocket=None)

    assert gateway.handle_frame(a, frame("join-room", {"roomId": "r1"})) == "join-room"
    assert gateway.handle_frame(b, frame("join-room", {"roomId": "r1"})) == "join-room"
    deliverer.clear()

    assert gateway.handle_frame(a, frame("send-message", {"roomId": "r1", "text": "hello"})) == "send-message"

    [(event, payload)] = deliverer.received(b)
    assert event == "new-message"
    assert payload["fromSocketId"] == a
    assert payload["username"] == "Peer 1"
    assert deliverer.received(a) == []
    assert registry.get("r1").members == {a: "Peer 1", b: "Peer 2"}


def test_get_room_list_broadcasts_to_everyone(gateway, deliverer):
    a = gateway.connected(websocket=None)
    b = gateway.connected(websocket=None)
    gateway.handle_frame(a, frame("join-room", {"roomId": "r1"}))
    deliverer.clear()

    assert gateway.handle_frame(b, frame("get-room-list")) == "get-room-list"

    expected = [("room-list", [{"roomId": "r1", "userCount": 1}])]
    assert deliverer.received(a) == expected
    assert deliverer.received(b) == expected


@pytest.mark.parametrize("raw", [
    "not json",
    "[1, 2, 3]",
    json.dumps({"data": {"roomId": "r1"}}),
    json.dumps({"event": 5}),
    frame("dance", {"roomId": "r1"}),
    frame("join-room", ["r1"]),
    frame("join-room", {"roomId": 42}),
    frame("send-message", "hello"),
    pytest.param("[" * 100000 + "]" * 100000, id="deep-nesting"),
    pytest.param(
        frame("join-room", {"roomId": "r1", "tags": "NEST"}).replace('"NEST"', "[" * 100000 + "]" * 100000),
        id="deep-nesting-in-payload",
    ),
    pytest.param('{"event": "join-room", "data": {"roomId": ' + "1" * 5000 + "}}", id="huge-integer"),
])
def test_malformed_frames_are_dropped(gateway, deliverer, registry, raw):
    a = gateway.connected(websocket=None)

    assert gateway.handle_frame(a, raw) is None
    assert deliverer.frames == []
    assert len(registry) == 0


def test_join_with_empty_room_id_sends_nothing(gateway, deliverer, registry):
    a = gateway.connected(websocket=None)

    gateway.handle_frame(a, frame("join-room", {"roomId": ""}))
    gateway.handle_frame(a, frame("join-room"))

    assert deliverer.frames == []
    assert len(registry) == 0


def test_disconnect_is_idempotent(gateway, deliverer, registry):
    a = gateway.connected(websocket=None)
    b = gateway.connected(websocket=None)
    gateway.handle_frame(a, frame("join-room", {"roomId": "r1"}))
    gateway.handle_frame(b, frame("join-room", {"roomId": "r1"}))
    deliverer.clear()

    assert gateway.disconnected(a) is True
    assert gateway.disconnected(a) is False

    assert deliverer.events(b) == ["user-disconnected", "participants", "room-list"]
    assert a not in deliverer.connection_ids()
    assert gateway.connection_count == 1
    assert registry.get("r1").members == {b: "Peer 2"}


def test_disconnected_connection_cannot_send(gateway, deliverer):
    a = gateway.connected(websocket=None)
    b = gateway.connected(websocket=None)
    gateway.handle_frame(a, frame("join-room", {"roomId": "r1"}))
    gateway.handle_frame(b, frame("join-room", {"roomId": "r1"}))
    gateway.disconnected(a)
    deliverer.clear()

    gateway.handle_frame(a, frame("send-message", {"roomId": "r1", "text": "ghost"}))

    assert deliverer.received(b, "new-message") == []
