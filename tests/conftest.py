from typing import Any, Dict, List, Optional, Tuple

import pytest

from broadcast import BroadcastEngine
from delivery import DeliveryOutcome
from directory import DirectoryPublisher
from gateway import ConnectionGateway
from presence import PresenceManager
from registry import RoomRegistry


class RecordingDeliverer:
    """Deliverer that records frames instead of writing to a socket."""

    def __init__(self):
        self.connected: List[str] = []
        self.closed: set = set()
        self.frames: List[Tuple[str, str, Any]] = []

    def register(self, connection_id: str, websocket=None):
        self.connected.append(connection_id)

    def unregister(self, connection_id: str):
        if connection_id in self.connected:
            self.connected.remove(connection_id)

    def connect(self, *connection_ids: str):
        for connection_id in connection_ids:
            self.register(connection_id)

    def deliver(self, connection_id: str, event: str, payload: Any) -> DeliveryOutcome:
        if connection_id not in self.connected:
            return DeliveryOutcome.UNKNOWN_CONNECTION
        if connection_id in self.closed:
            return DeliveryOutcome.CLOSED
        self.frames.append((connection_id, event, payload))
        return DeliveryOutcome.DELIVERED

    def connection_ids(self) -> List[str]:
        return list(self.connected)

    def received(self, connection_id: str, event: Optional[str] = None) -> List[Tuple[str, Any]]:
        return [
            (e, payload) for (c, e, payload) in self.frames
            if c == connection_id and (event is None or e == event)
        ]

    def events(self, connection_id: str) -> List[str]:
        return [e for e, _ in self.received(connection_id)]

    def clear(self):
        self.frames.clear()


class InMemoryUserStore:
    def __init__(self):
        self.users: Dict[str, dict] = {}

    def find_by_username(self, username: str) -> Optional[dict]:
        record = self.users.get(username)
        return dict(record, assessments=list(record["assessments"])) if record else None

    def insert(self, record: dict) -> bool:
        if record["username"] in self.users:
            return False
        self.users[record["username"]] = dict(record, assessments=[])
        return True

    def update_first_time_flag(self, username: str, first_time_user: bool) -> bool:
        if username not in self.users:
            return False
        self.users[username]["first_time_user"] = first_time_user
        return True

    def append_assessment(self, username: str, assessment: dict) -> bool:
        if username not in self.users:
            return False
        self.users[username]["assessments"].append(assessment)
        return True


@pytest.fixture
def deliverer():
    return RecordingDeliverer()


@pytest.fixture
def registry():
    return RoomRegistry()


@pytest.fixture
def broadcaster(registry, deliverer):
    return BroadcastEngine(registry, deliverer)


@pytest.fixture
def directory(registry, deliverer):
    return DirectoryPublisher(registry, deliverer)


@pytest.fixture
def presence(registry, broadcaster, directory):
    return PresenceManager(registry, broadcaster, directory)


@pytest.fixture
def gateway(registry, deliverer):
    return ConnectionGateway(registry, deliverer)


@pytest.fixture
def user_store():
    return InMemoryUserStore()


class FakeReplyGenerator:
    def __init__(self, reply: str = "You are not alone.", error: Exception = None):
        self.reply = reply
        self.error = error
        self.prompts: List[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def reply_generator():
    return FakeReplyGenerator()
