"""
Shared fixtures: in-memory database, gate store, recording broadcast channel.
"""
from contextlib import contextmanager

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import StaticPool

from config.settings import CREATURE_NAMES
from kernel.src.db_session import DatabaseManager
from drop_gate.src.announcer import Announcer, StaticNameResolver
from drop_gate.src.drop_config import DropConfig
from drop_gate.src.gate_store import GateStore
from drop_gate.src.orchestrator import DropGateService
from drop_gate.src.roll_engine import RollEngine


def memory_engine():
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )


class FlakyDatabase(DatabaseManager):
    """In-memory database whose sessions can be made to fail on demand."""

    def __init__(self):
        super().__init__(url="sqlite://", engine=memory_engine())
        self.failing = False

    def ensure_schema(self):
        if self.failing:
            raise OperationalError("CREATE TABLE", {}, Exception("connection lost"))
        super().ensure_schema()

    @contextmanager
    def session_scope(self):
        if self.failing:
            raise OperationalError("SELECT", {}, Exception("connection lost"))
        with super().session_scope() as session:
            yield session


class RecordingChannel:
    def __init__(self):
        self.messages = []

    def send_server_wide_message(self, text):
        self.messages.append(text)


class FixedClock:
    def __init__(self, now=1_700_000_000):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def db():
    manager = FlakyDatabase()
    yield manager
    manager.close()


@pytest.fixture
def store(db):
    return GateStore(db)


@pytest.fixture
def channel():
    return RecordingChannel()


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def make_service(store, channel, clock):
    def _make(seed=7, **config_fields):
        service = DropGateService(
            store=store,
            announcer=Announcer(channel),
            name_resolver=StaticNameResolver(CREATURE_NAMES),
            roll_engine=RollEngine.from_seed(seed),
            clock=clock
        )
        service.on_config_loaded(DropConfig(**config_fields))
        return service

    return _make
