"""Shared fixtures: environment, a fresh SQLite database per test and fakes."""

from __future__ import annotations

import os
import pathlib
import sys
import tempfile

import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Settings are read when the package is first imported.
_DEFAULT_DB_DIR = tempfile.mkdtemp(prefix="church-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_DEFAULT_DB_DIR}/default.db"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["APP_TIMEZONE"] = "UTC"
for _name in ("VAPID_PUBLIC_KEY", "VAPID_PRIVATE_KEY"):
    os.environ.pop(_name, None)

from sqlalchemy.orm import sessionmaker  # noqa: E402

from church_app.application.use_cases.notifications import NotificationStore  # noqa: E402
from church_app.infrastructure.database import build_engine, initialize_database  # noqa: E402
from church_app.infrastructure.webpush import (  # noqa: E402
    PushDeliveryError,
    PushEndpointGoneError,
)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def session_factory(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'church.db'}")
    initialize_database(engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def store(session_factory):
    return NotificationStore(session_factory)


class FakeSender:
    """Records deliveries; endpoints listed in ``gone``/``broken`` fail."""

    def __init__(self, *, gone=(), broken=()):
        self.gone = set(gone)
        self.broken = set(broken)
        self.sent = []

    def send(self, subscription, payload, *, urgency="normal"):
        if subscription.endpoint in self.gone:
            raise PushEndpointGoneError(subscription.endpoint, 410)
        if subscription.endpoint in self.broken:
            raise PushDeliveryError("connection reset")
        self.sent.append((subscription.endpoint, payload, urgency))


@pytest.fixture
def fake_sender():
    return FakeSender()
