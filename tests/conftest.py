from __future__ import annotations

from datetime import datetime

import pytest
import requests
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from listing_monitor.alerts import AlertRecorder
from listing_monitor.config import Settings
from listing_monitor.db import Base
from listing_monitor.models import STATUS_ONLINE, Alert, App, WatchedApp
from listing_monitor.prober import ListingProber
from listing_monitor.reconciler import Reconciler
from listing_monitor.runner import BatchRunner
from listing_monitor.store import AppStore
from listing_monitor.throttle import NoThrottle

SECRET = "test-secret"
AUTH = {"Authorization": f"Bearer {SECRET}"}


class FakeResponse:
    def __init__(self, status_code: int, text: str = ""):
        self.status_code = status_code
        self.text = text


class FakeHttp:
    """Stands in for requests.Session; replays canned responses or raises."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def _next(self):
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return FakeResponse(outcome) if isinstance(outcome, int) else outcome

    def get(self, url, **kwargs):
        self.calls.append(("GET", url, kwargs))
        return self._next()

    def post(self, url, **kwargs):
        self.calls.append(("POST", url, kwargs))
        return self._next()


@pytest.fixture()
def engine():
    eng = create_engine(
        "sqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture()
def store(engine):
    return AppStore(engine)


@pytest.fixture()
def add_app(engine):
    """Insert an `apps` row and return it as a WatchedApp."""

    def _add(**fields) -> WatchedApp:
        row = App(
            name=fields.pop("name", "Example"),
            package_id=fields.pop("package_id", "com.x"),
            platform=fields.pop("platform", "Google Play"),
            region=fields.pop("region", "US"),
            alert_group=fields.pop("alert_group", None),
            status=fields.pop("status", STATUS_ONLINE),
            last_check=fields.pop("last_check", None),
            **fields,
        )
        with Session(engine) as session:
            session.add(row)
            session.commit()
            return WatchedApp.from_row(row)

    return _add


@pytest.fixture()
def get_app(engine):
    def _get(app_id: int) -> App:
        with Session(engine) as session:
            return session.get(App, app_id)

    return _get


@pytest.fixture()
def all_alerts(engine):
    def _all() -> list[Alert]:
        with Session(engine) as session:
            return session.execute(select(Alert).order_by(Alert.id)).scalars().all()

    return _all


@pytest.fixture()
def settings():
    return Settings(cron_secret=SECRET, database_url="sqlite:///:memory:", probe_delay_ms=0)


@pytest.fixture()
def clock():
    return lambda: datetime(2026, 10, 18, 12, 0, 0)


@pytest.fixture()
def make_runner(settings, store, clock):
    def _make(http=None, store_override=None, throttle=None, notifier=None, settings_override=None):
        s = store_override or store
        prober = ListingProber(session=http or FakeHttp(200), timeout=5)
        reconciler = Reconciler(s, AlertRecorder(s), notifier=notifier, clock=clock)
        return BatchRunner(settings_override or settings, s, prober, reconciler, throttle=throttle or NoThrottle())

    return _make


@pytest.fixture()
def timeout_error():
    return requests.Timeout("Read timed out. (read timeout=5)")
