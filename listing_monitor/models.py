from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime

from listing_monitor.db import Base

STATUS_ONLINE = "Online"
STATUS_REMOVED = "Removed"

DEFAULT_ALERT_GROUP = "System"


class App(Base):
    __tablename__ = "apps"

    id = Column(Integer, primary_key=True)
    name = Column(String(256), nullable=False)
    package_id = Column(String(256), nullable=False)

    platform = Column(String(64), nullable=False)   # e.g. "Google Play"
    region = Column(String(64), nullable=True)
    alert_group = Column(String(128), nullable=True)

    status = Column(String(16), nullable=False, default=STATUS_ONLINE)
    last_check = Column(DateTime(), nullable=True)  # naive UTC

    created_at = Column(DateTime(), nullable=True)  # naive UTC, set by the dashboard


class Alert(Base):
    __tablename__ = "alerts"

    id = Column(Integer, primary_key=True)

    # Snapshot of the app at removal time; no FK so history survives edits
    app_name = Column(String(256), nullable=False)
    package_id = Column(String(256), nullable=False)
    platform = Column(String(64), nullable=False)
    region = Column(String(64), nullable=True)
    alert_group = Column(String(128), nullable=False, default=DEFAULT_ALERT_GROUP)

    alert_time = Column(DateTime(), nullable=False)  # naive UTC


@dataclass(frozen=True)
class WatchedApp:
    """Detached copy of an `apps` row handed to the prober and reconciler."""

    id: int
    name: str
    package_id: str
    platform: str
    region: str | None = None
    alert_group: str | None = None
    status: str = STATUS_ONLINE
    last_check: datetime | None = None

    @classmethod
    def from_row(cls, row: App) -> "WatchedApp":
        return cls(
            id=row.id,
            name=row.name,
            package_id=row.package_id,
            platform=row.platform,
            region=row.region,
            alert_group=row.alert_group,
            status=row.status,
            last_check=row.last_check,
        )


@dataclass(frozen=True)
class AlertEvent:
    app_name: str
    package_id: str
    platform: str
    region: str | None
    alert_group: str
    alert_time: datetime


@dataclass(frozen=True)
class CheckResult:
    id: int
    name: str
    status: str | None = None
    error: str | None = None

    @classmethod
    def online(cls, app: WatchedApp) -> "CheckResult":
        return cls(id=app.id, name=app.name, status=STATUS_ONLINE)

    @classmethod
    def removed(cls, app: WatchedApp) -> "CheckResult":
        return cls(id=app.id, name=app.name, status=STATUS_REMOVED)

    @classmethod
    def failed(cls, app: WatchedApp, message: str) -> "CheckResult":
        return cls(id=app.id, name=app.name, error=message)

    def as_dict(self) -> dict:
        out = {"id": self.id, "name": self.name}
        if self.error is not None:
            out["error"] = self.error
        else:
            out["status"] = self.status
        return out
