import logging
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from listing_monitor.errors import LoadError, PersistenceError
from listing_monitor.models import Alert, AlertEvent, App, WatchedApp

logger = logging.getLogger(__name__)


class AppStore:
    """
    The three store operations the monitor needs: list apps by status,
    update an app by id, insert an alert. One short session per call.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    def list_apps(self, status: str) -> list[WatchedApp]:
        try:
            with Session(self.engine) as session:
                rows = session.execute(
                    select(App).where(App.status == status).order_by(App.id)
                ).scalars().all()
                return [WatchedApp.from_row(r) for r in rows]
        except SQLAlchemyError as exc:
            raise LoadError(f"Could not load apps with status {status!r}: {exc}") from exc

    def update_app(self, app_id: int, last_check: datetime, status: str | None = None) -> None:
        values = {"last_check": last_check}
        if status is not None:
            values["status"] = status

        try:
            with Session(self.engine) as session:
                session.execute(update(App).where(App.id == app_id).values(**values))
                session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not update app {app_id}: {exc}") from exc

    def insert_alert(self, event: AlertEvent) -> None:
        try:
            with Session(self.engine) as session:
                session.add(
                    Alert(
                        app_name=event.app_name,
                        package_id=event.package_id,
                        platform=event.platform,
                        region=event.region,
                        alert_group=event.alert_group,
                        alert_time=event.alert_time,
                    )
                )
                session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not record alert for {event.package_id}: {exc}") from exc
