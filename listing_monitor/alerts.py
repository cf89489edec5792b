import logging
from datetime import datetime

from listing_monitor.models import DEFAULT_ALERT_GROUP, AlertEvent, WatchedApp
from listing_monitor.store import AppStore

logger = logging.getLogger(__name__)


def make_alert_event(app: WatchedApp, at: datetime) -> AlertEvent:
    return AlertEvent(
        app_name=app.name,
        package_id=app.package_id,
        platform=app.platform,
        region=app.region,
        alert_group=(app.alert_group or "").strip() or DEFAULT_ALERT_GROUP,
        alert_time=at,
    )


class AlertRecorder:
    def __init__(self, store: AppStore):
        self.store = store

    def record(self, app: WatchedApp, at: datetime) -> AlertEvent:
        """
        Append one alert row for a confirmed removal.

        Raises PersistenceError if the insert fails. The caller has already
        marked the app Removed and that update is not rolled back, so a
        failure here leaves a Removed app without an alert row.
        """
        event = make_alert_event(app, at)
        self.store.insert_alert(event)
        logger.info("Recorded alert for %s in group %s", app.package_id, event.alert_group)
        return event
