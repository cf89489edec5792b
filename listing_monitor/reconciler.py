import logging
from datetime import datetime
from typing import Callable

from listing_monitor.alerts import AlertRecorder
from listing_monitor.db import utcnow_naive
from listing_monitor.errors import ProbeError
from listing_monitor.models import STATUS_REMOVED, CheckResult, WatchedApp
from listing_monitor.notify import NullNotifier
from listing_monitor.store import AppStore

logger = logging.getLogger(__name__)


class Reconciler:
    def __init__(
        self,
        store: AppStore,
        recorder: AlertRecorder,
        notifier=None,
        clock: Callable[[], datetime] = utcnow_naive,
    ):
        self.store = store
        self.recorder = recorder
        self.notifier = notifier or NullNotifier()
        self.clock = clock

    def reconcile(self, app: WatchedApp, liveness: bool | ProbeError) -> CheckResult:
        """
        Apply one probe outcome to the store.

        A ProbeError leaves the row untouched. Both updates are keyed by id
        and safe to repeat; repeating a removal does add a second alert row.
        """
        if isinstance(liveness, ProbeError):
            logger.error("Probe failed for app %s: %s", app.id, liveness)
            return CheckResult.failed(app, str(liveness))

        now = self.clock()

        if liveness:
            self.store.update_app(app.id, last_check=now)
            return CheckResult.online(app)

        logger.warning("[Alert] App %s (%s) seems to be removed.", app.name, app.package_id)
        self.store.update_app(app.id, last_check=now, status=STATUS_REMOVED)
        event = self.recorder.record(app, now)
        try:
            self.notifier.send(app, event)
        except Exception:
            # The removal and its alert row are already stored
            logger.exception("Notifier failed for %s", app.package_id)
        return CheckResult.removed(app)
