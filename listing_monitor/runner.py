import hmac
import logging
import threading
from typing import Mapping

from listing_monitor.alerts import AlertRecorder
from listing_monitor.config import Settings
from listing_monitor.errors import AuthorizationError, ProbeError
from listing_monitor.models import STATUS_ONLINE, STATUS_REMOVED, CheckResult
from listing_monitor.notify import build_notifier
from listing_monitor.prober import ListingProber
from listing_monitor.reconciler import Reconciler
from listing_monitor.store import AppStore
from listing_monitor.throttle import FixedDelayThrottle

logger = logging.getLogger(__name__)

NOTHING_TO_DO = {"message": "No apps to monitor"}


def bearer_token(headers: Mapping[str, str]) -> str | None:
    """Pull the token out of an Authorization header, matching the name case-insensitively."""
    value = None
    for name, v in headers.items():
        if name.lower() == "authorization":
            value = v
            break
    if not value:
        return None

    scheme, _, token = value.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


class BatchRunner:
    def __init__(
        self,
        settings: Settings,
        store: AppStore,
        prober: ListingProber,
        reconciler: Reconciler,
        throttle=None,
    ):
        self.settings = settings
        self.store = store
        self.prober = prober
        self.reconciler = reconciler
        self.throttle = throttle or FixedDelayThrottle(settings.probe_delay_ms)

    def authorize(self, headers: Mapping[str, str]) -> None:
        secret = self.settings.require_secret()
        token = bearer_token(headers)
        if token is None or not hmac.compare_digest(token.encode("utf-8"), secret.encode("utf-8")):
            raise AuthorizationError("Unauthorized")

    def check_app(self, app) -> CheckResult:
        try:
            liveness = self.prober.probe(app)
        except ProbeError as exc:
            liveness = exc
        return self.reconciler.reconcile(app, liveness)

    def run(self, headers: Mapping[str, str], cancel: threading.Event | None = None) -> dict:
        """
        One batch: authorize, load Online apps, check them one by one.

        Raises ConfigurationError, AuthorizationError or LoadError before any
        app is touched. Per-app failures end up in that app's result.
        """
        self.authorize(headers)

        apps = self.store.list_apps(STATUS_ONLINE)
        if not apps:
            logger.info("No apps to monitor")
            return dict(NOTHING_TO_DO)

        logger.info("Checking %d app(s)", len(apps))
        results: list[CheckResult] = []
        cancelled = False

        for i, app in enumerate(apps):
            if cancel is not None and cancel.is_set():
                cancelled = True
                break

            try:
                result = self.check_app(app)
            except Exception as exc:
                logger.exception("Error checking app %s", app.id)
                result = CheckResult.failed(app, str(exc))
            results.append(result)

            # Pause between apps, not after the last one
            if i < len(apps) - 1:
                self.throttle.throttle(cancel)

        summary = {
            "success": True,
            "checked": len(results) if cancelled else len(apps),
            "results": [r.as_dict() for r in results],
        }
        if cancelled:
            summary["cancelled"] = True
            logger.warning("Run cancelled after %d of %d app(s)", len(results), len(apps))

        removed = sum(1 for r in results if r.status == STATUS_REMOVED)
        failed = sum(1 for r in results if r.error is not None)
        logger.info("Checked %d app(s): %d removed, %d failed", len(results), removed, failed)
        return summary


def build_runner(settings: Settings, engine) -> BatchRunner:
    store = AppStore(engine)
    prober = ListingProber(
        timeout=settings.probe_timeout_seconds,
        user_agent=settings.probe_user_agent,
    )
    reconciler = Reconciler(store, AlertRecorder(store), notifier=build_notifier(settings))
    return BatchRunner(settings, store, prober, reconciler)
