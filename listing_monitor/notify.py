import logging
import threading

import requests

from listing_monitor.config import Settings
from listing_monitor.models import AlertEvent, WatchedApp

logger = logging.getLogger(__name__)


class NullNotifier:
    def send(self, app: WatchedApp, event: AlertEvent) -> None:
        return None


class WebhookNotifier:
    """Posts a markdown message to an incoming webhook when an app disappears."""

    def __init__(
        self,
        webhook_url: str,
        session: requests.Session | None = None,
        timeout: float = 5,
        background: bool = True,
    ):
        self.webhook_url = webhook_url
        self.session = session or requests.Session()
        self.timeout = timeout
        self.background = background

    def format_message(self, app: WatchedApp, event: AlertEvent) -> str:
        return (
            f"**App Removed Alert**\n"
            f"- Name: {event.app_name}\n"
            f"- ID: `{event.package_id}`\n"
            f"- Platform: {event.platform}\n"
            f"- Region: {event.region or '-'}\n"
            f"- Group: {event.alert_group}\n"
            f"- Time (UTC): {event.alert_time.isoformat()}"
        )

    def post(self, markdown: str) -> None:
        resp = self.session.post(
            self.webhook_url,
            json={"markdown": markdown},
            timeout=self.timeout,
        )
        if resp.status_code >= 300:
            raise RuntimeError(f"Webhook error {resp.status_code}: {resp.text}")

    def deliver(self, app: WatchedApp, event: AlertEvent) -> None:
        # Best effort: the alert row is already stored, so a failed post is only logged
        try:
            self.post(self.format_message(app, event))
        except (requests.RequestException, RuntimeError):
            logger.warning("Notification for %s failed", event.package_id, exc_info=True)

    def send(self, app: WatchedApp, event: AlertEvent) -> threading.Thread | None:
        """Deliver on a daemon thread so a slow webhook never holds up the batch."""
        if not self.background:
            self.deliver(app, event)
            return None

        worker = threading.Thread(
            target=self.deliver,
            args=(app, event),
            name=f"notify-{event.package_id}",
            daemon=True,
        )
        worker.start()
        return worker


def build_notifier(settings: Settings):
    if settings.notifications_enabled and settings.notify_webhook_url:
        return WebhookNotifier(settings.notify_webhook_url)
    if settings.notifications_enabled:
        logger.warning("NOTIFICATIONS_ENABLED is set but NOTIFY_WEBHOOK_URL is empty; notifications stay off")
    return NullNotifier()
