import logging

import requests

from listing_monitor.config import DEFAULT_USER_AGENT
from listing_monitor.errors import ProbeError
from listing_monitor.models import WatchedApp

logger = logging.getLogger(__name__)

GOOGLE_PLAY = "Google Play"
GOOGLE_PLAY_DETAILS_URL = "https://play.google.com/store/apps/details"


class ListingProber:
    """
    Answers "is this app's listing still up?" for one WatchedApp.

    Checks are dispatched on ``app.platform``. Platforms without a check of
    their own fall through to ``assume_online``; adding a real check means
    adding an entry to ``checks``.

    Only a 404 counts as removed. Any other status, including a 5xx from the
    store, is reported as online, so a platform outage can hide a removal
    until the next run.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: float = 15.0,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        self.session = session or requests.Session()
        self.timeout = timeout
        self.headers = {"User-Agent": user_agent}
        self.checks = {
            GOOGLE_PLAY: self.check_google_play,
        }

    def probe(self, app: WatchedApp) -> bool:
        check = self.checks.get(app.platform, self.assume_online)
        return check(app)

    def assume_online(self, app: WatchedApp) -> bool:
        logger.debug("No listing check for platform %r; treating %s as online", app.platform, app.name)
        return True

    def check_google_play(self, app: WatchedApp) -> bool:
        package_id = (app.package_id or "").strip()
        if not package_id:
            raise ProbeError(f"App {app.id} has no package id")

        try:
            resp = self.session.get(
                GOOGLE_PLAY_DETAILS_URL,
                params={"id": package_id},
                headers=self.headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise ProbeError(f"Google Play request failed for {package_id}: {exc}") from exc

        # Google Play returns 404 for removed apps
        if resp.status_code == 404:
            return False

        if resp.status_code >= 300:
            logger.info("Google Play returned %s for %s; counting as online", resp.status_code, package_id)
        return True
