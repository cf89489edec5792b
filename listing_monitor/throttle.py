import threading


class NoThrottle:
    def throttle(self, cancel: threading.Event | None = None) -> None:
        return None


class FixedDelayThrottle:
    """Fixed pause between probes so the store doesn't flag us as a bot."""

    def __init__(self, delay_ms: int = 1000):
        self.delay_seconds = max(0, delay_ms) / 1000.0

    def throttle(self, cancel: threading.Event | None = None) -> None:
        if self.delay_seconds <= 0:
            return
        # Waiting on the run's event lets a cancellation cut the pause short
        (cancel or threading.Event()).wait(self.delay_seconds)
