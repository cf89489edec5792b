class ListingWatchError(Exception):
    """Base class for everything the monitor raises on purpose."""


class ConfigurationError(ListingWatchError):
    """Secret or store settings are missing or malformed."""


class AuthorizationError(ListingWatchError):
    """The trigger did not present the shared secret."""


class LoadError(ListingWatchError):
    """The watch-list could not be read."""


class ProbeError(ListingWatchError):
    """A listing check failed in transport (timeout, DNS, reset, ...)."""


class PersistenceError(ListingWatchError):
    """A status update or alert insert failed after a decided transition."""
