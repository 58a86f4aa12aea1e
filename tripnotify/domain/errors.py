"""Failure taxonomy for the notification flows.

None of these is fatal to the process: each one is confined to the event
(or the initialization attempt) that raised it.
"""


class NotificationError(Exception):
    """Base class for notification-flow failures."""


class ConfigurationMissing(NotificationError):
    """Push credentials are absent or unusable; dispatch must not start."""


class LookupFailure(NotificationError):
    """A user or trip read failed; the current event is skipped."""


class DispatchFailure(NotificationError):
    """The push provider rejected or failed a whole request."""
