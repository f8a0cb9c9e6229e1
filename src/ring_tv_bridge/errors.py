"""
Exception hierarchy for the bridge.

Every failure is either handled locally (logged, fallback notification,
exit code set) or ends the process; nothing is retried.
"""


class RingBridgeError(Exception):
    """Base exception for all bridge errors."""


class LocationFetchError(RingBridgeError):
    """Raised when locations/cameras cannot be listed from the Ring API."""


class SnapshotError(RingBridgeError):
    """Raised when a snapshot cannot be fetched from a camera or saved to disk."""


class NotifyTransportError(RingBridgeError):
    """Raised when a notification POST to one receiver endpoint fails."""

    def __init__(self, endpoint: str, message: str):
        super().__init__(message)
        self.endpoint = endpoint


class SubscriptionError(RingBridgeError):
    """Raised from a ding stream when its upstream subscription fails."""


class ConfigWriteError(RingBridgeError):
    """Raised when a rotated refresh token cannot be written to the env file."""
