"""Service modules.

ring_session is not re-exported here; it imports the Ring SDK and is loaded
only by the entry point.
"""

from ring_tv_bridge.services.ding_source import DingSource, DingStream
from ring_tv_bridge.services.notifier import PiPupNotifier
from ring_tv_bridge.services.router import EventRouter
from ring_tv_bridge.services.snapshot import SnapshotFetcher

__all__ = [
    "DingSource",
    "DingStream",
    "EventRouter",
    "PiPupNotifier",
    "SnapshotFetcher",
]
