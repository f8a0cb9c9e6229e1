"""
Event router: consumes each camera's ding stream and turns every ding into a
snapshot plus a PiPup notification.

Dings are handled in their own tasks, so events from different cameras (or
rapid repeats from one camera) run concurrently with no ordering guarantee.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path

from ring_tv_bridge.constants import (
    APP_NAME,
    DEFAULT_EVENT_TEXT,
    ERROR_IMAGE_PATH,
    EVENT_TEXT,
    START_NOTIFICATION_MESSAGE,
)
from ring_tv_bridge.errors import ConfigWriteError, SnapshotError, SubscriptionError
from ring_tv_bridge.models import Camera, Ding, Location
from ring_tv_bridge.services.ding_source import DingSource, DingStream
from ring_tv_bridge.services.notifier import PiPupNotifier
from ring_tv_bridge.services.snapshot import SnapshotFetcher

logger = logging.getLogger("ring-tv-bridge")


def classify(kind: str, camera_name: str) -> tuple[str, str, str]:
    """Return (log label, notification title, notification message) for a ding kind."""
    label, title, message = EVENT_TEXT.get(kind, DEFAULT_EVENT_TEXT)
    return label.format(kind=kind), title, message.format(name=camera_name)


class EventRouter:
    """Subscribes every camera and notifies on each ding."""

    def __init__(
        self,
        notifier: PiPupNotifier,
        fetcher: SnapshotFetcher,
        error_image: str | Path = ERROR_IMAGE_PATH,
    ) -> None:
        self._notifier = notifier
        self._fetcher = fetcher
        self._error_image = Path(error_image)
        self._pending: set[asyncio.Task] = set()
        # Set by a ding handler that failed to persist a rotated token; ends run().
        self._fatal: asyncio.Future | None = None

    async def handle_ding(self, location: Location, camera: Camera, ding: Ding) -> None:
        """Fetch a snapshot for one ding and notify with it (or the error image)."""
        label, title, message = classify(ding.kind, camera.name)
        logger.info("%s on %s camera (%s).", label, camera.name, location.name)

        try:
            snapshot = await self._fetcher.fetch(camera)
        except SnapshotError as e:
            # Most often an expired token or a battery camera slow to wake.
            logger.error("Unable to get snapshot: %s", e)
            await self._notifier.notify(title, message, self._error_image)
            return

        try:
            await self._notifier.notify(title, message, snapshot.path)
        finally:
            snapshot.discard()

    def _spawn(self, location: Location, camera: Camera, ding: Ding) -> None:
        task = asyncio.create_task(self.handle_ding(location, camera, ding))
        self._pending.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled() or task.exception() is None:
            return
        error = task.exception()
        if isinstance(error, ConfigWriteError) and self._fatal is not None:
            if not self._fatal.done():
                self._fatal.set_exception(error)
            return
        logger.error("Ding handler failed: %s", error, exc_info=error)

    async def consume(self, location: Location, camera: Camera, stream: DingStream) -> None:
        """Handle every ding from one camera until its stream ends or fails."""
        try:
            async for ding in stream:
                self._spawn(location, camera, ding)
        except SubscriptionError as e:
            logger.error("Error subscribing to %s %s: %s", location.name, camera.name, e)
            return
        # Streams are expected to run forever.
        logger.warning("Subscription complete for %s %s.", location.name, camera.name)

    async def run(
        self,
        locations: list[Location],
        source: DingSource,
        notify_on_start: bool = False,
        start_source: Callable[[DingSource], Awaitable[None]] | None = None,
    ) -> None:
        """Subscribe every Location x Camera and consume until all streams end.

        start_source, if given, is awaited after all subscriptions exist so no
        ding published on start-up is dropped.

        Raises:
            ConfigWriteError: if a ding handler could not save a rotated
                refresh token. Remaining consumers and handlers are cancelled.
        """
        self._fatal = asyncio.get_running_loop().create_future()
        consumers = []
        for location in locations:
            logger.info("Found location: %s", location.name)
            for camera in location.cameras:
                logger.info("\t - Found %s named %s.", camera.model, camera.name)
                stream = source.subscribe(camera)
                consumers.append(asyncio.create_task(self.consume(location, camera, stream)))

        if start_source is not None:
            await start_source(source)

        if notify_on_start:
            await self._notifier.notify(APP_NAME, START_NOTIFICATION_MESSAGE)

        streams = asyncio.gather(*consumers)
        await asyncio.wait({streams, self._fatal}, return_when=asyncio.FIRST_COMPLETED)
        if not self._fatal.done() and self._pending:
            handlers = asyncio.gather(*list(self._pending), return_exceptions=True)
            await asyncio.wait({handlers, self._fatal}, return_when=asyncio.FIRST_COMPLETED)

        if self._fatal.done():
            streams.cancel()
            for task in list(self._pending):
                task.cancel()
            raise self._fatal.exception()
        self._fatal.cancel()
        streams.result()

    @property
    def pending_count(self) -> int:
        return len(self._pending)
