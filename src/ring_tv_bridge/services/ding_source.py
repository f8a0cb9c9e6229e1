"""Per-camera async ding streams.

The Ring SDK delivers events through a push callback. DingSource turns that
into one async iterator per camera so the router can consume events with
``async for`` and be tested with synthetic dings.
"""

import asyncio
import logging

from ring_tv_bridge.errors import SubscriptionError
from ring_tv_bridge.models import Camera, Ding

logger = logging.getLogger("ring-tv-bridge")

_END = object()


class DingStream:
    """Async iterator over one camera's dings.

    Ends when closed; raises SubscriptionError once the upstream has failed.
    """

    def __init__(self, camera_id: int) -> None:
        self.camera_id = camera_id
        self._queue: asyncio.Queue = asyncio.Queue()
        self._finished = False

    def put(self, ding: Ding) -> None:
        if not self._finished:
            self._queue.put_nowait(ding)

    def fail(self, error: BaseException) -> None:
        if not self._finished:
            self._finished = True
            self._queue.put_nowait(error)

    def close(self) -> None:
        if not self._finished:
            self._finished = True
            self._queue.put_nowait(_END)

    def __aiter__(self) -> "DingStream":
        return self

    async def __anext__(self) -> Ding:
        item = await self._queue.get()
        if item is _END:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            if isinstance(item, SubscriptionError):
                raise item
            raise SubscriptionError(str(item)) from item
        return item


class DingSource:
    """Routes published dings to the streams subscribed for their camera."""

    def __init__(self) -> None:
        self._streams: dict[int, list[DingStream]] = {}

    def subscribe(self, camera: Camera) -> DingStream:
        stream = DingStream(camera.id)
        self._streams.setdefault(camera.id, []).append(stream)
        return stream

    def publish(self, ding: Ding) -> None:
        streams = self._streams.get(ding.camera_id)
        if not streams:
            logger.debug("Dropping %s ding for unsubscribed camera %s", ding.kind, ding.camera_id)
            return
        for stream in streams:
            stream.put(ding)

    def fail(self, error: BaseException) -> None:
        """End every stream with an error."""
        for streams in self._streams.values():
            for stream in streams:
                stream.fail(error)

    def close(self) -> None:
        for streams in self._streams.values():
            for stream in streams:
                stream.close()

    @property
    def subscription_count(self) -> int:
        return sum(len(s) for s in self._streams.values())
