"""Fetch a still image from a camera and save it for the notifier."""

import asyncio
import logging
import os
import tempfile
from pathlib import Path

from ring_tv_bridge.constants import SNAPSHOT_PREFIX, SNAPSHOT_SUFFIX
from ring_tv_bridge.errors import ConfigWriteError, SnapshotError
from ring_tv_bridge.models import Camera, Snapshot

logger = logging.getLogger("ring-tv-bridge")


class SnapshotFetcher:
    """Saves each snapshot to its own file so concurrent events never share one."""

    def __init__(self, snapshot_dir: str | Path | None = None) -> None:
        self._snapshot_dir = Path(snapshot_dir) if snapshot_dir else Path(tempfile.gettempdir())

    async def fetch(self, camera: Camera) -> Snapshot:
        """Get a snapshot from camera and write it to a new file.

        Battery cameras that take too long to wake, and expired sessions, are
        the usual causes of failure.

        Raises:
            SnapshotError: if the camera returns nothing, the SDK call fails,
                or the file cannot be written.
            ConfigWriteError: if the SDK rotated the refresh token during the
                call and the env file could not be updated.
        """
        try:
            data = await camera.async_get_snapshot()
        except ConfigWriteError:
            raise
        except Exception as e:
            raise SnapshotError(f"Unable to retrieve snapshot from {camera.name}: {e}") from e
        if not data:
            raise SnapshotError(f"Camera {camera.name} returned no snapshot")

        logger.info("Snapshot size: %s kb", len(data) // 1024)

        try:
            path = await asyncio.to_thread(self._write, data)
        except OSError as e:
            raise SnapshotError(f"Unable to save snapshot for {camera.name}: {e}") from e

        logger.debug("Snapshot saved to %s", path)
        return Snapshot(path=path, size=len(data))

    def _write(self, data: bytes) -> Path:
        self._snapshot_dir.mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(
            prefix=SNAPSHOT_PREFIX, suffix=SNAPSHOT_SUFFIX, dir=self._snapshot_dir
        )
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
        except OSError:
            Path(name).unlink(missing_ok=True)
            raise
        return Path(name)
