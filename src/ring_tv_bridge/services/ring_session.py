"""
Ring cloud session: authentication, refresh token rotation, device discovery,
and push event delivery.

Wraps ring_doorbell so the rest of the bridge only sees Location/Camera/Ding
models and a DingSource. The session is created and owned by the entry point
and passed to whatever needs it.
"""

import asyncio
import json
import logging
import os
from collections.abc import Callable
from typing import Any

from ring_doorbell import Auth, Ring
from ring_doorbell.listen import RingEventListener

from ring_tv_bridge.constants import APP_NAME, DEFAULT_POLLING_SECONDS
from ring_tv_bridge.errors import ConfigWriteError, LocationFetchError, SubscriptionError
from ring_tv_bridge.models import Ding, Location, TokenRotation
from ring_tv_bridge.services.ding_source import DingSource

logger = logging.getLogger("ring-tv-bridge")

USER_AGENT = f"{APP_NAME}/1.0"
DEFAULT_LOCATION_ID = "default"


class RingCamera:
    """Adapts a ring_doorbell video device to the Camera protocol."""

    def __init__(self, device: Any) -> None:
        self._device = device
        self.id = device.id
        self.name = device.name
        self.model = device.model

    async def async_get_snapshot(self) -> bytes | None:
        return await self._device.async_get_snapshot()

    def __repr__(self) -> str:
        return f"RingCamera(id={self.id!r}, name={self.name!r})"


def group_locations(devices: list[Any]) -> list[Location]:
    """Group video devices into Locations, in the order locations are first seen."""
    locations: dict[str, Location] = {}
    for device in devices:
        location_id = getattr(device, "location_id", None) or DEFAULT_LOCATION_ID
        location = locations.get(location_id)
        if location is None:
            name = getattr(device, "address", None) or location_id
            location = Location(id=location_id, name=name)
            locations[location_id] = location
        location.cameras.append(RingCamera(device))
    return list(locations.values())


class RingSession:
    """Explicit handle on one authenticated Ring API session."""

    def __init__(
        self,
        refresh_token: str,
        on_token_rotated: Callable[[TokenRotation], None],
        polling_seconds: int = DEFAULT_POLLING_SECONDS,
        push_credentials_file: str = "",
    ) -> None:
        self._refresh_token = refresh_token
        self._on_token_rotated = on_token_rotated
        self._polling_seconds = polling_seconds
        self._push_credentials_file = push_credentials_file
        self._auth: Auth | None = None
        self._ring: Ring | None = None
        self._listener: RingEventListener | None = None
        self._watchdog: asyncio.Task | None = None

    @classmethod
    def from_config(cls, config: dict, on_token_rotated: Callable[[TokenRotation], None]) -> "RingSession":
        return cls(
            config["API_TOKEN"],
            on_token_rotated,
            polling_seconds=config["POLLING_SECONDS"],
            push_credentials_file=config["PUSH_CREDENTIALS_FILE"],
        )

    def _token_updated(self, token: dict) -> None:
        """Called by ring_doorbell every time it obtains a new token."""
        new_token = token.get("refresh_token")
        if not new_token or new_token == self._refresh_token:
            return
        rotation = TokenRotation(new_token=new_token, old_token=self._refresh_token)
        self._refresh_token = new_token
        self._on_token_rotated(rotation)

    async def _ensure_session(self) -> Ring:
        if self._ring is None:
            self._auth = Auth(USER_AGENT, {"refresh_token": self._refresh_token}, self._token_updated)
            await self._auth.async_refresh_tokens()
            self._ring = Ring(self._auth)
        return self._ring

    async def async_get_locations(self) -> list[Location]:
        """Load devices from Ring and return them grouped by location.

        Raises:
            LocationFetchError: on any authentication or API failure.
            ConfigWriteError: if a rotated refresh token could not be saved.
        """
        try:
            ring = await self._ensure_session()
            await ring.async_update_data()
            devices = list(ring.video_devices())
        except ConfigWriteError:
            raise
        except Exception as e:
            raise LocationFetchError(str(e)) from e
        return group_locations(devices)

    # Push events

    def _load_push_credentials(self) -> dict | None:
        path = self._push_credentials_file
        if not path or not os.path.exists(path):
            return None
        try:
            with open(path, "r") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable push credentials %s: %s", path, e)
            return None

    def _save_push_credentials(self, credentials: dict) -> None:
        path = self._push_credentials_file
        if not path:
            return
        with open(path, "w") as f:
            json.dump(credentials, f)

    async def async_start_listening(self, source: DingSource) -> None:
        """Start Ring push notifications and publish each new ding to source."""
        ring = await self._ensure_session()

        def on_event(event: Any) -> None:
            if getattr(event, "is_update", False):
                return
            source.publish(Ding(id=str(event.id), kind=event.kind, camera_id=event.doorbot_id))

        self._listener = RingEventListener(
            ring, self._load_push_credentials(), self._save_push_credentials
        )
        self._listener.add_notification_callback(on_event)
        try:
            await self._listener.start()
        except ConfigWriteError:
            raise
        except Exception as e:
            source.fail(SubscriptionError(f"Ring push listener failed to start: {e}"))
            return
        if not self._listener.started:
            source.fail(SubscriptionError("Ring push listener failed to start"))
            return
        logger.info("Listening for Ring events")
        self._watchdog = asyncio.create_task(self._watch_listener(source))

    async def _watch_listener(self, source: DingSource) -> None:
        while True:
            await asyncio.sleep(self._polling_seconds)
            if self._listener is None or not self._listener.started:
                source.fail(SubscriptionError("Ring push listener stopped"))
                return

    async def async_close(self) -> None:
        if self._watchdog is not None:
            self._watchdog.cancel()
            self._watchdog = None
        if self._listener is not None:
            await self._listener.stop()
            self._listener = None
        if self._auth is not None:
            await self._auth.async_close()
