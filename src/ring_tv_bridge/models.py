"""Data models shared by the notifier, snapshot fetcher, and event router."""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import NotRequired, Protocol, TypedDict, runtime_checkable

from ring_tv_bridge.constants import (
    BACKGROUND_COLOR,
    DEFAULT_DISPLAY_TIME,
    IMAGE_WIDTH,
    MESSAGE_COLOR,
    MESSAGE_SIZE,
    NOTIFICATION_POSITION,
    TITLE_COLOR,
    TITLE_SIZE,
)


@runtime_checkable
class Camera(Protocol):
    """A Ring video device as seen by the router and snapshot fetcher."""
    id: int
    name: str
    model: str

    async def async_get_snapshot(self) -> bytes | None:
        ...


@dataclass
class Location:
    """A Ring location and the cameras found there at session start."""
    id: str
    name: str
    cameras: list[Camera] = field(default_factory=list)


@dataclass(frozen=True)
class Ding:
    """A single camera event (motion, doorbell press, or other)."""
    id: str
    kind: str
    camera_id: int
    created_at: float = field(default_factory=time.time)


@dataclass(frozen=True)
class TokenRotation:
    """Refresh token change reported by the Ring SDK. old_token is None on first issue."""
    new_token: str
    old_token: str | None = None


@dataclass
class Snapshot:
    """A snapshot saved to disk for one notification."""
    path: Path
    size: int

    def discard(self) -> None:
        self.path.unlink(missing_ok=True)


@dataclass
class Notification:
    """One PiPup overlay: text, optional image, and display styling."""
    title: str
    message: str
    image_path: Path | None = None
    duration: int = DEFAULT_DISPLAY_TIME
    position: int = NOTIFICATION_POSITION
    title_color: str = TITLE_COLOR
    title_size: int = TITLE_SIZE
    message_color: str = MESSAGE_COLOR
    message_size: int = MESSAGE_SIZE
    background_color: str = BACKGROUND_COLOR
    image_width: int = IMAGE_WIDTH

    def form_fields(self) -> dict[str, str | int]:
        """Multipart text fields in PiPup's naming (image is sent separately)."""
        return {
            "duration": self.duration,
            "position": self.position,
            "title": self.title,
            "titleColor": self.title_color,
            "titleSize": self.title_size,
            "message": self.message,
            "messageColor": self.message_color,
            "messageSize": self.message_size,
            "backgroundColor": self.background_color,
            "imageWidth": self.image_width,
        }


class NotificationResult(TypedDict):
    """Outcome of sending one notification to one receiver endpoint."""

    endpoint: str
    status: str  # "success" or "failure"
    message: NotRequired[str | None]
