"""
Shared constants for the PiPup wire format, notification styling, and event text.

Centralizes the receiver port, multipart field defaults, and the per-kind
title/message templates so the notifier, router, and entry point do not
duplicate magic strings.
"""

from pathlib import Path

APP_NAME: str = "ring-tv-bridge"

# PiPup listens on a fixed port; the path is always /notify.
RECEIVER_PORT: int = 7979
RECEIVER_URL_TEMPLATE: str = "http://{host}:{port}/notify"

# Display time for notifications, in seconds (DISPLAY_TIME env overrides).
DEFAULT_DISPLAY_TIME: int = 12

# PiPup overlay styling; sent with every notification.
NOTIFICATION_POSITION: int = 0
TITLE_COLOR: str = "#0066cc"
TITLE_SIZE: int = 20
MESSAGE_COLOR: str = "#000000"
MESSAGE_SIZE: int = 14
BACKGROUND_COLOR: str = "#ffffff"
IMAGE_WIDTH: int = 640

# Ring push/refresh cadence. Values below 5 have been seen to invalidate the
# refresh token, so config only warns when it is lowered.
DEFAULT_POLLING_SECONDS: int = 5

SNAPSHOT_PREFIX: str = "snapshot-"
SNAPSHOT_SUFFIX: str = ".png"

# Shown in place of a snapshot when the camera does not return one.
ERROR_IMAGE_PATH: Path = Path(__file__).resolve().parent / "assets" / "error.png"

# Ding kind -> (log label, notification title, message template).
DING_KIND_MOTION: str = "motion"
DING_KIND_DOORBELL: str = "ding"

EVENT_TEXT: dict[str, tuple[str, str, str]] = {
    DING_KIND_MOTION: ("Motion detected", "Motion Detected", "Motion detected at {name}!"),
    DING_KIND_DOORBELL: ("Doorbell pressed", "Doorbell Ring", "Doorbell rung at {name}!"),
}
DEFAULT_EVENT_TEXT: tuple[str, str, str] = (
    "Video started ({kind})",
    "Video Started",
    "Video started at {name}",
)

START_NOTIFICATION_MESSAGE: str = "Ring notifications started!"
TEST_TITLE: str = "Test Snapshot"
TEST_MESSAGE: str = "This is a test snapshot message!"
TEST_FAILED_TITLE: str = "Test Snapshot Failed"
TEST_FAILED_MESSAGE: str = "An error occurred trying to get a snapshot!"
