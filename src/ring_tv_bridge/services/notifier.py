"""PiPup notifier.

Posts one multipart notification (title, message, optional image) to every
configured Android TV running PiPup. Sends fan out concurrently; a failing
receiver is logged and flips the process exit code but never stops delivery
to the others.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any

import requests

from ring_tv_bridge.constants import RECEIVER_PORT, RECEIVER_URL_TEMPLATE
from ring_tv_bridge.errors import NotifyTransportError
from ring_tv_bridge.models import Notification, NotificationResult

logger = logging.getLogger("ring-tv-bridge")

IMAGE_MIME = "image/png"


class PiPupNotifier:
    """Sends notifications to a fixed, ordered set of PiPup endpoints."""

    def __init__(
        self,
        endpoints: list[str],
        port: int = RECEIVER_PORT,
        display: dict[str, Any] | None = None,
    ) -> None:
        self._endpoints = list(endpoints)
        self._port = port
        self._display = dict(display or {})
        # 1 once any send has failed; used as the process exit status.
        self.exit_code = 0

    @classmethod
    def from_config(cls, config: dict) -> "PiPupNotifier":
        display = {
            "duration": config["DISPLAY_TIME"],
            "position": config["POSITION"],
            "title_color": config["TITLE_COLOR"],
            "title_size": config["TITLE_SIZE"],
            "message_color": config["MESSAGE_COLOR"],
            "message_size": config["MESSAGE_SIZE"],
            "background_color": config["BACKGROUND_COLOR"],
            "image_width": config["IMAGE_WIDTH"],
        }
        return cls(config["RECEIVERS"], port=config["RECEIVER_PORT"], display=display)

    @property
    def endpoints(self) -> list[str]:
        return list(self._endpoints)

    def url_for(self, endpoint: str) -> str:
        return RECEIVER_URL_TEMPLATE.format(host=endpoint, port=self._port)

    async def notify(
        self,
        title: str,
        message: str,
        image_path: str | Path | None = None,
        terminate_on_completion: bool = False,
    ) -> list[NotificationResult]:
        """Send one notification to every endpoint.

        If terminate_on_completion is set, SystemExit(exit_code) is raised as
        soon as the first endpoint resolves, whether it succeeded or not. With
        more than one endpoint the remaining sends may not complete.

        A send fails on a transport error or an HTTP status of 400 or above;
        failures are logged, recorded in the results and set exit_code to 1.
        """
        notification = Notification(
            title=title,
            message=message,
            image_path=Path(image_path) if image_path else None,
            **self._display,
        )
        fields = notification.form_fields()
        image = await self._read_image(notification.image_path)

        tasks = [
            asyncio.create_task(self._send_one(endpoint, notification, fields, image))
            for endpoint in self._endpoints
        ]
        results: list[NotificationResult] = []
        for next_done in asyncio.as_completed(tasks):
            results.append(await next_done)
            if terminate_on_completion:
                raise SystemExit(self.exit_code)
        return results

    async def _read_image(self, image_path: Path | None) -> bytes | None:
        if image_path is None:
            return None
        try:
            return await asyncio.to_thread(image_path.read_bytes)
        except OSError as e:
            logger.warning("Could not read notification image %s: %s", image_path, e)
            return None

    async def _send_one(
        self,
        endpoint: str,
        notification: Notification,
        fields: dict,
        image: bytes | None,
    ) -> NotificationResult:
        try:
            await asyncio.to_thread(self._post, endpoint, fields, notification.image_path, image)
        except NotifyTransportError as e:
            logger.error(
                "Error sending notification [%s]: %s - %s",
                endpoint,
                notification.title,
                notification.message,
            )
            logger.error("%s", e)
            self.exit_code = 1
            return {"endpoint": endpoint, "status": "failure", "message": str(e)}

        logger.info(
            "Sent notification successfully [%s]: %s - %s",
            endpoint,
            notification.title,
            notification.message,
        )
        return {"endpoint": endpoint, "status": "success"}

    def _post(
        self,
        endpoint: str,
        fields: dict,
        image_path: Path | None,
        image: bytes | None,
    ) -> None:
        """Blocking multipart POST; runs in a worker thread."""
        if image is not None:
            files = {"image": (image_path.name, image, IMAGE_MIME)}
        else:
            # Empty form field keeps the request multipart without an image.
            files = {"image": (None, "")}

        url = self.url_for(endpoint)
        try:
            resp = requests.post(url, data=fields, files=files)
        except requests.RequestException as e:
            raise NotifyTransportError(endpoint, str(e)) from e

        if resp.status_code >= 400:
            raise NotifyTransportError(
                endpoint, f"HTTP {resp.status_code}: {(resp.text or '')[:500]}"
            )
