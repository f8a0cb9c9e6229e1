#!/usr/bin/env python3
"""
Ring to Android TV bridge - entry point.

Modes:
    ring-tv-bridge --list            list locations and cameras, then exit
    ring-tv-bridge --test [LOC,CAM]  send one test snapshot notification, then exit
    ring-tv-bridge                   listen for dings and notify until killed
"""

import argparse
import asyncio
import logging
import sys
from typing import Any

from ring_tv_bridge.config import load_config
from ring_tv_bridge.constants import (
    TEST_FAILED_MESSAGE,
    TEST_FAILED_TITLE,
    TEST_MESSAGE,
    TEST_TITLE,
)
from ring_tv_bridge.credentials import CredentialStore
from ring_tv_bridge.errors import LocationFetchError, SnapshotError
from ring_tv_bridge.logging_utils import setup_logging
from ring_tv_bridge.services.ding_source import DingSource
from ring_tv_bridge.services.notifier import PiPupNotifier
from ring_tv_bridge.services.router import EventRouter
from ring_tv_bridge.services.snapshot import SnapshotFetcher

# Early logging for config loading (reconfigured after config is loaded)
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %I:%M:%S %p",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger("ring-tv-bridge")


def parse_location_camera(value: str) -> tuple[int, int]:
    """Parse "LOC,CAM" into a pair of indices."""
    parts = value.split(",")
    if len(parts) != 2:
        raise argparse.ArgumentTypeError(f"expected LOC,CAM (e.g. 0,1), got {value!r}")
    try:
        location_index, camera_index = int(parts[0]), int(parts[1])
    except ValueError:
        raise argparse.ArgumentTypeError(f"LOC and CAM must be integers, got {value!r}")
    if location_index < 0 or camera_index < 0:
        raise argparse.ArgumentTypeError(f"LOC and CAM must not be negative, got {value!r}")
    return location_index, camera_index


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="ring-tv-bridge",
        description="Show Ring camera snapshots as PiPup overlays on Android TV.",
    )
    parser.add_argument(
        "--test",
        nargs="?",
        const=(0, 0),
        type=parse_location_camera,
        metavar="LOC,CAM",
        help="send one test snapshot from location LOC, camera CAM (default 0,0) and exit",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="list locations and cameras with their --test indices and exit",
    )
    return parser.parse_args(argv)


async def list_locations_and_cameras(session: Any) -> int:
    """Print every location and camera with its test indices."""
    try:
        locations = await session.async_get_locations()
    except LocationFetchError as e:
        logger.error("Unable to retrieve camera locations because: %s", e)
        return 1

    for location_index, location in enumerate(locations):
        print(f"Found location[{location_index}]: {location.name}")
        for camera_index, camera in enumerate(location.cameras):
            print(
                f"\t - Found {camera.model} named {camera.name}. "
                f"Test with --test {location_index},{camera_index}"
            )
    return 0


async def get_test_snapshot(
    session: Any,
    fetcher: SnapshotFetcher,
    notifier: PiPupNotifier,
    error_image: str,
    location_index: int = 0,
    camera_index: int = 0,
) -> int:
    """Fetch one snapshot from the selected camera and send it as a notification.

    The notifier exits the process once the first receiver answers; the return
    value only matters when no receiver triggered that.
    """
    try:
        locations = await session.async_get_locations()
    except LocationFetchError as e:
        logger.error("Unable to retrieve camera locations because: %s", e)
        return 1

    try:
        camera = locations[location_index].cameras[camera_index]
    except IndexError:
        logger.error(
            "No camera #%s at location #%s; run with --list to see valid indices",
            camera_index,
            location_index,
        )
        return 1

    logger.info("Attempting to get snapshot for location #%s, camera #%s", location_index, camera_index)
    try:
        snapshot = await fetcher.fetch(camera)
    except SnapshotError as e:
        logger.error("Unable to get snapshot: %s", e)
        await notifier.notify(TEST_FAILED_TITLE, TEST_FAILED_MESSAGE, error_image, terminate_on_completion=True)
        return notifier.exit_code

    try:
        await notifier.notify(TEST_TITLE, TEST_MESSAGE, snapshot.path, terminate_on_completion=True)
    finally:
        snapshot.discard()
    return notifier.exit_code


async def start_camera_polling(session: Any, router: EventRouter, notify_on_start: bool) -> int:
    """Subscribe to every camera and notify on dings until all streams end.

    Streams are meant to run until the process is killed, so returning at all
    means every subscription ended or failed; the exit status is then 1.
    """
    try:
        locations = await session.async_get_locations()
    except LocationFetchError as e:
        logger.error("Unable to retrieve camera locations because: %s", e)
        return 1

    await router.run(
        locations,
        DingSource(),
        notify_on_start=notify_on_start,
        start_source=session.async_start_listening,
    )
    logger.error("All camera subscriptions have ended; exiting")
    return 1


def _create_session(config: dict, store: CredentialStore) -> Any:
    # Imported here so the Ring SDK is only loaded when a session is needed.
    from ring_tv_bridge.services.ring_session import RingSession

    return RingSession.from_config(config, store.rotate)


async def async_main(args: argparse.Namespace, config: dict) -> int:
    store = CredentialStore(config["ENV_FILE"])
    session = _create_session(config, store)
    notifier = PiPupNotifier.from_config(config)
    fetcher = SnapshotFetcher(config["SNAPSHOT_DIR"] or None)

    try:
        if args.test is not None:
            logger.info("Attempting to get demo snapshot...")
            location_index, camera_index = args.test
            return await get_test_snapshot(
                session, fetcher, notifier, config["ERROR_IMAGE"], location_index, camera_index
            )
        if args.list:
            return await list_locations_and_cameras(session)

        router = EventRouter(notifier, fetcher, config["ERROR_IMAGE"])
        code = await start_camera_polling(session, router, config["NOTIFY_ON_START"])
        return code or notifier.exit_code
    finally:
        await session.async_close()


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    try:
        config = load_config()
    except ValueError as e:
        logger.error("%s", e)
        sys.exit(1)
    setup_logging(config.get("LOG_LEVEL", "INFO"))

    try:
        sys.exit(asyncio.run(async_main(args, config)))
    except KeyboardInterrupt:
        logger.info("Stopped")


if __name__ == "__main__":
    main()
