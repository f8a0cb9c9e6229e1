"""Tests for the entry point: argument parsing, list mode, test mode, and polling mode."""

import argparse
import contextlib
import io
import unittest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

from ring_tv_bridge import main as main_module
from ring_tv_bridge.constants import TEST_FAILED_MESSAGE, TEST_FAILED_TITLE, TEST_MESSAGE, TEST_TITLE
from ring_tv_bridge.errors import ConfigWriteError, LocationFetchError, SnapshotError, SubscriptionError
from ring_tv_bridge.models import Location, Snapshot
from ring_tv_bridge.services.router import EventRouter


def _camera(name: str, model: str = "Doorbell 3"):
    return SimpleNamespace(id=hash(name), name=name, model=model)


def _locations(camera_counts):
    return [
        Location(
            id=f"loc{i}",
            name=f"Location {i}",
            cameras=[_camera(f"cam{i}.{j}") for j in range(count)],
        )
        for i, count in enumerate(camera_counts)
    ]


def _session(locations=None, error=None):
    session = MagicMock()
    session.async_get_locations = AsyncMock(return_value=locations, side_effect=error)
    session.async_start_listening = AsyncMock()
    session.async_close = AsyncMock()
    return session


class TestParseArgs(unittest.TestCase):

    def test_no_flags_is_polling_mode(self):
        args = main_module.parse_args([])
        self.assertIsNone(args.test)
        self.assertFalse(args.list)

    def test_test_defaults_to_first_camera(self):
        self.assertEqual(main_module.parse_args(["--test"]).test, (0, 0))

    def test_test_with_indices(self):
        self.assertEqual(main_module.parse_args(["--test", "2,1"]).test, (2, 1))

    def test_list(self):
        self.assertTrue(main_module.parse_args(["--list"]).list)

    def test_bad_indices_rejected(self):
        for value in ("2", "a,b", "1,2,3", "-1,0"):
            with self.assertRaises(argparse.ArgumentTypeError):
                main_module.parse_location_camera(value)


class TestListMode(unittest.IsolatedAsyncioTestCase):

    async def test_prints_one_line_per_camera(self):
        session = _session(_locations([2, 0, 3]))
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            code = await main_module.list_locations_and_cameras(session)

        self.assertEqual(code, 0)
        lines = out.getvalue().splitlines()
        camera_lines = [line for line in lines if line.startswith("\t - Found")]
        self.assertEqual(len(camera_lines), 5)
        self.assertEqual(len([line for line in lines if line.startswith("Found location[")]), 3)
        self.assertIn("Found location[2]: Location 2", lines)
        self.assertIn("\t - Found Doorbell 3 named cam2.1. Test with --test 2,1", lines)

    async def test_location_failure_exits_one(self):
        session = _session(error=LocationFetchError("401 Unauthorized"))
        out = io.StringIO()
        with contextlib.redirect_stdout(out), self.assertLogs("ring-tv-bridge", level="ERROR"):
            code = await main_module.list_locations_and_cameras(session)
        self.assertEqual(code, 1)
        self.assertEqual(out.getvalue(), "")


class TestTestMode(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.locations = _locations([1, 1, 2])
        self.session = _session(self.locations)
        self.notifier = MagicMock()
        self.notifier.notify = AsyncMock(side_effect=SystemExit(0))
        self.notifier.exit_code = 0
        self.snapshot = MagicMock(spec=Snapshot)
        self.snapshot.path = "/tmp/snapshot-x.png"
        self.fetcher = MagicMock()
        self.fetcher.fetch = AsyncMock(return_value=self.snapshot)

    async def test_selects_requested_camera(self):
        with self.assertRaises(SystemExit):
            await main_module.get_test_snapshot(
                self.session, self.fetcher, self.notifier, "error.png", 2, 1
            )
        self.fetcher.fetch.assert_awaited_once_with(self.locations[2].cameras[1])
        self.notifier.notify.assert_awaited_once_with(
            TEST_TITLE, TEST_MESSAGE, "/tmp/snapshot-x.png", terminate_on_completion=True
        )
        self.snapshot.discard.assert_called_once()

    async def test_snapshot_failure_sends_error_image(self):
        self.fetcher.fetch.side_effect = SnapshotError("camera asleep")
        with self.assertRaises(SystemExit):
            await main_module.get_test_snapshot(
                self.session, self.fetcher, self.notifier, "error.png", 0, 0
            )
        self.notifier.notify.assert_awaited_once_with(
            TEST_FAILED_TITLE, TEST_FAILED_MESSAGE, "error.png", terminate_on_completion=True
        )

    async def test_out_of_range_index_exits_one(self):
        with self.assertLogs("ring-tv-bridge", level="ERROR"):
            code = await main_module.get_test_snapshot(
                self.session, self.fetcher, self.notifier, "error.png", 5, 0
            )
        self.assertEqual(code, 1)
        self.fetcher.fetch.assert_not_awaited()

    async def test_location_failure_exits_one(self):
        session = _session(error=LocationFetchError("network down"))
        with self.assertLogs("ring-tv-bridge", level="ERROR"):
            code = await main_module.get_test_snapshot(
                session, self.fetcher, self.notifier, "error.png"
            )
        self.assertEqual(code, 1)

    async def test_returns_notifier_exit_code_when_not_terminated(self):
        self.notifier.notify = AsyncMock(return_value=[])
        self.notifier.exit_code = 1
        code = await main_module.get_test_snapshot(
            self.session, self.fetcher, self.notifier, "error.png"
        )
        self.assertEqual(code, 1)


class TestPollingMode(unittest.IsolatedAsyncioTestCase):

    async def test_runs_router_with_start_notification(self):
        locations = _locations([1])
        session = _session(locations)
        router = MagicMock()
        router.run = AsyncMock()

        with self.assertLogs("ring-tv-bridge", level="ERROR"):
            code = await main_module.start_camera_polling(session, router, True)

        self.assertEqual(code, 1)
        args, kwargs = router.run.await_args
        self.assertIs(args[0], locations)
        self.assertTrue(kwargs["notify_on_start"])
        self.assertIs(kwargs["start_source"], session.async_start_listening)

    async def test_failed_subscriptions_exit_one(self):
        session = _session(_locations([2]))

        async def fail_listener(source):
            source.fail(SubscriptionError("Ring push listener failed to start"))

        session.async_start_listening = AsyncMock(side_effect=fail_listener)
        notifier = MagicMock()
        notifier.notify = AsyncMock(return_value=[])
        router = EventRouter(notifier, MagicMock())

        with self.assertLogs("ring-tv-bridge", level="ERROR") as logs:
            code = await main_module.start_camera_polling(session, router, False)

        self.assertEqual(code, 1)
        self.assertEqual(
            len([line for line in logs.output if "Error subscribing to" in line]), 2
        )
        self.assertTrue(any("All camera subscriptions have ended" in line for line in logs.output))

    async def test_location_failure_exits_one(self):
        session = _session(error=LocationFetchError("401"))
        router = MagicMock()
        router.run = AsyncMock()
        with self.assertLogs("ring-tv-bridge", level="ERROR"):
            code = await main_module.start_camera_polling(session, router, True)
        self.assertEqual(code, 1)
        router.run.assert_not_awaited()


class TestAsyncMain(unittest.IsolatedAsyncioTestCase):

    def _config(self):
        return {
            "ENV_FILE": ".env",
            "RECEIVERS": ["tv"],
            "RECEIVER_PORT": 7979,
            "DISPLAY_TIME": 12,
            "POSITION": 0,
            "TITLE_COLOR": "#0066cc",
            "TITLE_SIZE": 20,
            "MESSAGE_COLOR": "#000000",
            "MESSAGE_SIZE": 14,
            "BACKGROUND_COLOR": "#ffffff",
            "IMAGE_WIDTH": 640,
            "SNAPSHOT_DIR": "",
            "ERROR_IMAGE": "error.png",
            "NOTIFY_ON_START": True,
        }

    async def test_test_flag_wins_over_list(self):
        session = _session(_locations([1]))
        args = main_module.parse_args(["--list", "--test", "0,0"])
        with patch.object(main_module, "_create_session", return_value=session), \
                patch.object(main_module, "get_test_snapshot", AsyncMock(return_value=0)) as test_mode, \
                patch.object(main_module, "list_locations_and_cameras", AsyncMock(return_value=0)) as list_mode:
            code = await main_module.async_main(args, self._config())
        self.assertEqual(code, 0)
        test_mode.assert_awaited_once()
        list_mode.assert_not_awaited()
        session.async_close.assert_awaited_once()

    async def test_session_closed_on_exit(self):
        session = _session(error=LocationFetchError("down"))
        args = main_module.parse_args(["--list"])
        with patch.object(main_module, "_create_session", return_value=session), \
                self.assertLogs("ring-tv-bridge", level="ERROR"):
            code = await main_module.async_main(args, self._config())
        self.assertEqual(code, 1)
        session.async_close.assert_awaited_once()

    async def test_token_save_failure_propagates_and_closes_session(self):
        session = _session(error=ConfigWriteError("cannot write .env"))
        args = main_module.parse_args([])
        with patch.object(main_module, "_create_session", return_value=session):
            with self.assertRaises(ConfigWriteError):
                await main_module.async_main(args, self._config())
        session.async_close.assert_awaited_once()


if __name__ == "__main__":
    unittest.main()
