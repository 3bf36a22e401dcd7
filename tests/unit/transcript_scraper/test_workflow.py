#!/usr/bin/env python3
"""Tests for pipeline wiring and log setup."""

import importlib.util
import logging
import os
import tempfile
import unittest
from pathlib import Path

from transcript_scraper import workflow
from transcript_scraper.exceptions import FetchError

parent_tests_dir = Path(__file__).parent.parent.parent
parent_conftest_path = parent_tests_dir / "conftest.py"
conftest_spec = importlib.util.spec_from_file_location("parent_conftest", parent_conftest_path)
if conftest_spec is None or conftest_spec.loader is None:
    raise ImportError(f"Could not load conftest from {parent_conftest_path}")
parent_conftest = importlib.util.module_from_spec(conftest_spec)
conftest_spec.loader.exec_module(parent_conftest)

FakeFetcher = parent_conftest.FakeFetcher
PDF_MAGIC = parent_conftest.PDF_MAGIC
TEST_BASE_URL = parent_conftest.TEST_BASE_URL
build_listing_html = parent_conftest.build_listing_html
build_transcript_html = parent_conftest.build_transcript_html
create_test_config = parent_conftest.create_test_config
listing_url = parent_conftest.listing_url


def _topic(n):
    return f"{TEST_BASE_URL}/viewtopic.php?t={n}"


class TestRunPipeline(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.output_dir = os.path.join(self._tmp.name, "pdf")
        self.pages = {
            listing_url(0): build_listing_html(
                [
                    ("1x01 - Pilot", "./viewtopic.php?t=1"),
                    ("1x02 - The Return", "./viewtopic.php?t=2"),
                    ("Season 1 Specials", "./viewtopic.php?t=3"),
                    ("2x01 - Gone", "./viewtopic.php?t=4"),
                ]
            ),
            _topic(1): build_transcript_html(["(Rain.)", "JOHN: Hi", "[END]"]),
            _topic(2): build_transcript_html(["MARY: Back again"]),
            _topic(3): build_transcript_html(["HOST: Bonus"]),
            _topic(4): FetchError("HTTP 503"),
        }

    def tearDown(self):
        self._tmp.cleanup()

    def test_partial_failures_do_not_stop_run(self):
        cfg = create_test_config(output_dir=self.output_dir)

        count, summary = workflow.run_pipeline(cfg, fetcher=FakeFetcher(self.pages))

        self.assertEqual(count, 2)
        self.assertIn("Wrote 2 documents from 4 episodes", summary)
        self.assertIn("Scripts ready: 3/4", summary)
        self.assertIn("Documents written: 2/3", summary)
        self.assertIn("Season 1 Specials", summary)
        self.assertIn("2x01 - Gone", summary)
        for name in ("01.Pilot.pdf", "02.The_Return.pdf"):
            data = Path(self.output_dir, "season1", name).read_bytes()
            self.assertTrue(data.startswith(PDF_MAGIC))
        self.assertFalse(os.path.exists(os.path.join(self.output_dir, "season2")))

    def test_bounded_concurrency_and_limit(self):
        cfg = create_test_config(output_dir=self.output_dir, max_concurrency=1, max_episodes=1)
        count, _ = workflow.run_pipeline(cfg, fetcher=FakeFetcher(self.pages))
        self.assertEqual(count, 1)
        self.assertEqual(os.listdir(os.path.join(self.output_dir, "season1")), ["01.Pilot.pdf"])

    def test_listing_failure(self):
        cfg = create_test_config(output_dir=self.output_dir)
        count, summary = workflow.run_pipeline(cfg, fetcher=FakeFetcher({}))
        self.assertEqual(count, 0)
        self.assertIn("failed to locate episodes", summary)
        self.assertFalse(os.path.exists(self.output_dir))

    def test_unusable_output_dir_is_reported(self):
        blocker = os.path.join(self._tmp.name, "blocker")
        with open(blocker, "w", encoding="utf-8") as handle:
            handle.write("not a directory")
        cfg = create_test_config(output_dir=os.path.join(blocker, "pdf"))

        with self.assertLogs(workflow.logger, level="ERROR"):
            count, summary = workflow.run_pipeline(cfg, fetcher=FakeFetcher(self.pages))

        self.assertEqual(count, 0)
        self.assertIn("failed to prepare output directory", summary)

    def test_empty_listing(self):
        cfg = create_test_config(output_dir=self.output_dir)
        fetcher = FakeFetcher({listing_url(0): build_listing_html([])})
        self.assertEqual(workflow.run_pipeline(cfg, fetcher=fetcher), (0, "No episodes found"))


class TestApplyLogLevel(unittest.TestCase):
    def setUp(self):
        self.root = logging.getLogger()
        self.original_handlers = list(self.root.handlers)
        self.original_level = self.root.level
        self._tmp = tempfile.TemporaryDirectory()

    def tearDown(self):
        for handler in list(self.root.handlers):
            if handler not in self.original_handlers:
                self.root.removeHandler(handler)
                handler.close()
        self.root.setLevel(self.original_level)
        self._tmp.cleanup()

    def test_invalid_level(self):
        with self.assertRaises(ValueError):
            workflow.apply_log_level("LOUD")

    def test_sets_level(self):
        workflow.apply_log_level("warning")
        self.assertEqual(self.root.level, logging.WARNING)

    def test_file_handler_added_once(self):
        log_file = os.path.join(self._tmp.name, "logs", "run.log")
        workflow.apply_log_level("INFO", log_file)
        workflow.apply_log_level("INFO", log_file)

        file_handlers = [
            h
            for h in self.root.handlers
            if isinstance(h, logging.FileHandler) and h.baseFilename == os.path.abspath(log_file)
        ]
        self.assertEqual(len(file_handlers), 1)
        self.assertTrue(os.path.exists(log_file))


if __name__ == "__main__":
    unittest.main()
