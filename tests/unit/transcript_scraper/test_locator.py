#!/usr/bin/env python3
"""Tests for listing-page episode discovery."""

import asyncio
import importlib.util
import unittest
from pathlib import Path

from transcript_scraper import locator, models
from transcript_scraper.exceptions import FetchError
from transcript_scraper.outcome import Failure, Success

parent_tests_dir = Path(__file__).parent.parent.parent
parent_conftest_path = parent_tests_dir / "conftest.py"
conftest_spec = importlib.util.spec_from_file_location("parent_conftest", parent_conftest_path)
if conftest_spec is None or conftest_spec.loader is None:
    raise ImportError(f"Could not load conftest from {parent_conftest_path}")
parent_conftest = importlib.util.module_from_spec(conftest_spec)
conftest_spec.loader.exec_module(parent_conftest)

FakeFetcher = parent_conftest.FakeFetcher
build_listing_html = parent_conftest.build_listing_html
create_test_config = parent_conftest.create_test_config
listing_url = parent_conftest.listing_url
TEST_BASE_URL = parent_conftest.TEST_BASE_URL


class TestResolveTopicUrl(unittest.TestCase):
    def test_dot_relative_href(self):
        self.assertEqual(
            locator.resolve_topic_url(TEST_BASE_URL, "./viewtopic.php?t=1"),
            f"{TEST_BASE_URL}/viewtopic.php?t=1",
        )

    def test_root_relative_href(self):
        self.assertEqual(
            locator.resolve_topic_url(TEST_BASE_URL + "/", "/viewtopic.php?t=1"),
            f"{TEST_BASE_URL}/viewtopic.php?t=1",
        )

    def test_bare_href(self):
        self.assertEqual(
            locator.resolve_topic_url(TEST_BASE_URL, "viewtopic.php?t=1"),
            f"{TEST_BASE_URL}/viewtopic.php?t=1",
        )

    def test_absolute_href_untouched(self):
        url = "https://elsewhere.example.com/viewtopic.php?t=9"
        self.assertEqual(locator.resolve_topic_url(TEST_BASE_URL, url), url)


class TestGetEpisodeListOnPage(unittest.TestCase):
    def test_extracts_titles_and_urls(self):
        cfg = create_test_config()
        fetcher = FakeFetcher(
            {
                listing_url(0): build_listing_html(
                    [
                        ("1x01 - Pilot", "./viewtopic.php?t=1"),
                        ("1x02 - Second", "./viewtopic.php?t=2"),
                    ]
                )
            }
        )

        result = asyncio.run(locator.get_episode_list_on_page(fetcher, cfg, 0))

        self.assertIsInstance(result, Success)
        self.assertEqual(
            result.value,
            [
                models.EpisodeRef("1x01 - Pilot", f"{TEST_BASE_URL}/viewtopic.php?t=1"),
                models.EpisodeRef("1x02 - Second", f"{TEST_BASE_URL}/viewtopic.php?t=2"),
            ],
        )

    def test_page_offset_uses_page_size(self):
        cfg = create_test_config(page_size=10)
        fetcher = FakeFetcher({listing_url(2, page_size=10): build_listing_html([])})
        result = asyncio.run(locator.get_episode_list_on_page(fetcher, cfg, 2))
        self.assertEqual(result.value, [])
        self.assertEqual(fetcher.requested, [f"{TEST_BASE_URL}/viewforum.php?f=177&start=20"])

    def test_anchor_without_href_skipped(self):
        cfg = create_test_config()
        html = (
            "<ul class='topics'><li><a class='topictitle'>Announcement</a></li>"
            "<li><a class='topictitle' href='./viewtopic.php?t=3'>1x03 - Third</a></li></ul>"
        )
        fetcher = FakeFetcher({listing_url(0): html})
        result = asyncio.run(locator.get_episode_list_on_page(fetcher, cfg, 0))
        self.assertEqual([ep.title for ep in result.value], ["1x03 - Third"])

    def test_fetch_failure_names_page(self):
        cfg = create_test_config()
        fetcher = FakeFetcher({listing_url(0): FetchError("HTTP 500")})
        result = asyncio.run(locator.get_episode_list_on_page(fetcher, cfg, 0))
        self.assertIsInstance(result, Failure)
        self.assertIn("page 0", result.trace)


class TestGetEpisodeList(unittest.TestCase):
    def setUp(self):
        self.pages = {
            listing_url(0): build_listing_html(
                [("1x01 - Pilot", "./viewtopic.php?t=1"), ("1x02 - Second", "./viewtopic.php?t=2")]
            ),
            listing_url(1): build_listing_html([("1x03 - Third", "./viewtopic.php?t=3")]),
        }

    def test_walks_pages_in_order(self):
        cfg = create_test_config(pages=2)
        result = asyncio.run(locator.get_episode_list(FakeFetcher(self.pages), cfg))
        self.assertEqual(
            [ep.title for ep in result.value], ["1x01 - Pilot", "1x02 - Second", "1x03 - Third"]
        )

    def test_single_page_by_default(self):
        fetcher = FakeFetcher(self.pages)
        result = asyncio.run(locator.get_episode_list(fetcher, create_test_config()))
        self.assertEqual(len(result.value), 2)
        self.assertEqual(fetcher.requested, [listing_url(0)])

    def test_max_episodes_truncates(self):
        cfg = create_test_config(pages=2, max_episodes=2)
        result = asyncio.run(locator.get_episode_list(FakeFetcher(self.pages), cfg))
        self.assertEqual([ep.title for ep in result.value], ["1x01 - Pilot", "1x02 - Second"])

    def test_failing_page_aborts_walk(self):
        pages = dict(self.pages)
        pages[listing_url(1)] = FetchError("HTTP 502")
        cfg = create_test_config(pages=3)
        fetcher = FakeFetcher(pages)

        result = asyncio.run(locator.get_episode_list(fetcher, cfg))

        self.assertIsInstance(result, Failure)
        self.assertEqual(result.frames[-1], "get_episode_list error")
        self.assertNotIn(listing_url(2), fetcher.requested)


if __name__ == "__main__":
    unittest.main()
