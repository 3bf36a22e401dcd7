#!/usr/bin/env python3
"""Tests for markup documents and the default page fetcher."""

import asyncio
import unittest
from unittest.mock import patch

from transcript_scraper import markup
from transcript_scraper.exceptions import FetchError
from transcript_scraper.outcome import Failure, Success

PAGE = (
    "<html><body>"
    "<ul class='topics'>"
    "<li><a class='topictitle' href='./viewtopic.php?t=1'>1x01 - Pilot</a></li>"
    "<li><a class='topictitle' href='./viewtopic.php?t=2'>1x02 - Two</a></li></ul>"
    "<div class='content'>JOHN: Hi<br>MARY: Hello</div>"
    "</body></html>"
)


class TestMarkupDocument(unittest.TestCase):
    def setUp(self):
        self.document = markup.MarkupDocument(PAGE, url="https://example.com/page")

    def test_select(self):
        anchors = self.document.select(".topics li .topictitle")
        self.assertEqual([a.get_text() for a in anchors], ["1x01 - Pilot", "1x02 - Two"])
        self.assertEqual(anchors[0].get("href"), "./viewtopic.php?t=1")

    def test_select_no_match(self):
        self.assertEqual(self.document.select(".missing"), [])

    def test_inner_html(self):
        self.assertEqual(self.document.inner_html(".content"), "JOHN: Hi<br/>MARY: Hello")

    def test_inner_html_missing(self):
        self.assertIsNone(self.document.inner_html(".missing"))


class TestPageFetcher(unittest.TestCase):
    def test_fetch_markup_success(self):
        fetcher = markup.PageFetcher(user_agent="agent", timeout=3)
        with patch.object(markup.downloader, "fetch_text", return_value=PAGE) as mock_fetch:
            result = asyncio.run(fetcher.fetch_markup("https://example.com/page"))

        self.assertIsInstance(result, Success)
        self.assertEqual(result.value.url, "https://example.com/page")
        self.assertIsNotNone(result.value.inner_html(".content"))
        mock_fetch.assert_called_once_with("https://example.com/page", "agent", 3)

    def test_fetch_markup_failure(self):
        fetcher = markup.PageFetcher(user_agent="agent", timeout=3)
        error = FetchError("HTTP 404", url="https://example.com/gone")
        with patch.object(markup.downloader, "fetch_text", side_effect=error):
            result = asyncio.run(fetcher.fetch_markup("https://example.com/gone"))

        self.assertIsInstance(result, Failure)
        self.assertIs(result.cause, error)
        self.assertEqual(result.context, "fetch_markup error: https://example.com/gone")


if __name__ == "__main__":
    unittest.main()
