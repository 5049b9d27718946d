"""
Script: tests/test_versions.py
What: Tests version normalization, the minimum-version filter, and tag discovery.
Doing: Feeds tag strings and fake API pages through `image_publisher.versions`.
Why: A wrong comparison either skips real releases or builds ancient ones.
Goal: Keep the supported-version list correct and in upstream order.
"""

from __future__ import annotations

import unittest
from unittest import mock

import requests

from image_publisher.common import PublishError
from image_publisher.versions import (
    discover_versions,
    github_tag_page_fetcher,
    normalize_version,
    parse_minimum_version,
    version_is_supported,
)


def pages(*tag_pages: list[str]):
    """Fake page fetcher: page N returns the N-th list, then empty pages."""

    def fetch_page(page: int) -> list[str]:
        if page <= len(tag_pages):
            return list(tag_pages[page - 1])
        return []

    return fetch_page


class NormalizeVersionTests(unittest.TestCase):
    def test_strips_leading_v(self) -> None:
        self.assertEqual(normalize_version("v2.3.1"), (2, 3, 1))
        self.assertEqual(normalize_version("2.3.1"), (2, 3, 1))

    def test_strips_pre_release_suffix(self) -> None:
        self.assertEqual(normalize_version("v2.3.1-rc.1"), (2, 3, 1))
        self.assertEqual(normalize_version("v3.0.0beta2"), (3, 0, 0))
        self.assertEqual(normalize_version("v1.2.3+build.7"), (1, 2, 3))

    def test_rejects_malformed_tags(self) -> None:
        for tag in ["v2.3", "latest", "", "v2", "va.b.c", "2.3.1.4", "release-2.3.1"]:
            with self.subTest(tag=tag):
                self.assertIsNone(normalize_version(tag))

    def test_parse_minimum_version_rejects_garbage(self) -> None:
        self.assertEqual(parse_minimum_version("2.0.0"), (2, 0, 0))
        with self.assertRaises(PublishError):
            parse_minimum_version("two")


class VersionIsSupportedTests(unittest.TestCase):
    def test_compares_components_as_integers(self) -> None:
        # String comparison would put "2.10.0" below "2.9.0".
        self.assertTrue(version_is_supported("v2.10.0", (2, 9, 0)))
        self.assertFalse(version_is_supported("v2.9.0", (2, 10, 0)))

    def test_minimum_itself_is_supported(self) -> None:
        self.assertTrue(version_is_supported("v2.0.0", (2, 0, 0)))

    def test_each_component_is_checked_in_order(self) -> None:
        minimum = (2, 3, 4)
        self.assertTrue(version_is_supported("v3.0.0", minimum))
        self.assertTrue(version_is_supported("v2.4.0", minimum))
        self.assertTrue(version_is_supported("v2.3.5", minimum))
        self.assertFalse(version_is_supported("v2.3.3", minimum))
        self.assertFalse(version_is_supported("v2.2.9", minimum))
        self.assertFalse(version_is_supported("v1.99.99", minimum))

    def test_malformed_tags_are_rejected_without_raising(self) -> None:
        self.assertFalse(version_is_supported("nightly", (0, 0, 0)))
        self.assertFalse(version_is_supported("v1.2", (0, 0, 0)))


class DiscoverVersionsTests(unittest.TestCase):
    def test_partitions_tags_in_source_order(self) -> None:
        discovery = discover_versions("serverless/serverless", (2, 0, 0), pages(["v3.0.0", "v1.0.0"]))
        self.assertEqual(discovery.supported, ("v3.0.0",))
        self.assertEqual(discovery.unsupported, ("v1.0.0",))
        self.assertEqual(discovery.latest, "v3.0.0")

    def test_does_not_resort_across_pages(self) -> None:
        fetch = pages(["v3.1.0", "v2.0.0-rc.1", "junk"], ["v3.2.0", "v1.9.9"])
        discovery = discover_versions("o/p", (2, 0, 0), fetch)
        self.assertEqual(discovery.supported, ("v3.1.0", "v2.0.0-rc.1", "v3.2.0"))
        self.assertEqual(discovery.unsupported, ("junk", "v1.9.9"))

    def test_stops_at_first_empty_page(self) -> None:
        requested: list[int] = []
        inner = pages(["v2.0.0"], ["v2.1.0"])

        def fetch(page: int) -> list[str]:
            requested.append(page)
            return inner(page)

        discover_versions("o/p", (2, 0, 0), fetch)
        self.assertEqual(requested, [1, 2, 3])

    def test_repeated_discovery_is_identical(self) -> None:
        fetch = pages(["v3.0.0", "v2.5.0"], ["v1.0.0"])
        first = discover_versions("o/p", (2, 0, 0), fetch)
        second = discover_versions("o/p", (2, 0, 0), fetch)
        self.assertEqual(first, second)

    def test_no_latest_when_nothing_supported(self) -> None:
        discovery = discover_versions("o/p", (9, 0, 0), pages(["v1.0.0"]))
        self.assertIsNone(discovery.latest)

    def test_page_error_aborts_whole_discovery(self) -> None:
        def fetch(page: int) -> list[str]:
            if page == 2:
                raise PublishError("boom")
            return ["v3.0.0"]

        with self.assertRaises(PublishError):
            discover_versions("o/p", (2, 0, 0), fetch)


class GithubTagPageFetcherTests(unittest.TestCase):
    def _session(self, payload=None, error: Exception | None = None) -> mock.Mock:
        response = mock.Mock()
        response.json.return_value = payload
        if error is not None:
            response.raise_for_status.side_effect = error
        session = mock.Mock()
        session.get.return_value = response
        return session

    def test_requests_one_page_and_returns_names(self) -> None:
        session = self._session([{"name": "v3.0.0"}, {"name": "v2.0.0"}])
        fetch = github_tag_page_fetcher("serverless/serverless", token="abc", session=session)

        self.assertEqual(fetch(2), ["v3.0.0", "v2.0.0"])
        _, kwargs = session.get.call_args
        self.assertEqual(session.get.call_args.args[0], "https://api.github.com/repos/serverless/serverless/tags")
        self.assertEqual(kwargs["params"], {"per_page": 100, "page": 2})
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer abc")

    def test_no_auth_header_without_token(self) -> None:
        session = self._session([])
        github_tag_page_fetcher("o/p", session=session)(1)
        self.assertNotIn("Authorization", session.get.call_args.kwargs["headers"])

    def test_http_error_raises(self) -> None:
        session = self._session(error=requests.HTTPError("403 rate limited"))
        with self.assertRaises(PublishError):
            github_tag_page_fetcher("o/p", session=session)(1)

    def test_unexpected_payload_raises(self) -> None:
        session = self._session({"message": "Not Found"})
        with self.assertRaises(PublishError):
            github_tag_page_fetcher("o/p", session=session)(1)

    def test_bad_json_raises(self) -> None:
        session = self._session()
        session.get.return_value.json.side_effect = ValueError("not json")
        with self.assertRaises(PublishError):
            github_tag_page_fetcher("o/p", session=session)(1)


if __name__ == "__main__":
    unittest.main()
