"""
Script: image_publisher/versions.py
What: Finds the upstream release tags that should have an image.
Doing: Pages through the GitHub tag list, normalizes each tag, and checks it against the minimum version.
Why: Old releases are not worth building, and pre-release decoration must not break the comparison.
Goal: Give the runner an ordered, newest-first list of supported versions.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

import requests

from image_publisher.common import PublishError

GITHUB_API_URL = "https://api.github.com"
TAGS_PER_PAGE = 100

# Keep only the three numeric groups; anything after them is pre-release or build metadata.
VERSION_RE = re.compile(r"^v?([0-9]+)\.([0-9]+)\.([0-9]+)(?:[^0-9.].*)?$")

VersionTriple = tuple[int, int, int]
PageFetcher = Callable[[int], list[str]]


@dataclass(frozen=True)
class VersionDiscovery:
    """Tags split into the ones we build and the ones we skip."""

    supported: tuple[str, ...]
    unsupported: tuple[str, ...]

    @property
    def latest(self) -> str | None:
        return self.supported[0] if self.supported else None


def normalize_version(tag: str) -> VersionTriple | None:
    """
    Turn a tag like `v2.10.0-rc.1` into `(2, 10, 0)`.

    Returns None when the tag does not carry exactly three numeric parts.
    """
    match = VERSION_RE.match(tag.strip())
    if not match:
        return None
    return int(match.group(1)), int(match.group(2)), int(match.group(3))


def parse_minimum_version(value: str) -> VersionTriple:
    """Parse the configured minimum version, for example `2.0.0`."""
    minimum = normalize_version(value)
    if minimum is None:
        raise PublishError(f"Invalid minimum version: {value!r} (expected MAJOR.MINOR.PATCH)")
    return minimum


def version_is_supported(tag: str, minimum: VersionTriple) -> bool:
    """True when `tag` is at or above `minimum`, compared as integers."""
    version = normalize_version(tag)
    if version is None:
        return False
    return version >= minimum


def github_tag_page_fetcher(
    github_project: str,
    *,
    token: str = "",
    session: requests.Session | None = None,
) -> PageFetcher:
    """
    Build a function that returns the tag names on one page of the GitHub API.

    Any HTTP or JSON problem raises `PublishError`; an empty page is a real
    empty list and ends pagination.
    """
    http = session or requests.Session()
    url = f"{GITHUB_API_URL}/repos/{github_project}/tags"
    headers = {"Accept": "application/vnd.github+json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"

    def fetch_page(page: int) -> list[str]:
        try:
            response = http.get(
                url,
                params={"per_page": TAGS_PER_PAGE, "page": page},
                headers=headers,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            raise PublishError(f"Failed to list tags for {github_project} (page {page}): {exc}") from exc
        except ValueError as exc:
            raise PublishError(f"Expected JSON from {url} (page {page})") from exc

        if not isinstance(payload, list):
            raise PublishError(f"Unexpected tag listing for {github_project} (page {page}): {payload!r}")
        try:
            return [str(item["name"]) for item in payload]
        except (KeyError, TypeError) as exc:
            raise PublishError(f"Tag entry without a name for {github_project} (page {page})") from exc

    return fetch_page


def discover_versions(
    github_project: str,
    minimum: VersionTriple,
    fetch_page: PageFetcher,
) -> VersionDiscovery:
    """
    Collect every tag across all pages and split it by the minimum version.

    Order is kept exactly as the API reports it (newest first on GitHub), so
    the first supported entry is treated as the latest release.
    """
    print(f"===> Getting supported versions for {github_project} on GitHub...")
    supported: list[str] = []
    unsupported: list[str] = []
    page = 1
    while True:
        tags = fetch_page(page)
        if not tags:
            break
        for tag in tags:
            if version_is_supported(tag, minimum):
                supported.append(tag)
            else:
                unsupported.append(tag)
        page += 1

    print(f"=====> Tags to build: {', '.join(supported)}")
    print(f"=====> Unsupported tags: {', '.join(unsupported)}")
    return VersionDiscovery(supported=tuple(supported), unsupported=tuple(unsupported))
