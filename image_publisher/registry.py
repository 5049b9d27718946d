"""
Script: image_publisher/registry.py
What: Reads which version tags are already published on Docker Hub.
Doing: Lists the repository tags in one large page and keeps only bare (non-architecture) tags.
Why: A bare tag only exists after a full multi-arch publish, so it marks a version as done.
Goal: Skip versions that already have an image instead of rebuilding them every run.
"""

from __future__ import annotations

from typing import AbstractSet, Callable

import requests

from image_publisher.common import PublishError

DOCKER_HUB_API_URL = "https://registry.hub.docker.com/v2"
# Docker Hub returns the whole tag list in one page at this size.
TAG_PAGE_SIZE = 10000

TagLister = Callable[[str], frozenset[str]]


def is_bare_tag(tag: str) -> bool:
    """Architecture tags look like `2.3.1-amd64`; bare tags have no hyphen."""
    return "-" not in tag


def get_existing_image_tags(
    docker_hub_repo: str,
    *,
    session: requests.Session | None = None,
) -> frozenset[str]:
    """
    Return the bare tags already published for `docker_hub_repo`.

    Errors are raised, never returned as an empty set, because an empty set
    would mean "nothing published yet" and trigger a full rebuild.
    """
    http = session or requests.Session()
    url = f"{DOCKER_HUB_API_URL}/repositories/{docker_hub_repo}/tags"
    try:
        response = http.get(url, params={"page_size": TAG_PAGE_SIZE})
        response.raise_for_status()
        payload = response.json()
    except requests.RequestException as exc:
        raise PublishError(f"Failed to list existing tags for {docker_hub_repo}: {exc}") from exc
    except ValueError as exc:
        raise PublishError(f"Expected JSON from {url}") from exc

    results = payload.get("results") if isinstance(payload, dict) else None
    if not isinstance(results, list):
        raise PublishError(f"Unexpected tag listing for {docker_hub_repo}: missing 'results'")

    names = {str(item.get("name") or "") for item in results if isinstance(item, dict)}
    return frozenset(name for name in names if name and is_bare_tag(name))


def image_already_exists(
    version: str,
    existing_tags: AbstractSet[str],
    *,
    rebuild: bool = False,
) -> bool:
    """
    True when `version` already has a published bare tag.

    With `rebuild` set the check is skipped and every version counts as missing.
    """
    if rebuild:
        print(f"INFO: Skipping existing image check for {version}, as REBUILD=true")
        return False
    return version in existing_tags
