"""
Script: image_publisher/builder.py
What: Builds, pushes, and links the multi-arch image for one upstream version.
Doing: Runs build + push per architecture in a fixed order, then creates and pushes the manifest list.
Why: A half-published version (one arch present, one missing) is worse than stopping, so any failure stops the run.
Goal: Publish `<repo>:<version>` and `<repo>:latest` as proper multi-arch tags.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

from image_publisher.common import PublishError
from image_publisher.config import DEFAULT_ARCHITECTURES, Architecture
from image_publisher.engine import ContainerEngine


class BuildState(Enum):
    PENDING = "pending"
    BUILDING = "building"
    PUSHED = "pushed"
    MANIFEST_LINKED = "manifest_linked"
    DONE = "done"
    FAILED = "failed"


@dataclass
class VersionBuild:
    """
    Progress of one version through the build state machine.

    `history` keeps every transition as `(state, architecture suffix or "")`
    so logs and tests can see exactly how far a version got.
    """

    version: str
    state: BuildState = BuildState.PENDING
    history: list[tuple[BuildState, str]] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.history.append((self.state, ""))

    def advance(self, state: BuildState, arch: str = "") -> None:
        self.state = state
        self.history.append((state, arch))


def version_image(repo: str, version: str) -> str:
    return f"{repo}:{version}"


def arch_image(repo: str, version: str, arch: Architecture) -> str:
    """Per-architecture tag, for example `me/serverless:v3.0.0-arm64`."""
    return f"{repo}:{version}-{arch.suffix}"


def link_manifest(
    engine: ContainerEngine,
    repo: str,
    version: str,
    architectures: Sequence[Architecture],
    *,
    is_latest: bool = False,
) -> str:
    """
    Create and push a manifest list over the per-arch tags of `version`.

    The list is named after the version, or `latest` when `is_latest` is set.
    Returns the manifest name.
    """
    name = version_image(repo, "latest") if is_latest else version_image(repo, version)
    engine.manifest_create(name, [arch_image(repo, version, arch) for arch in architectures])
    engine.manifest_push(name)
    return name


def build_and_push_version(
    engine: ContainerEngine,
    repo: str,
    version: str,
    architectures: Sequence[Architecture] = DEFAULT_ARCHITECTURES,
    *,
    project: str = "",
) -> VersionBuild:
    """
    Build and push every architecture of `version`, then link its manifest.

    Raises `PublishError` on the first failed step; nothing after it runs.
    """
    build = VersionBuild(version)
    label = project or repo
    try:
        for arch in architectures:
            image = arch_image(repo, version, arch)
            print(f"INFO: Building {label} {version} {arch.platform}")
            build.advance(BuildState.BUILDING, arch.suffix)
            engine.build(
                image,
                platform=arch.platform,
                build_args={"VERSION": version, "ARCH": arch.suffix},
            )
            engine.push(image)
            build.advance(BuildState.PUSHED, arch.suffix)

        link_manifest(engine, repo, version, architectures)
        build.advance(BuildState.MANIFEST_LINKED)
    except PublishError as exc:
        build.advance(BuildState.FAILED)
        raise PublishError(f"Failed to build and push version {version}; stopping\n{exc}") from exc

    build.advance(BuildState.DONE)
    return build


def publish_latest(
    engine: ContainerEngine,
    repo: str,
    version: str,
    architectures: Sequence[Architecture] = DEFAULT_ARCHITECTURES,
    *,
    project: str = "",
) -> str:
    """
    Point `<repo>:latest` at the per-arch images of `version`.

    This never builds: the per-arch tags must already be in the registry.
    The local `docker tag` alias is best effort, since the bare version tag is
    a manifest list and is usually not present as a local image. The manifest
    push is what publishes `latest`, and its failures are raised.
    """
    print(f"INFO: Tagging {project or repo} version [{version}] as latest")
    latest = version_image(repo, "latest")
    try:
        engine.tag(version_image(repo, version), latest)
    except PublishError as exc:
        print(
            f"WARNING: Could not alias {version_image(repo, version)} locally ({exc}); "
            f"{latest} is still published from the remote per-arch tags"
        )
    return link_manifest(engine, repo, version, architectures, is_latest=True)
