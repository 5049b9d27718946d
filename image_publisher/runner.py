"""
Script: image_publisher/runner.py
What: Runs one full publish pass for the configured upstream project.
Doing: Logs in, snapshots existing tags, discovers versions, then builds missing ones or only reports them.
Why: Keeps the decision flow in one function with every collaborator passed in.
Goal: Return a clear exit status for the scheduled job.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from image_publisher.builder import build_and_push_version, publish_latest
from image_publisher.common import PublishError
from image_publisher.config import PublishConfig
from image_publisher.engine import ContainerEngine
from image_publisher.registry import TagLister, get_existing_image_tags, image_already_exists
from image_publisher.versions import PageFetcher, discover_versions, github_tag_page_fetcher


@dataclass
class RunResult:
    latest_version: str | None = None
    built: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    latest_linked: bool = False

    @property
    def exit_status(self) -> int:
        # Only alert-only runs fill `missing`; build failures raise instead.
        return 1 if self.missing else 0


def run(
    config: PublishConfig,
    *,
    alert_only: bool = False,
    engine: ContainerEngine | None = None,
    fetch_page: PageFetcher | None = None,
    list_existing_tags: TagLister | None = None,
) -> RunResult:
    """
    Publish every supported version that has no image yet.

    In alert-only mode nothing is built or pushed; missing versions are
    collected and reported, and the result carries a failing exit status.
    """
    engine = engine or ContainerEngine(config.container_engine, context_dir=config.build_context)
    fetch_page = fetch_page or github_tag_page_fetcher(config.github_project, token=config.github_token)
    list_existing_tags = list_existing_tags or get_existing_image_tags

    print(f"===> Creating Docker images for {config.github_project}")
    try:
        engine.login(config.docker_hub_username, config.docker_hub_password)
    except PublishError as exc:
        raise PublishError("Unable to log into Docker Hub; see logs for more details.") from exc

    if config.rebuild:
        print("INFO: REBUILD=true, not reading existing tags from the registry")
        existing_tags: frozenset[str] = frozenset()
    else:
        existing_tags = list_existing_tags(config.docker_hub_repo)

    discovery = discover_versions(config.github_project, config.minimum_version, fetch_page)
    result = RunResult(latest_version=discovery.latest)
    if discovery.latest is not None:
        print(f"INFO: Latest {config.project} version is {discovery.latest}")

    for version in discovery.supported:
        if image_already_exists(version, existing_tags, rebuild=config.rebuild):
            print(f"INFO: Docker image already exists for {config.project} {version}")
            result.skipped.append(version)
            continue
        if alert_only:
            result.missing.append(version)
            continue
        build_and_push_version(
            engine,
            config.docker_hub_repo,
            version,
            config.architectures,
            project=config.project,
        )
        result.built.append(version)

    if alert_only:
        if result.missing:
            print(f"INFO: Build Docker images for these {config.project} versions: [{', '.join(result.missing)}]")
        return result

    # Nothing to point `latest` at.
    if discovery.latest is None:
        raise PublishError(f"No supported {config.project} versions found on GitHub")

    publish_latest(
        engine,
        config.docker_hub_repo,
        discovery.latest,
        config.architectures,
        project=config.project,
    )
    result.latest_linked = True
    return result
