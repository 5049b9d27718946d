"""
Script: image_publisher/config.py
What: Collects every setting the publisher needs into one `PublishConfig`.
Doing: Reads environment variables (optionally seeded from `.env`) and derives the project and repo names.
Why: Passing one explicit object around is easier to test than reading env vars all over the code.
Goal: Fail early with a clear message when required settings are missing.
"""

from __future__ import annotations

from dataclasses import dataclass

from image_publisher.common import PublishError, env_flag, optional_env, require_env
from image_publisher.versions import VersionTriple, parse_minimum_version

DEFAULT_MIN_VERSION = "2.0.0"


@dataclass(frozen=True)
class Architecture:
    """One build platform, for example `linux/arm64` with tag suffix `arm64`."""

    platform: str

    @property
    def suffix(self) -> str:
        return self.platform.rsplit("/", 1)[-1]


# Fixed build order: ARM first, then x86.
DEFAULT_ARCHITECTURES: tuple[Architecture, ...] = (
    Architecture("linux/arm64"),
    Architecture("linux/amd64"),
)


@dataclass(frozen=True)
class PublishConfig:
    github_project: str
    project: str
    docker_hub_username: str
    docker_hub_password: str
    docker_hub_repo: str
    minimum_version: VersionTriple
    rebuild: bool = False
    github_token: str = ""
    container_engine: str = "docker"
    build_context: str = "."
    architectures: tuple[Architecture, ...] = DEFAULT_ARCHITECTURES

    def __repr__(self) -> str:
        # Keep the registry password out of logs and tracebacks.
        return (
            f"PublishConfig(github_project={self.github_project!r}, "
            f"docker_hub_repo={self.docker_hub_repo!r}, "
            f"minimum_version={self.minimum_version!r}, rebuild={self.rebuild!r})"
        )


def project_name(github_project: str) -> str:
    """`serverless/serverless` -> `serverless`."""
    parts = github_project.strip("/").split("/")
    if len(parts) != 2 or not all(parts):
        raise PublishError(f"GITHUB_PROJECT must look like owner/name, got {github_project!r}")
    return parts[1]


def load_config() -> PublishConfig:
    """Build the config from the current process environment."""
    github_project = require_env("GITHUB_PROJECT")
    project = optional_env("PROJECT") or project_name(github_project)
    username = require_env("DOCKER_HUB_USERNAME")
    password = require_env("DOCKER_HUB_PASSWORD")

    # DOCKER_HUB_REPO is the namespace; the project name is appended to it.
    namespace = optional_env("DOCKER_HUB_REPO", username)

    return PublishConfig(
        github_project=github_project,
        project=project,
        docker_hub_username=username,
        docker_hub_password=password,
        docker_hub_repo=f"{namespace}/{project}",
        minimum_version=parse_minimum_version(optional_env("MIN_VERSION", DEFAULT_MIN_VERSION)),
        rebuild=env_flag("REBUILD"),
        github_token=optional_env("GITHUB_TOKEN"),
        container_engine=optional_env("CONTAINER_ENGINE", "docker"),
        build_context=optional_env("BUILD_CONTEXT", "."),
    )
