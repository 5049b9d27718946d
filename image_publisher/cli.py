from __future__ import annotations

import argparse
import sys
from collections.abc import Callable, Mapping
from pathlib import Path

from image_publisher.common import PublishError, load_env_file

Command = Callable[[argparse.Namespace], int]

DEFAULT_COMMAND = "publish"


def publish(args: argparse.Namespace) -> int:
    """Build and push missing images, or only report them with `--alert-only`."""
    from image_publisher.config import load_config
    from image_publisher.runner import run

    result = run(load_config(), alert_only=args.alert_only)
    return result.exit_status


def list_versions(args: argparse.Namespace) -> int:
    """Print the supported upstream versions, newest first."""
    from image_publisher.config import load_config
    from image_publisher.versions import discover_versions, github_tag_page_fetcher

    config = load_config()
    fetch_page = github_tag_page_fetcher(config.github_project, token=config.github_token)
    discovery = discover_versions(config.github_project, config.minimum_version, fetch_page)
    for version in discovery.supported:
        print(version)
    return 0


def list_existing_tags(args: argparse.Namespace) -> int:
    """Print the bare tags already published for the configured repo."""
    from image_publisher.config import load_config
    from image_publisher.registry import get_existing_image_tags

    config = load_config()
    for tag in sorted(get_existing_image_tags(config.docker_hub_repo)):
        print(tag)
    return 0


def command_map() -> dict[str, Command]:
    """Map CLI command names to their entry functions."""
    return {
        "publish": publish,
        "list-versions": list_versions,
        "list-existing-tags": list_existing_tags,
    }


def build_parser(commands: Mapping[str, Command]) -> argparse.ArgumentParser:
    """Build argument parser with an optional positional command choice."""
    parser = argparse.ArgumentParser(
        prog="python3 -m image_publisher.cli",
        description="Build and publish multi-arch images for upstream releases.",
    )
    parser.add_argument(
        "command",
        nargs="?",
        default=DEFAULT_COMMAND,
        choices=sorted(commands.keys()),
    )
    parser.add_argument(
        "--alert-only",
        action="store_true",
        help="publish only: do not build; exit 1 if any supported version has no image.",
    )
    parser.add_argument(
        "--env-file",
        default=None,
        help="Load settings from this file (default: ./.env when present).",
    )
    return parser


def run_command(command: str, args: argparse.Namespace, commands: Mapping[str, Command]) -> int:
    """
    Run one registered command and return its exit status.

    `commands` is passed in to keep this function easy to test.
    """
    return commands[command](args)


def main(argv: list[str] | None = None) -> None:
    # Build command registry once so parser and dispatcher use the same keys.
    commands = command_map()
    parser = build_parser(commands)
    args = parser.parse_args(argv)
    if args.alert_only and args.command != DEFAULT_COMMAND:
        parser.error(f"--alert-only only applies to {DEFAULT_COMMAND}, not {args.command}")

    try:
        if args.env_file and not Path(args.env_file).is_file():
            raise PublishError(f"Env file not found: {args.env_file}")
        load_env_file(args.env_file)
        status = run_command(args.command, args, commands)
    except PublishError as exc:
        # Keep failures short and readable in job logs.
        print(f"ERROR: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
    raise SystemExit(status)


if __name__ == "__main__":
    main()
