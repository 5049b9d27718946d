"""
Script: image_publisher/engine.py
What: Thin wrapper around the container engine CLI (`docker` by default).
Doing: Builds argument lists for login, build, push, tag, and manifest commands and runs them.
Why: Keeps every engine invocation in one place so the orchestrator only deals with tags.
Goal: Make engine calls easy to read in logs and easy to replace in tests.
"""

from __future__ import annotations

from typing import Callable, Mapping, Sequence

from image_publisher.common import run_cmd

CommandRunner = Callable[..., str]


class ContainerEngine:
    """
    Runs container engine commands and raises `PublishError` on failure.

    `runner` defaults to `run_cmd`; tests pass a recorder instead.
    """

    def __init__(
        self,
        binary: str = "docker",
        *,
        context_dir: str = ".",
        runner: CommandRunner = run_cmd,
    ) -> None:
        self.binary = binary
        self.context_dir = context_dir
        self._run = runner

    def _stream(self, *args: str) -> None:
        # Build/push output is long, let it go straight to the job log.
        command = [self.binary, *args]
        print(f"+ {' '.join(command)}")
        self._run(command, capture_output=False)

    def login(self, username: str, password: str, registry: str = "") -> None:
        """Log in with the password on stdin so it never shows up in process lists."""
        command = [self.binary, "login", "--username", username, "--password-stdin"]
        if registry:
            command.append(registry)
        self._run(command, input_text=password)

    def build(self, tag: str, *, platform: str, build_args: Mapping[str, str]) -> None:
        args = ["build", "--tag", tag, "--pull", "--platform", platform]
        for key, value in build_args.items():
            args.extend(["--build-arg", f"{key}={value}"])
        args.append(self.context_dir)
        self._stream(*args)

    def push(self, tag: str) -> None:
        self._stream("push", tag)

    def tag(self, source: str, destination: str) -> None:
        self._stream("tag", source, destination)

    def manifest_create(self, name: str, images: Sequence[str]) -> None:
        """Create a local manifest list `name`; `--amend` lets reruns reuse an existing one."""
        args = ["manifest", "create", name]
        for image in images:
            args.extend(["--amend", image])
        self._stream(*args)

    def manifest_push(self, name: str) -> None:
        self._stream("manifest", "push", name)
