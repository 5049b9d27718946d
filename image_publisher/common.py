"""
Script: image_publisher/common.py
What: Shared helper functions used by all `image_publisher` modules.
Doing: Wraps env reads, `.env` loading, and container engine command execution.
Why: Avoids duplicated helper code.
Goal: Keep error reporting consistent across all helper modules.
"""

from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Sequence

from dotenv import load_dotenv


class PublishError(RuntimeError):
    """Raised when the publisher hits a known error condition."""


TRUE_VALUES = {"true"}


def require_env(name: str) -> str:
    """Return a required environment variable or raise a clear error."""
    value = os.environ.get(name)
    if value is None or value == "":
        raise PublishError(f"Missing required environment variable: {name}")
    return value


def optional_env(name: str, default: str = "") -> str:
    """Return an environment variable with a fallback default."""
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    return value


def env_flag(name: str, default: bool = False) -> bool:
    """
    Read a boolean switch such as `REBUILD=true`.

    Only the word `true` (any case) turns the flag on.
    """
    value = optional_env(name).strip()
    if not value:
        return default
    return value.lower() in TRUE_VALUES


def load_env_file(env_file: str | Path | None = None) -> bool:
    """
    Load `KEY=value` lines from a `.env` file into the process environment.

    Variables that are already set win over the file, so CI secrets can
    still override a checked-in `.env`. Returns False when the file is absent.
    """
    path = Path(env_file) if env_file else Path.cwd() / ".env"
    if not path.is_file():
        return False
    return load_dotenv(path, override=False)


def run_cmd(
    args: Sequence[str],
    *,
    capture_output: bool = True,
    cwd: str | None = None,
    input_text: str | None = None,
) -> str:
    """Run a command and return stdout, raising a readable error on failure."""
    try:
        result = subprocess.run(
            list(args),
            check=True,
            text=True,
            capture_output=capture_output,
            cwd=cwd,
            input=input_text,
        )
    except FileNotFoundError as exc:
        raise PublishError(f"Command not found: {args[0]}") from exc
    except subprocess.CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        stdout = (exc.stdout or "").strip()
        details = stderr or stdout or str(exc)
        raise PublishError(f"Command failed: {' '.join(args)}\n{details}") from exc

    if not capture_output:
        return ""
    return result.stdout
