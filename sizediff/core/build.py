"""Dependency install and build command execution."""

from __future__ import annotations

import logging
import shlex
import subprocess
from pathlib import Path

from sizediff.core.errors import BuildError

logger = logging.getLogger("sizediff.build")

_SHELL_METACHARS = set(";&|$`<>\n()")

# lockfile -> install command, first match wins
LOCKFILE_INSTALLERS: tuple[tuple[str, list[str]], ...] = (
    ("pnpm-lock.yaml", ["pnpm", "install", "--frozen-lockfile"]),
    ("yarn.lock", ["yarn", "install", "--frozen-lockfile"]),
    ("package-lock.json", ["npm", "ci"]),
)


def split_command(command: str, allow_unsafe: bool) -> list[str] | str:
    """Return argv for a safe command, or the raw string for shell execution.

    Raises:
        BuildError: If *command* uses shell syntax and *allow_unsafe* is off.
    """
    if allow_unsafe:
        return command
    if _SHELL_METACHARS & set(command):
        raise BuildError(
            f"Build command {command!r} uses shell syntax; "
            "set allow-unsafe-build to run it through a shell"
        )
    argv = shlex.split(command)
    if not argv:
        raise BuildError("Build command is empty")
    return argv


def _run(
    cmd: list[str] | str,
    timeout_s: float,
    cwd: str | Path | None,
    label: str,
) -> subprocess.CompletedProcess[str]:
    try:
        result = subprocess.run(
            cmd,
            shell=isinstance(cmd, str),
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout_s,
        )
    except subprocess.TimeoutExpired as exc:
        raise BuildError(f"{label} timed out after {timeout_s:.0f}s") from exc
    except OSError as exc:
        raise BuildError(f"{label} could not start: {exc}") from exc

    for line in result.stdout.splitlines():
        logger.debug("%s: %s", label, line)
    if result.returncode != 0:
        tail = "\n".join(result.stderr.strip().splitlines()[-20:])
        raise BuildError(f"{label} failed with exit code {result.returncode}\n{tail}".rstrip())
    return result


def install_dependencies(repo_root: str | Path = ".", timeout_s: float = 900.0) -> list[str] | None:
    """Install JS dependencies with the package manager matching the lockfile.

    Returns:
        The command that ran, or ``None`` when no lockfile was found.
    """
    root = Path(repo_root)
    for lockfile, argv in LOCKFILE_INSTALLERS:
        if (root / lockfile).exists():
            logger.info("Installing dependencies: %s", " ".join(argv))
            _run(argv, timeout_s, root, "install")
            return argv
    logger.info("No lockfile found; skipping dependency install")
    return None


def run_build(
    command: str,
    timeout_s: float,
    fail_on_stderr: bool = False,
    allow_unsafe: bool = False,
    cwd: str | Path | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run the build command with a timeout.

    Raises:
        BuildError: On a non-zero exit, a timeout, or (with
            *fail_on_stderr*) any stderr output.
    """
    cmd = split_command(command, allow_unsafe)
    logger.info("Running build: %s", command)
    result = _run(cmd, timeout_s, cwd, "build")
    if result.stderr.strip():
        if fail_on_stderr:
            raise BuildError(f"Build wrote to stderr:\n{result.stderr.strip()}")
        logger.warning("Build wrote to stderr: %s", result.stderr.strip().splitlines()[-1])
    return result
