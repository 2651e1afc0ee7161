"""Build and runtime information for Common Ground."""

import os
import subprocess
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from importlib import metadata

# Used when the package is run from a source checkout without being installed
__version__ = "0.1.0"

DISTRIBUTION_NAME = "common-ground"

STARTED_AT = datetime.now(timezone.utc)


@dataclass
class VersionInfo:
    """What is running and since when."""

    version: str
    git_commit: str
    git_commit_short: str
    build_time: str
    started_at: str


def _installed_version() -> str:
    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        return __version__


def _get_git_commit() -> str:
    # Container builds bake the commit into the environment
    env_commit = os.getenv("GIT_COMMIT")
    if env_commit and env_commit != "unknown":
        return env_commit

    try:
        result = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            capture_output=True,
            text=True,
            timeout=5,
            cwd=os.path.dirname(os.path.abspath(__file__)),
        )
    except (subprocess.SubprocessError, OSError):
        return "unknown"
    return result.stdout.strip() if result.returncode == 0 else "unknown"


@lru_cache
def get_version_info() -> VersionInfo:
    """Collect version information once per process."""
    git_commit = _get_git_commit()
    return VersionInfo(
        version=os.getenv("APP_VERSION") or _installed_version(),
        git_commit=git_commit,
        git_commit_short=git_commit[:7] if git_commit != "unknown" else "unknown",
        build_time=os.getenv("BUILD_TIME", "unknown"),
        started_at=STARTED_AT.isoformat(timespec="seconds"),
    )
