"""
Version helpers for fairdraw.

Resolution order:
1) the installed distribution metadata (importlib.metadata),
2) `git describe --tags --long --dirty --match "v*"` when running from a checkout,
3) the static BASE_VERSION with a local "+no-git" suffix.

Returned strings are PEP 440 compatible.
"""
from __future__ import annotations

import re
import subprocess
from functools import lru_cache
from importlib.metadata import PackageNotFoundError, version as _dist_version
from pathlib import Path
from typing import NamedTuple, Optional

BASE_VERSION = "0.3.0"

_DIST_NAME = "fairdraw"

_DESCRIBE_RE = re.compile(
    r"^v(?P<tag>\d+\.\d+\.\d+(?:(?:a|b|rc)\d+)?)-(?P<distance>\d+)-g(?P<sha>[0-9a-f]+)(?P<dirty>-dirty)?$"
)


class Describe(NamedTuple):
    tag: str
    distance: int
    sha: str
    dirty: bool

    def pep440(self) -> str:
        if self.distance == 0 and not self.dirty:
            return self.tag
        local = f"g{self.sha}" + (".dirty" if self.dirty else "")
        return f"{self.tag}.post{self.distance}+{local}"


def _checkout_root() -> Optional[Path]:
    here = Path(__file__).resolve().parent
    for candidate in (here, *here.parents[:4]):
        if (candidate / ".git").exists():
            return candidate
    return None


@lru_cache(maxsize=1)
def git_describe() -> Optional[Describe]:
    root = _checkout_root()
    if root is None:
        return None
    try:
        out = subprocess.run(
            ["git", "-C", str(root), "describe", "--tags", "--long", "--dirty", "--match", "v*"],
            capture_output=True,
            text=True,
            check=True,
        ).stdout.strip()
    except (OSError, subprocess.CalledProcessError):
        return None
    m = _DESCRIBE_RE.match(out)
    if m is None:
        return None
    return Describe(m["tag"], int(m["distance"]), m["sha"], bool(m["dirty"]))


@lru_cache(maxsize=1)
def get_version() -> str:
    try:
        return _dist_version(_DIST_NAME)
    except PackageNotFoundError:
        pass
    desc = git_describe()
    if desc is not None:
        return desc.pep440()
    return f"{BASE_VERSION}+no-git"


__version__ = get_version()
__all__ = ["__version__", "get_version", "git_describe", "Describe"]
