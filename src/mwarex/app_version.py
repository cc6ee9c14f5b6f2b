"""Application version: installed metadata, else the checkout's pyproject.toml."""

from __future__ import annotations

import tomllib
from functools import lru_cache
from importlib import metadata

from mwarex.paths import get_repo_root


@lru_cache(maxsize=None)
def get_app_version(package_name: str = "mwarex") -> str:
    try:
        return metadata.version(package_name)
    except metadata.PackageNotFoundError:
        pass
    try:
        with (get_repo_root() / "pyproject.toml").open("rb") as fh:
            return str(tomllib.load(fh)["project"]["version"])
    except (OSError, KeyError, tomllib.TOMLDecodeError):
        return "0.0.0"
