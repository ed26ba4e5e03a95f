# desktopsetup/core/versions.py
"""Helpers for capturing and comparing tool versions."""

from __future__ import annotations

import re
from pathlib import Path

from packaging.version import InvalidVersion, Version

from desktopsetup.core.command import run_command

VERSION_PATTERN = re.compile(r"(\d+(?:\.\d+)+)")


def normalize(raw: str | None) -> str | None:
    """Pull the first dotted version out of ``raw`` (``git version 2.44.0`` -> ``2.44.0``)."""
    if not raw:
        return None
    match = VERSION_PATTERN.search(raw)
    if not match:
        return None
    candidate = match.group(1)
    try:
        Version(candidate)
    except InvalidVersion:
        return None
    return candidate


def probe_executable(path: Path, args: tuple[str, ...] = ("--version",)) -> str | None:
    """Run ``<path> --version`` and return the normalized version, if any."""
    result = run_command([str(path), *args], check=False, quiet=True)
    if not result.success:
        return None
    output = result.stdout or result.stderr
    if not output:
        return None
    return normalize(output.splitlines()[0])


def is_older(installed: str | None, latest: str | None) -> bool:
    """True only when both versions are known, parsable, and installed < latest."""
    if not installed or not latest:
        return False
    try:
        return Version(installed) < Version(latest)
    except InvalidVersion:
        return False
