"""Application and export-format versions.

The application version lives only in ``pyproject.toml``; the export
format has its own tag because documents outlive releases.
"""

from __future__ import annotations

import functools
import tomllib
from pathlib import Path

PYPROJECT = Path(__file__).resolve().parents[2] / "pyproject.toml"

EXPORT_FORMAT_VERSION = "2.0.0"


@functools.cache
def get_version() -> str:
    """``[project].version`` from pyproject.toml, read once per process.

    Raises:
        RuntimeError: the file is absent or declares no version.
    """
    try:
        with PYPROJECT.open("rb") as fh:
            project = tomllib.load(fh).get("project", {})
    except FileNotFoundError as exc:
        raise RuntimeError(f"pyproject.toml not found at {PYPROJECT}") from exc

    version = project.get("version")
    if not version:
        raise RuntimeError(f"no [project].version in {PYPROJECT}")
    return str(version)
