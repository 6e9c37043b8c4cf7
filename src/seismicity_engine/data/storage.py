"""Storage utilities for pipeline artifacts.

Every writer replaces its target atomically (write to a temporary file in
the same directory, then rename), so an artifact written by an earlier
stage is never left half-written by a later failure.
"""

import json
import logging
import os
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

import joblib
import pandas as pd

from seismicity_engine.exceptions import IOFailure

logger = logging.getLogger(__name__)


def artifact_path(output_prefix: str | Path, name: str, suffix: str) -> Path:
    """Build the path of a named artifact under an output prefix.

    Example:
        >>> artifact_path("output/magnitude", "report", ".json")
        PosixPath('output/magnitude_report.json')
    """
    prefix = Path(output_prefix)
    return prefix.with_name(f"{prefix.name}_{name}{suffix}")


def _atomic_write(path: Path, writer: Callable[[Path], None]) -> Path:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        os.close(fd)
        tmp_path = Path(tmp_name)
        try:
            writer(tmp_path)
            os.replace(tmp_path, path)
        finally:
            if tmp_path.exists():
                tmp_path.unlink()
    except OSError as e:
        raise IOFailure(str(e), path=str(path)) from e

    logger.info(f"Wrote {path}")
    return path


def write_json(data: dict[str, Any], path: str | Path) -> Path:
    """Write a JSON document."""

    def _write(tmp: Path) -> None:
        with open(tmp, "w") as f:
            json.dump(data, f, indent=2, default=_json_default)

    return _atomic_write(Path(path), _write)


def read_json(path: str | Path) -> dict[str, Any]:
    """Read a JSON document."""
    try:
        with open(path) as f:
            return json.load(f)
    except OSError as e:
        raise IOFailure(str(e), path=str(path)) from e


def write_text(text: str, path: str | Path) -> Path:
    """Write a plain-text document."""

    def _write(tmp: Path) -> None:
        tmp.write_text(text)

    return _atomic_write(Path(path), _write)


def write_table(df: pd.DataFrame, path: str | Path, index: bool = False) -> Path:
    """Write a DataFrame as CSV."""

    def _write(tmp: Path) -> None:
        df.to_csv(tmp, index=index)

    return _atomic_write(Path(path), _write)


def write_object(obj: Any, path: str | Path) -> Path:
    """Serialize an object (e.g. an evaluation report with its models) with joblib."""

    def _write(tmp: Path) -> None:
        joblib.dump(obj, tmp)

    return _atomic_write(Path(path), _write)


def read_object(path: str | Path) -> Any:
    """Load an object written by write_object."""
    try:
        return joblib.load(path)
    except OSError as e:
        raise IOFailure(str(e), path=str(path)) from e


def _json_default(value: Any) -> Any:
    """Convert numpy scalars and arrays for json.dump."""
    if hasattr(value, "item") and getattr(value, "ndim", None) == 0:
        return value.item()
    if hasattr(value, "tolist"):
        return value.tolist()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def write_figure(fig: Any, path: str | Path) -> Path:
    """Write a Plotly figure as a standalone HTML file."""

    def _write(tmp: Path) -> None:
        fig.write_html(str(tmp))

    return _atomic_write(Path(path), _write)
