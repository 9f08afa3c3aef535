"""Utility functions for dkci."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import BinaryIO, Iterable

from tqdm import tqdm

__all__ = [
    "ok",
    "fail",
    "warn",
    "info",
    "write_chunks",
    "remove_quietly",
    "human_size",
    "tqdm",
]

CHUNK_SIZE = 1024 * 1024


def ok(message: str) -> None:
    print(f"[√] {message}")


def fail(message: str) -> None:
    print(f"[x] {message}", file=sys.stderr)


def warn(message: str) -> None:
    print(f"Warning: {message}", file=sys.stderr)


def info(message: str) -> None:
    print(message)


def write_chunks(
    chunks: Iterable[bytes],
    out: BinaryIO,
    *,
    total: int | None = None,
    desc: str | None = None,
) -> int:
    """Write ``chunks`` to ``out`` behind a byte progress bar; return bytes written."""
    written = 0
    with tqdm(total=total, unit="B", unit_scale=True, unit_divisor=1024, desc=desc, leave=False) as bar:
        for chunk in chunks:
            if not chunk:
                continue
            out.write(chunk)
            written += len(chunk)
            bar.update(len(chunk))
    return written


def remove_quietly(path: Path) -> None:
    """Delete a temporary file, warning instead of failing."""
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        warn(f"Failed to remove temporary file {path}: {e}")


def human_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    value = size / 1024
    for unit in ("KiB", "MiB"):
        if value < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GiB"
