"""Temporary directory cleanup."""

from __future__ import annotations

import shutil

from ..core import DkciError, TEMP_DIR, confirm, fail, human_size, info, ok


def cmd_clean(_args) -> int:
    p = TEMP_DIR
    if not p.is_dir():
        raise DkciError(f"Cache directory does not exist: {p}")

    entries = sorted(p.iterdir())
    if not entries:
        info(f"No files found in cache directory: {p}")
        return 0

    for entry in entries:
        size = "dir" if entry.is_dir() else human_size(entry.stat().st_size)
        info(f"- {entry}  ({size})")

    if not confirm(f"Found {len(entries)} file(s) in {p}. Delete all?", default=False):
        info("Cache cleanup cancelled by user")
        return 0

    deleted = 0
    for entry in entries:
        try:
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()
        except OSError as e:
            fail(f"Failed to delete {entry}: {e}")
            continue
        deleted += 1

    ok(f"Cleaned cache directory. Deleted {deleted}/{len(entries)} file(s)")
    return 0 if deleted == len(entries) else 1
