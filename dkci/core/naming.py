"""Archive naming and candidate filtering."""

from __future__ import annotations

import posixpath
from typing import Callable, Iterable, List, Tuple, TypeVar

T = TypeVar("T")

TAR_SUFFIXES = (".tar.gz", ".tgz", ".tar")
# Stands in for "/" so repository paths survive as a single filename
NAME_SEPARATOR = "·"


def split_image_ref(ref: str) -> Tuple[str, str]:
    """Split ``repo[:tag]`` into ``(repo, tag)``.

    Only a ``:`` after the last ``/`` starts the tag, so registry ports such as
    ``localhost:5000/app`` stay in the name.  Digests are dropped.
    """
    ref = ref.split("@", 1)[0]
    slash = ref.rfind("/")
    colon = ref.rfind(":")
    if colon > slash:
        return ref[:colon], ref[colon + 1:]
    return ref, ""


def canonical_filename(image_name: str, tag: str, os: str, arch: str) -> str:
    """Return ``<name>_<tag>_<os>_<arch>.tar`` for an image.

    >>> canonical_filename("my/app", "", "", "")
    'my·app_latest_unknown_unknown.tar'
    """
    name = image_name.replace("/", NAME_SEPARATOR)
    return f"{name}_{tag or 'latest'}_{os or 'unknown'}_{arch or 'unknown'}.tar"


def matches(candidate_base_name: str, pattern: str) -> bool:
    """Literal, case-sensitive substring match; an empty pattern matches all."""
    if not pattern:
        return True
    return pattern in candidate_base_name


def is_tar_name(name: str) -> bool:
    return name.lower().endswith(TAR_SUFFIXES)


def strip_tar_ext(name: str) -> str:
    base = posixpath.basename(name.replace("\\", "/"))
    lower = base.lower()
    for suffix in TAR_SUFFIXES:
        if lower.endswith(suffix):
            return base[: -len(suffix)]
    return base


def discover_tar_candidates(
    entries: Iterable[T],
    pattern: str = "",
    name: Callable[[T], str] = str,
) -> List[T]:
    """Keep archive entries whose extension-stripped base name matches ``pattern``.

    ``name`` extracts the path or filename from each entry so the same rule
    applies to local paths, daemon listings and remote file records.
    """
    found: List[T] = []
    for entry in entries:
        entry_name = name(entry)
        if not is_tar_name(entry_name):
            continue
        if matches(strip_tar_ext(entry_name), pattern):
            found.append(entry)
    return found
