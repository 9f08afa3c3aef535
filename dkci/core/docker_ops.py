"""Docker daemon operations through the Docker SDK for Python."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable, List, Sequence, Tuple

import docker
from docker.errors import DockerException

from .errors import NoCandidatesError
from .naming import canonical_filename, matches, split_image_ref
from .selection import select_entries
from .utils import info, warn, write_chunks

UNTAGGED = "<none>:<none>"


def get_docker_client() -> docker.DockerClient:
    """Return a client configured from ``DOCKER_HOST`` and friends."""
    return docker.from_env()


def list_image_tags(client: docker.DockerClient, pattern: str = "") -> List[str]:
    """Return every ``repo:tag`` known to the daemon that matches ``pattern``."""
    tags: List[str] = []
    for image in client.images.list():
        for tag in image.attrs.get("RepoTags") or []:
            if tag == UNTAGGED or not matches(tag, pattern):
                continue
            tags.append(tag)
    return tags


def image_platform(client: docker.DockerClient, ref: str) -> Tuple[str, str]:
    """Return ``(os, architecture)`` of ``ref``; empty strings when inspection fails."""
    try:
        attrs = client.images.get(ref).attrs
    except DockerException as e:
        warn(f"Could not inspect image {ref}: {e}")
        return "", ""
    return attrs.get("Os") or "", attrs.get("Architecture") or ""


def archive_name(client: docker.DockerClient, ref: str) -> str:
    name, tag = split_image_ref(ref)
    os_name, arch = image_platform(client, ref)
    return canonical_filename(name, tag, os_name, arch)


def save_image(client: docker.DockerClient, ref: str, dest: Path) -> Path:
    """Write ``docker save`` output for ``ref`` to ``dest``.

    Saving by reference (not by id) keeps the repository and tag in the
    archive so ``load_image`` restores the same name.
    """
    stream = client.api.get_image(ref)
    try:
        with open(dest, "wb") as out:
            write_chunks(stream, out, desc=ref)
    except BaseException:
        dest.unlink(missing_ok=True)
        raise
    return dest


def load_image(client: docker.DockerClient, path: Path) -> List[str]:
    """Load an image archive into the daemon and return the loaded tags.

    Plain and gzip-compressed archives are sent unchanged; the daemon
    detects the compression itself.
    """
    with open(path, "rb") as fh:
        images = client.images.load(fh)
    tags: List[str] = []
    for image in images:
        tags.extend(image.tags or [image.short_id])
    return tags


def remove_image(client: docker.DockerClient, ref: str) -> None:
    # Untagged parents that only this image used are pruned as well
    client.images.remove(image=ref, force=False, noprune=False)


def select_images(
    client: docker.DockerClient,
    pattern: str,
    message: str,
    *,
    prompt: Callable[[str, Sequence[str]], Iterable[str]] | None = None,
) -> List[str]:
    """List tagged images matching ``pattern`` and let the user pick some."""
    tags = list_image_tags(client, pattern)
    if not tags:
        raise NoCandidatesError("No tagged Docker images found")
    info(f"Found {len(tags)} tagged Docker image(s)")
    selected = select_entries(message, tags, prompt=prompt)
    info(f"Selected images: {', '.join(selected)}")
    return selected
