"""Delete selected local Docker images."""

from __future__ import annotations

from typing import List, Tuple

from docker.errors import DockerException

from ..core import fail, get_docker_client, info, multi_select, ok, remove_image, select_images


def delete_images(client, pattern: str = "") -> int:
    selected = select_images(client, pattern, "Select Docker images to delete:", prompt=multi_select)

    errors: List[Tuple[str, str]] = []
    for ref in selected:
        info(f"Deleting image {ref}...")
        try:
            remove_image(client, ref)
        except DockerException as e:
            fail(f"Failed to delete image {ref}: {e}")
            errors.append((ref, str(e)))
            continue
        ok(f"Successfully deleted image {ref}")
    return 1 if errors else 0


def cmd_delete(args) -> int:
    return delete_images(get_docker_client(), args.grep or "")
