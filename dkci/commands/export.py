"""Export selected Docker images to a directory or to Baidu Netdisk."""

from __future__ import annotations

import posixpath
from pathlib import Path
from typing import List, Tuple

from docker.errors import DockerException

from ..core import (
    TEMP_DIR,
    BDFSClient,
    CloudError,
    archive_name,
    bdfs_config_available,
    fail,
    get_docker_client,
    info,
    multi_select,
    ok,
    remove_quietly,
    resolve_config,
    save_image,
    select_images,
)


def _export_target(args) -> Tuple[str, str]:
    """Return ``("cloud", remote_dir)`` or ``("local", directory)``.

    ``-c`` without a value, or no flag at all while BDFS is configured through
    the environment, exports to the configured default cloud directory.
    """
    if args.cloud is not None:
        return "cloud", args.cloud or resolve_config().default_cloud_dir
    if args.destination is None and bdfs_config_available():
        return "cloud", resolve_config().default_cloud_dir
    return "local", args.destination or str(TEMP_DIR)


def export_image(client, ref: str, destination: Path) -> Path:
    path = destination / archive_name(client, ref)
    info(f"Exporting image {ref} to {path}...")
    save_image(client, ref, path)
    return path


def export_image_to_cloud(client, bdfs: BDFSClient, ref: str, cloud_dir: str) -> str:
    TEMP_DIR.mkdir(parents=True, exist_ok=True)
    tmp = export_image(client, ref, TEMP_DIR)
    remote = posixpath.join(cloud_dir, tmp.name)
    info(f"Uploading {tmp} to Baidu cloud path {remote}...")
    try:
        bdfs.upload_file(tmp, remote)
    finally:
        remove_quietly(tmp)
    return remote


def _report(done: int, total: int, errors: List[Tuple[str, str]], where: str) -> int:
    print(f"Exported {done}/{total} images to {where}")
    if errors:
        print(f"Errors ({len(errors)}):")
        for ref, err in errors:
            print(f"  {ref}: {err}")
        return 1
    return 0


def export_images(client, destination: Path, pattern: str = "") -> int:
    selected = select_images(client, pattern, "Select Docker images to export:", prompt=multi_select)
    destination.mkdir(parents=True, exist_ok=True)

    errors: List[Tuple[str, str]] = []
    for ref in selected:
        try:
            path = export_image(client, ref, destination)
        except (DockerException, OSError) as e:
            fail(f"Failed to export image {ref}: {e}")
            errors.append((ref, str(e)))
            continue
        ok(f"Successfully exported image {ref} to {path}")
    return _report(len(selected) - len(errors), len(selected), errors, str(destination))


def export_images_to_cloud(client, bdfs: BDFSClient, cloud_dir: str, pattern: str = "") -> int:
    selected = select_images(client, pattern, "Select Docker images to export to cloud:", prompt=multi_select)

    errors: List[Tuple[str, str]] = []
    for ref in selected:
        try:
            remote = export_image_to_cloud(client, bdfs, ref, cloud_dir)
        except (DockerException, OSError, CloudError) as e:
            fail(f"Failed to export image {ref} to cloud: {e}")
            errors.append((ref, str(e)))
            continue
        ok(f"Successfully exported and uploaded image {ref} to {remote}")
    return _report(len(selected) - len(errors), len(selected), errors, cloud_dir)


def cmd_export(args) -> int:
    pattern = args.grep or ""
    kind, where = _export_target(args)
    if kind == "local":
        return export_images(get_docker_client(), Path(where), pattern)

    bdfs = BDFSClient.from_config(resolve_config())
    bdfs.authorize()
    ok("Successfully logged in to Baidu cloud")
    return export_images_to_cloud(get_docker_client(), bdfs, where, pattern)
