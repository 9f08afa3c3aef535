"""Implementation of the ``dkci import`` command."""

from __future__ import annotations

import posixpath
from pathlib import Path
from typing import Any, Dict, List

from docker.errors import DockerException

from ..core import (
    TEMP_DIR,
    BDFSClient,
    CloudError,
    DkciError,
    NoCandidatesError,
    discover_tar_candidates,
    get_docker_client,
    info,
    is_tar_name,
    load_image,
    map_to_entries,
    multi_select,
    ok,
    remove_quietly,
    resolve_config,
    select_entries,
)


def _collect_tar_files(path: Path, pattern: str) -> List[Path]:
    """Return image archives under ``path`` recursively, filtered by ``pattern``."""

    files = sorted(p for p in path.rglob("*") if p.is_file())
    return discover_tar_candidates(files, pattern, name=lambda p: p.name)


def import_file(client, path: Path) -> List[str]:
    info(f"Importing image from file: {path}")
    try:
        tags = load_image(client, path)
    except (DockerException, OSError) as e:
        raise DkciError(f"Failed to load image from {path}: {e}") from e
    if tags:
        ok(f"Successfully imported image from {path}: {', '.join(tags)}")
    else:
        ok(f"Successfully imported image from {path}")
    return tags


def import_from_source(client, source: Path, pattern: str = "") -> int:
    """Import a single archive, or let the user pick archives from a directory."""

    if not source.is_dir():
        import_file(client, source)
        return 0

    files = _collect_tar_files(source, pattern)
    if not files:
        raise NoCandidatesError("No .tar files found in the specified directory")

    # Archives in different subdirectories may share a base name
    def label(p: Path) -> str:
        return p.relative_to(source).as_posix()

    chosen = select_entries(
        "Select .tar files to import as Docker images:",
        [label(p) for p in files],
        prompt=multi_select,
    )
    for path in map_to_entries(chosen, files, name=label):
        import_file(client, path)
    return 0


def download_and_import(client, bdfs: BDFSClient, remote_path: str) -> None:
    TEMP_DIR.mkdir(parents=True, exist_ok=True)
    local = TEMP_DIR / posixpath.basename(remote_path)
    info(f"Downloading {remote_path} from Baidu cloud to temporary file {local}...")
    bdfs.download_file(remote_path, local)
    import_file(client, local)
    remove_quietly(local)


def _import_single_remote(client, bdfs: BDFSClient, entry: Dict[str, Any]) -> int:
    path = entry.get("path", "")
    if not is_tar_name(path):
        raise DkciError(f"The specified file {path} is not a .tar file")
    download_and_import(client, bdfs, path)
    return 0


def import_from_cloud(client, bdfs: BDFSClient, cloud_path: str, pattern: str = "") -> int:
    """Import one remote archive or a user selection from a remote directory."""

    if is_tar_name(cloud_path):
        entry = bdfs.get_file_info(cloud_path)
        if not entry.get("isdir"):
            return _import_single_remote(client, bdfs, entry)

    try:
        entries = bdfs.list_files(cloud_path)
    except CloudError:
        # Listing only works on directories
        entry = bdfs.get_file_info(cloud_path)
        return _import_single_remote(client, bdfs, entry)

    files = [e for e in entries if not e.get("isdir")]
    tar_files = discover_tar_candidates(files, pattern, name=lambda e: e.get("path", ""))
    if not tar_files:
        raise NoCandidatesError("No .tar files found in the specified cloud directory")

    def base(entry: Dict[str, Any]) -> str:
        return posixpath.basename(entry.get("path", ""))

    chosen = select_entries(
        "Select .tar files to download and import as Docker images:",
        [base(e) for e in tar_files],
        prompt=multi_select,
    )
    for entry in map_to_entries(chosen, tar_files, name=base):
        download_and_import(client, bdfs, entry["path"])
    return 0


def cmd_import(args) -> int:
    """Entry point for the ``import`` sub-command."""

    pattern = args.grep or ""
    if args.source:
        source = Path(args.source)
        if not source.exists():
            raise DkciError(f"Error accessing source: {source} does not exist")
        return import_from_source(get_docker_client(), source, pattern)

    config = resolve_config()
    bdfs = BDFSClient.from_config(config)
    bdfs.authorize()
    ok("Successfully logged in to Baidu cloud")
    return import_from_cloud(get_docker_client(), bdfs, args.cloud or config.default_cloud_dir, pattern)
