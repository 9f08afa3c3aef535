"""Core utilities for dkci."""

from .config import (
    CONFIG_PATH,
    TEMP_DIR,
    DEFAULT_CLOUD_DIR,
    BDFSConfig,
    bdfs_config_available,
    resolve_config,
)
from .errors import (
    DkciError,
    ConfigError,
    ConfigUnreadableError,
    ConfigMalformedError,
    ConfigIncompleteError,
    SelectionError,
    EmptySelectionError,
    NoCandidatesError,
    CloudError,
    CloudNotFoundError,
)
from .naming import canonical_filename, matches, discover_tar_candidates, split_image_ref, is_tar_name
from .selection import ALL, build_options, reconcile, map_to_entries, select_entries
from .interactive import multi_select, confirm
from .utils import ok, fail, warn, info, remove_quietly, human_size
from .docker_ops import (
    get_docker_client,
    list_image_tags,
    archive_name,
    save_image,
    load_image,
    remove_image,
    select_images,
)
from .cloud import BDFSClient

__all__ = [
    "CONFIG_PATH", "TEMP_DIR", "DEFAULT_CLOUD_DIR", "BDFSConfig",
    "bdfs_config_available", "resolve_config",
    "DkciError", "ConfigError", "ConfigUnreadableError", "ConfigMalformedError",
    "ConfigIncompleteError", "SelectionError", "EmptySelectionError",
    "NoCandidatesError", "CloudError", "CloudNotFoundError",
    "canonical_filename", "matches", "discover_tar_candidates", "split_image_ref", "is_tar_name",
    "ALL", "build_options", "reconcile", "map_to_entries", "select_entries",
    "multi_select", "confirm",
    "ok", "fail", "warn", "info", "remove_quietly", "human_size",
    "get_docker_client", "list_image_tags", "archive_name", "save_image", "load_image", "remove_image",
    "select_images",
    "BDFSClient",
]
