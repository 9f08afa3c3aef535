"""Command handlers for dkci."""

from .export import cmd_export
from .import_cmd import cmd_import
from .delete import cmd_delete
from .clean import cmd_clean

__all__ = [
    "cmd_export",
    "cmd_import",
    "cmd_delete",
    "cmd_clean",
]
