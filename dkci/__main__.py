"""Command line entry point for dkci."""

from __future__ import annotations

import argparse
import sys

from docker.errors import DockerException

from dkci import __version__
from dkci.core import TEMP_DIR, DkciError, fail
from dkci.commands import cmd_clean, cmd_delete, cmd_export, cmd_import

EPILOG = """\
examples:
  dkci export --destination /tmp/images
  dkci export --cloud /docker-images
  dkci import --source /tmp/image.tar
  dkci import --source /tmp/docker-images/ --grep alpine
  dkci delete --grep alpine
  dkci clean
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dkci",
        description="Manage Docker images with local storage and Baidu cloud",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="cmd")

    # export
    p_exp = sub.add_parser("export", help="Export Docker images to a local directory or Baidu cloud")
    exp_target = p_exp.add_mutually_exclusive_group()
    exp_target.add_argument(
        "-d", "--destination",
        help=f"Export directory (default: {TEMP_DIR})",
    )
    exp_target.add_argument(
        "-c", "--cloud", nargs="?", const="", metavar="CLOUD_DIR",
        help="Baidu cloud folder; without a value the configured default_cloud_dir is used",
    )
    p_exp.add_argument("-g", "--grep", default="", help="Filter images by pattern")
    p_exp.set_defaults(func=cmd_export)

    # import
    p_imp = sub.add_parser("import", help="Import Docker images from .tar files")
    imp_source = p_imp.add_mutually_exclusive_group(required=True)
    imp_source.add_argument(
        "-s", "--source",
        help="Source .tar file or directory containing .tar files",
    )
    imp_source.add_argument(
        "-c", "--cloud", nargs="?", const="", metavar="CLOUD_PATH",
        help="Baidu cloud file or folder; without a value the configured default_cloud_dir is used",
    )
    p_imp.add_argument("-g", "--grep", default="", help="Filter files by pattern")
    p_imp.set_defaults(func=cmd_import)

    # delete
    p_del = sub.add_parser("delete", help="Delete Docker images")
    p_del.add_argument("-g", "--grep", default="", help="Filter images by pattern")
    p_del.set_defaults(func=cmd_delete)

    p_clean = sub.add_parser("clean", help=f"Delete everything in {TEMP_DIR}")
    p_clean.set_defaults(func=cmd_clean)

    sub.add_parser("version", help="Print program version")
    sub.add_parser("help", help="Display this help information")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.cmd or args.cmd == "help":
        parser.print_help()
        return 0
    if args.cmd == "version":
        print(f"dkci version {__version__}")
        return 0
    try:
        return args.func(args)
    except DkciError as e:
        fail(e.message)
    except DockerException as e:
        fail(f"Docker error: {e}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
