"""Storage driver CLI.

Usage:
    hubdrivers provision
    hubdrivers ls PREFIX [--page TOKEN] [--all]
    hubdrivers put LOCAL_FILE STORAGE_TOP_LEVEL PATH [--content-type TYPE]

The driver and its credentials come from HUB_* environment variables.
"""

import argparse
import asyncio
import mimetypes
import os
import sys

from hubdrivers import __version__
from hubdrivers.config import get_hub_config
from hubdrivers.drivers import FileWriteRequest, StorageDriver, stream_file
from hubdrivers.errors import DriverError
from hubdrivers.logging import setup_logging
from hubdrivers.registry import close_driver, create_driver, init_driver


async def provision() -> None:
    """Ensure the configured bucket exists; exit 1 on failure."""
    driver = await init_driver()
    print(f"{driver.backend_name} bucket ready: {driver.bucket}")
    await close_driver()


async def list_files(driver: StorageDriver, prefix: str, page: str | None, all_pages: bool) -> None:
    while True:
        result = await driver.list_files(prefix, page)
        for entry in result.entries:
            print(entry)
        page = result.page
        if not all_pages or page is None:
            break
    if page is not None:
        print(f"next page: {page}", file=sys.stderr)


async def put_file(
    driver: StorageDriver,
    local_file: str,
    storage_top_level: str,
    path: str,
    content_type: str | None,
) -> None:
    if content_type is None:
        content_type = mimetypes.guess_type(local_file)[0] or "application/octet-stream"
    with open(local_file, "rb") as fh:
        url = await driver.perform_write(
            FileWriteRequest(
                path=path,
                storage_top_level=storage_top_level,
                stream=stream_file(fh),
                content_type=content_type,
                content_length=os.fstat(fh.fileno()).st_size,
            )
        )
    print(url)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hubdrivers", description="Hub storage driver tools")
    parser.add_argument("--version", action="version", version=__version__)
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("provision", help="Create the configured bucket if absent")

    ls_parser = subparsers.add_parser("ls", help="List files under a prefix")
    ls_parser.add_argument("prefix")
    ls_parser.add_argument("--page", default=None, help="Continuation token")
    ls_parser.add_argument("--all", action="store_true", help="Follow every page")

    put_parser = subparsers.add_parser("put", help="Write a local file")
    put_parser.add_argument("local_file")
    put_parser.add_argument("storage_top_level")
    put_parser.add_argument("path")
    put_parser.add_argument("--content-type", default=None)

    return parser


async def run(args: argparse.Namespace) -> None:
    if args.command == "provision":
        await provision()
        return

    driver = create_driver(get_hub_config())
    try:
        if args.command == "ls":
            await list_files(driver, args.prefix, args.page, args.all)
        elif args.command == "put":
            await put_file(driver, args.local_file, args.storage_top_level, args.path, args.content_type)
    finally:
        await driver.close()


def main(argv: list[str] | None = None) -> None:
    """Run the CLI."""
    args = build_parser().parse_args(argv)
    setup_logging(get_hub_config().logging)
    try:
        asyncio.run(run(args))
    except DriverError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
