"""
Entrypoint: load .env and config, set up logging, then parse a package
descriptor, print its download URL, or download its archive.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import httpx
import structlog
from dotenv import load_dotenv

from ept.config import Config
from ept.errors import PACKAGE_ERRORS, UrlError
from ept.fetcher import DEFAULT_CHUNK_SIZE, download
from ept.package import Package

logger = structlog.get_logger(__name__)


def setup_logging(level='INFO'):
    level = str(level).upper()
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=int(level) if level.isdigit() else getattr(logging, level, logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ept", description="Better-Ept package descriptor tool")
    parser.add_argument("--config", help="path to a YAML config file")
    subparsers = parser.add_subparsers(dest="command", required=True)

    parse_cmd = subparsers.add_parser("parse", help="print a descriptor as JSON")
    parse_cmd.add_argument("descriptor")

    url_cmd = subparsers.add_parser("url", help="print the archive download URL")
    url_cmd.add_argument("descriptor")
    url_cmd.add_argument("--base-url")

    fetch_cmd = subparsers.add_parser("fetch", help="download the archive")
    fetch_cmd.add_argument("descriptor")
    fetch_cmd.add_argument("--base-url")
    fetch_cmd.add_argument("--output", help="output file, defaults to the archive name")

    return parser


def _resolve_base_url(args, config: Config) -> str:
    base_url = args.base_url or config.repository.get('base_url')
    if not base_url:
        raise UrlError("", "no base URL: pass --base-url or set repository.base_url / EPT_BASE_URL")
    return base_url


async def run(args, config: Config) -> int:
    package = Package.parse(args.descriptor)

    if args.command == "parse":
        print(package.model_dump_json())
        return 0

    base_url = _resolve_base_url(args, config)

    if args.command == "url":
        print(package.download_url(base_url))
        return 0

    output = args.output
    if output is None:
        output = Path(str(config.download.get('output_dir', '.'))) / package.archive_name
    chunk_size = config.download.get('chunk_size', DEFAULT_CHUNK_SIZE)

    path = await download(package, base_url, output, chunk_size=chunk_size)
    logger.info("package_saved", package=str(package), path=str(path))
    print(path)
    return 0


def main(argv=None) -> int:
    """Main entry point for the ept command."""
    load_dotenv()
    args = build_parser().parse_args(argv)

    try:
        config = Config(args.config)
    except (FileNotFoundError, ValueError) as e:
        setup_logging()
        logger.error("config_error", error=str(e), kind=type(e).__name__)
        return 1
    setup_logging(config.logging.get('level', 'INFO'))

    try:
        return asyncio.run(run(args, config))
    except PACKAGE_ERRORS as e:
        logger.error("package_error", error=str(e), kind=type(e).__name__)
    except httpx.HTTPError as e:
        logger.error("transport_error", error=str(e), kind=type(e).__name__)
    return 1


if __name__ == "__main__":
    sys.exit(main())
