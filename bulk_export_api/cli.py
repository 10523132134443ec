"""Command-line front end for bulk exports.

Usage:
    bulk-export --record-type alert --start 2024-01-01 --end 2024-01-31 \\
        --output ./out/alerts.zip --environment sandbox --domain example.com --summary

Security note: the API key is read from BULK_EXPORT_API_KEY or prompted for
without echo; it is never accepted on the command line.
"""
from __future__ import annotations

import argparse
import asyncio
import getpass
import logging
import os
import sys
from datetime import date
from typing import Optional, Sequence

from .client import BulkExportClient
from .config import ENVIRONMENT_HOSTS, ExportConfig, resolve_base_url
from .exceptions import BulkExportError
from .types import ExportRequest, RecordType

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

log = logging.getLogger(__name__)


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date '{value}', expected YYYY-MM-DD") from None


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="bulk-export", description="Request, await and download a bulk export")
    p.add_argument("--record-type", required=True, choices=[r.value for r in RecordType],
                   help="Which records to export")
    p.add_argument("--start", required=True, type=_parse_date, help="First day, YYYY-MM-DD (inclusive)")
    p.add_argument("--end", required=True, type=_parse_date, help="Last day, YYYY-MM-DD (inclusive)")
    p.add_argument("--output", required=True, help="Path to save the export archive")
    p.add_argument("--summary", action="store_true", help="Summary instead of detailed export (alerts only)")
    target = p.add_mutually_exclusive_group()
    target.add_argument("--base-url", help="API base URL, must be https:// (or set BULK_EXPORT_BASE_URL)")
    target.add_argument("--environment", choices=sorted(ENVIRONMENT_HOSTS),
                        help="Named environment (or set BULK_EXPORT_ENVIRONMENT)")
    p.add_argument("--domain", help="Vendor domain used with --environment (or set BULK_EXPORT_DOMAIN)")
    p.add_argument("--poll-interval", type=float, help="Seconds between status polls")
    p.add_argument("--poll-timeout", type=float, help="Seconds to wait for the export before giving up")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return p


def resolve_config(args: argparse.Namespace, parser: argparse.ArgumentParser) -> ExportConfig:
    base_url = args.base_url
    if args.environment:
        domain = args.domain or os.environ.get("BULK_EXPORT_DOMAIN")
        if not domain:
            parser.error("--environment requires --domain or BULK_EXPORT_DOMAIN")
        base_url = resolve_base_url(args.environment, domain)
    try:
        return ExportConfig.from_env(
            base_url=base_url,
            poll_interval=args.poll_interval,
            poll_timeout=args.poll_timeout,
        )
    except ValueError as e:
        parser.error(str(e))


def resolve_api_key() -> str:
    api_key = os.environ.get("BULK_EXPORT_API_KEY")
    if not api_key:
        # Prompt securely without echo
        api_key = getpass.getpass("API key: ")
    return api_key


async def run(config: ExportConfig, request: ExportRequest, api_key: str) -> str:
    async with BulkExportClient(config) as client:
        return await client.export(request, api_key)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format=LOG_FORMAT)

    if args.summary and args.record_type != RecordType.ALERT.value:
        parser.error("--summary only applies to alert exports")

    extra_flags = {"is_summary": args.summary} if args.record_type == RecordType.ALERT.value else {}
    try:
        request = ExportRequest(
            record_type=RecordType.parse(args.record_type),
            start_date=args.start,
            end_date=args.end,
            destination_path=args.output,
            extra_flags=extra_flags,
        )
    except ValueError as e:
        parser.error(str(e))

    config = resolve_config(args, parser)
    api_key = resolve_api_key()
    if not api_key:
        parser.error("An API key is required (set BULK_EXPORT_API_KEY)")

    try:
        saved = asyncio.run(run(config, request, api_key))
    except BulkExportError as e:
        log.error(f"Export failed: {e}")
        print(f"Export failed: {e}", file=sys.stderr)
        return 1
    print(saved)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
