#!/usr/bin/env python3
"""
Example: Using the bulk_export_api client and the lower-level job driver

This example demonstrates both the one-call BulkExportClient API and the
step-by-step ExportJobDriver API for running a bulk export.

Usage:
    BULK_EXPORT_API_KEY=... python async_example.py --url https://api.example.com/v1 \
        --record-type alert --start 2024-01-01 --end 2024-01-31 --output ./out/alerts.zip
"""

import asyncio
import argparse
import logging
import os
from datetime import date

from bulk_export_api import BulkExportClient, BulkExportError, ExportConfig, ExportRequest, RecordType


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
log = logging.getLogger(__name__)


async def high_level_example(config: ExportConfig, request: ExportRequest, api_key: str):
    """
    Demonstrates the one-call API (recommended for most use cases).
    """
    log.info("=== One-call BulkExportClient Example ===")
    async with BulkExportClient(config) as client:
        saved = await client.export(request, api_key)
    log.info(f"Export saved to {saved}")


async def low_level_example(config: ExportConfig, request: ExportRequest, api_key: str):
    """
    Demonstrates driving each stage separately, e.g. to report the job id early.
    """
    log.info("=== Step-by-step ExportJobDriver Example ===")
    async with BulkExportClient(config) as client:
        driver = client.driver
        job_id = await driver.submit(request, api_key)
        log.info(f"1. Submitted job {job_id}")

        job = await driver.await_completion(job_id, api_key)
        log.info(f"2. Job {job.id} is {job.status.value}")

        handle = await driver.resolve_download_url(job.id, api_key)
        log.info("3. Signed URL resolved")

        saved = await driver.download(handle, request.destination_path)
        log.info(f"4. Export saved to {saved}")


async def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="bulk_export_api examples")
    parser.add_argument('--url', required=True, help='API base URL')
    parser.add_argument('--record-type', default='alert', choices=[r.value for r in RecordType])
    parser.add_argument('--start', required=True, type=date.fromisoformat, help='YYYY-MM-DD')
    parser.add_argument('--end', required=True, type=date.fromisoformat, help='YYYY-MM-DD')
    parser.add_argument('--output', required=True, help='Where to save the archive')
    parser.add_argument(
        '--api',
        choices=['high', 'low'],
        default='high',
        help='Which API to demonstrate (default: high)'
    )
    args = parser.parse_args()

    api_key = os.environ.get("BULK_EXPORT_API_KEY")
    if not api_key:
        log.error("Set BULK_EXPORT_API_KEY")
        return 1

    config = ExportConfig(base_url=args.url)
    request = ExportRequest(RecordType.parse(args.record_type), args.start, args.end, args.output)

    try:
        if args.api == 'high':
            await high_level_example(config, request, api_key)
        else:
            await low_level_example(config, request, api_key)
    except BulkExportError as e:
        log.error(f"Error: {e}", exc_info=True)
        return 1

    return 0


if __name__ == '__main__':
    exit_code = asyncio.run(main())
    exit(exit_code)
