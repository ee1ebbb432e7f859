#!/usr/bin/env python3
"""
One-off inbox scrape from the command line.

Usage:
    python scrape_inbox.py --inbox acme --start 2024-01-01 --end 2024-01-31 \\
        --timeline-template templates/timeline.json

Session cookie / base URL come from the environment (.env), see .env.example.
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

import aiohttp
from dotenv import load_dotenv

# Add project root to PYTHONPATH
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from plugins.hackerone.handler import handle_message
from plugins.hackerone.host import HttpPageHost
from plugins.hackerone.models import DEFAULT_BATCH_SIZE, TRIGGER_TYPE

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Export an inbox's report activity timeline to CSV.")
    p.add_argument("--inbox", required=True, help="organization inbox handle")
    p.add_argument("--start", required=True, help="start date, YYYY-MM-DD")
    p.add_argument("--end", required=True, help="end date, YYYY-MM-DD")
    p.add_argument("--batch-size", type=int, default=DEFAULT_BATCH_SIZE)
    p.add_argument("--timeline-template", required=True, type=Path)
    p.add_argument("--metadata-template", type=Path)
    p.add_argument("--output-dir", default=os.getenv("OUTPUT_DIR", "output"))
    p.add_argument("--base-url", default=None)
    p.add_argument("-v", "--verbose", action="store_true")
    return p.parse_args(argv)


def build_message(args: argparse.Namespace) -> dict:
    return {
        "type": TRIGGER_TYPE,
        "inbox": args.inbox,
        "startDate": args.start,
        "endDate": args.end,
        "batchSize": args.batch_size,
        "metadataTemplate": args.metadata_template.read_text(encoding="utf-8") if args.metadata_template else "",
        "timelineTemplate": args.timeline_template.read_text(encoding="utf-8"),
    }


async def main(argv=None) -> int:
    load_dotenv()
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s"
    )

    try:
        async with HttpPageHost(base_url=args.base_url) as host:
            path = await handle_message(build_message(args), host, output_dir=args.output_dir)
    except aiohttp.ClientError as e:
        logger.error("Error: could not open the landing page: %s", e)
        return 1

    if path is None:
        return 1
    print(path)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
