"""
Command line access to the product fetch pipeline.

Usage:
    python -m listing_insights.cli fetch B08WM3LMJF B0731Y59HG
    python -m listing_insights.cli fetch --bulk-text "B08WM3LMJF, B0731Y59HG"
    python -m listing_insights.cli check-env

Prerequisites:
    - SCRAPEOPS_API_KEY (and OPENAI_API_KEY for the API) in the environment or .env
"""
import argparse
import asyncio
import json
import logging
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv

from .agents import ProductFetcher, parse_bulk_asins, validate_bulk_asins
from .config import get_settings
from .constants import FetchStatus
from .services.images import ImageProcessor
from .services.scraper import ScrapeOpsClient
from .utils.errors import user_friendly_message

logger = logging.getLogger(__name__)


def _print_progress(asin: str, status: FetchStatus, data) -> None:
    print(f"[{status.value.upper():>12}] {asin}", file=sys.stderr)


async def fetch(asins: List[str]) -> int:
    settings = get_settings()
    valid, invalid = validate_bulk_asins(asins)
    for asin in invalid:
        print(f"[WARN] Skipping invalid ASIN: {asin}", file=sys.stderr)
    if not valid:
        print("[ERROR] No valid ASINs provided", file=sys.stderr)
        return 1

    scraper = ScrapeOpsClient.from_settings(settings)
    try:
        async with ImageProcessor() as images:
            fetcher = ProductFetcher(scraper, images, item_delay=settings.bulk_fetch_item_delay)
            result = await fetcher.fetch_bulk_products(valid, on_progress=_print_progress)
    finally:
        await scraper.close()

    print(json.dumps(result.model_dump(by_alias=True, mode="json"), indent=2, ensure_ascii=False))
    return 0 if result.failed_count == 0 else 2


def check_env() -> int:
    settings = get_settings()
    report = {
        "OPENAI_API_KEY": len(settings.openai_api_key or ""),
        "SCRAPEOPS_API_KEY": len(settings.scrapeops_api_key or ""),
    }
    for name, length in report.items():
        state = f"set ({length} chars)" if length else "MISSING"
        print(f"{name}: {state}")
    print(f"ENV: {settings.env}")
    return 0 if all(report.values()) else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="listing-insights", description=__doc__.splitlines()[1])
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    fetch_cmd = commands.add_parser("fetch", help="fetch products and print the bulk result as JSON")
    fetch_cmd.add_argument("asins", nargs="*", help="ASINs to fetch")
    fetch_cmd.add_argument("--bulk-text", help="comma or whitespace separated ASINs")

    commands.add_parser("check-env", help="report which credentials are configured")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    env_path = os.path.join(os.getcwd(), ".env")
    if os.path.exists(env_path):
        load_dotenv(env_path)

    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if args.command == "check-env":
        return check_env()

    asins = parse_bulk_asins(" ".join(args.asins) + " " + (args.bulk_text or ""))
    if not asins:
        print("[ERROR] Provide ASINs as arguments or with --bulk-text", file=sys.stderr)
        return 1
    try:
        return asyncio.run(fetch(asins))
    except ValueError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.error(f"Fetch failed: {e}")
        print(f"[ERROR] {user_friendly_message(e)}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
