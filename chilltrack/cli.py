"""Command-line entry point for POD photo extraction and scoring."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import time
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .assets import InMemoryPhotoAssetStore, JsonPhotoAssetStore, PhotoAssetStore
from .config import POLICY_PRESETS, IngestionConfig, ScoringConfig, get_policy
from .crawler import HtmlTrackingFetcher, TrackingPageFetcher
from .ingestion import IngestionResult, PhotoIngestionService
from .models import DeliveryRecord
from .scoring import calculate_pod_metrics, quality_tier
from .urls import filter_fetchable_photos
from .utils import extract_tracking_token, slugify

logger = logging.getLogger("chilltrack.cli")


def _ensure_command_prefix(argv: Sequence[str], commands: Iterable[str]) -> Sequence[str]:
    if not argv:
        return argv
    first = argv[0]
    if first in commands or first.startswith("-"):
        return argv
    return ("extract", *argv)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


def _add_extract_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "links", nargs="+", help="Tracking URLs or bare tracking tokens"
    )
    parser.add_argument(
        "--tier",
        default="full",
        choices=sorted(POLICY_PRESETS),
        help="Photo filter policy to apply",
    )
    parser.add_argument(
        "--html",
        action="store_true",
        help="Parse static HTML instead of rendering the page with Playwright",
    )
    parser.add_argument(
        "--store",
        type=Path,
        default=None,
        help="JSON file used to persist photo assets between runs",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Directory where one JSON file per token should be written",
    )
    parser.add_argument(
        "--wait",
        type=float,
        default=2.0,
        help="Seconds to wait after network idle before reading images",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Navigation timeout in seconds",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def _add_filter_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("urls", nargs="+", help="Stored photo URLs to check")
    parser.add_argument(
        "--allow-data-uris",
        action="store_true",
        help="Keep data:image/ URIs (legacy behaviour)",
    )


def _add_score_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--photos",
        type=int,
        default=None,
        help="Number of stored delivery photos; defaults to the file counters",
    )
    parser.add_argument("--signature-name", default=None, help="Name of the signer")
    parser.add_argument(
        "--expected",
        default=None,
        help='Expected temperature label, e.g. "Frozen -18C to -20C"',
    )
    parser.add_argument(
        "--reading",
        action="append",
        default=[],
        help="Driver-recorded temperature; may be given up to three times",
    )
    parser.add_argument(
        "--file-count",
        type=int,
        default=None,
        help="Carrier delivery file counter, used when --photos is absent",
    )
    parser.add_argument("--tracking-link", default=None, help="Delivery tracking link")
    parser.add_argument(
        "--shipper", default=None, help="Shipper company name (dual-zone rules)"
    )
    parser.add_argument(
        "--dual-zone-shipper",
        action="append",
        default=[],
        help="Shipper requiring both a chilled and a frozen reading",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Extract proof-of-delivery photos from carrier tracking pages and score them.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    extract_parser = subparsers.add_parser(
        "extract", help="Fetch tracking pages and classify their photos"
    )
    _add_extract_arguments(extract_parser)

    filter_parser = subparsers.add_parser(
        "filter-urls", help="De-duplicate stored photo URLs and drop unfetchable ones"
    )
    _add_filter_arguments(filter_parser)

    score_parser = subparsers.add_parser("score", help="Compute a POD quality score")
    _add_score_arguments(score_parser)

    argv = list(sys.argv[1:] if argv is None else argv)
    argv = list(_ensure_command_prefix(argv, subparsers.choices.keys()))
    return parser.parse_args(argv)


async def _ingest(
    tokens: List[str],
    service_factory,
    use_browser: bool,
    config: IngestionConfig,
) -> List[IngestionResult]:
    if use_browser:
        async with TrackingPageFetcher(config) as fetcher:
            return await service_factory(fetcher).ingest_many(tokens)
    return await service_factory(HtmlTrackingFetcher(config)).ingest_many(tokens)


def _result_payload(result: IngestionResult) -> Dict[str, object]:
    return {
        "token": result.token,
        "photo_count": result.photo_count,
        "fetched": result.fetched,
        "error": result.error,
        "photos": [
            {
                "url": asset.url,
                "kind": asset.kind.value,
                "width": asset.width,
                "height": asset.height,
                "hash": asset.hash,
            }
            for asset in result.assets
        ],
    }


def _run_extract(args: argparse.Namespace) -> int:
    _configure_logging(args.verbose)

    config = IngestionConfig.from_env()
    config.wait_after_load = args.wait
    if args.timeout is not None:
        config.navigation_timeout = args.timeout
    policy = get_policy(args.tier)

    tokens: List[str] = []
    invalid = 0
    for link in args.links:
        token = extract_tracking_token(link)
        if token:
            tokens.append(token)
        else:
            invalid += 1
            logger.error("Could not derive a tracking token from %s", link)

    store: PhotoAssetStore = (
        JsonPhotoAssetStore(args.store) if args.store else InMemoryPhotoAssetStore()
    )

    def _service(fetcher) -> PhotoIngestionService:
        return PhotoIngestionService(fetcher, store, policy=policy, config=config)

    overall_start = time.perf_counter()
    results: List[IngestionResult] = []
    if tokens:
        results = asyncio.run(_ingest(tokens, _service, not args.html, config))
    total_elapsed = time.perf_counter() - overall_start

    failures = invalid + sum(1 for result in results if result.error)
    attempted = invalid + len(results)
    logger.info(
        "Finished in %.2fs (%d/%d succeeded, %d failed)",
        total_elapsed,
        attempted - failures,
        attempted,
        failures,
    )

    payload = [_result_payload(result) for result in results]
    if args.output:
        args.output.mkdir(parents=True, exist_ok=True)
        for item in payload:
            path = args.output / f"{slugify(str(item['token']))}.json"
            path.write_text(json.dumps(item, indent=2), encoding="utf-8")
            logger.info("Saved photos to %s", path)

    sys.stdout.write(json.dumps(payload, indent=2) + "\n")
    sys.stdout.flush()
    return 1 if attempted and failures == attempted else 0


def _run_filter(args: argparse.Namespace) -> int:
    for url in filter_fetchable_photos(args.urls, accept_data_uris=args.allow_data_uris):
        sys.stdout.write(url + "\n")
    sys.stdout.flush()
    return 0


def _reading_fields(readings: List[str]) -> Dict[str, Optional[str]]:
    fields = ("payment_method", "amount_collected", "amount_to_collect")
    if len(readings) > len(fields):
        logger.warning("Only the first %d readings are used", len(fields))
    return dict(zip(fields, readings))


def _run_score(args: argparse.Namespace) -> int:
    delivery = DeliveryRecord(
        expected_temperature=args.expected,
        delivery_signature_name=args.signature_name,
        delivery_live_track_link=args.tracking_link,
        delivery_received_file_count=args.file_count,
        shipper_company_name=args.shipper,
        **_reading_fields(args.reading),
    )
    config = ScoringConfig(dual_zone_shippers=tuple(args.dual_zone_shipper))
    metrics = calculate_pod_metrics(delivery, args.photos, config)
    payload = metrics.to_dict()
    payload["tier"] = quality_tier(metrics.quality_score)
    sys.stdout.write(json.dumps(payload, indent=2) + "\n")
    sys.stdout.flush()
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    if args.command == "extract":
        return _run_extract(args)
    if args.command == "filter-urls":
        return _run_filter(args)
    return _run_score(args)


if __name__ == "__main__":
    sys.exit(main())
