#!/usr/bin/env python3
"""
CLI: score profile photos for sharpness, lighting and smile.
Usage:
  python run_analysis.py --photos path/to/folder/ [--workers 4] [--timeout 60] [--output report.json]
  python run_analysis.py --url https://example.com/photo.jpg [--url ...]
"""

import argparse
import json
import logging
import os
import sys

# Ensure project root is on path so config and photo_quality resolve when run from any cwd
_SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
if _SCRIPT_DIR not in sys.path:
    sys.path.insert(0, _SCRIPT_DIR)

from tqdm import tqdm

import config as cfg
from photo_quality.analyzer import QualityAnalyzer
from photo_quality.expression import ExpressionModels
from photo_quality.logging_config import setup_logging
from photo_quality.sources import lazy_source


def collect_image_paths(folder: str) -> list[str]:
    """Collect image paths from a folder (no recursion), sorted by name."""
    paths = []
    if not os.path.isdir(folder):
        return paths
    for name in sorted(os.listdir(folder)):
        ext = os.path.splitext(name)[1].lower()
        if ext in cfg.IMAGE_EXTENSIONS:
            paths.append(os.path.join(folder, name))
    return paths


def build_items(photos: str | None, urls: list[str]) -> list[tuple]:
    """(photo_id, lazy source) pairs: local files first, then URLs, in the order given."""
    items = []
    if photos:
        paths = [photos] if os.path.isfile(photos) else collect_image_paths(photos)
        for path in paths:
            items.append((os.path.basename(path), lazy_source(storage_path=path)))
    for url in urls:
        items.append((url, lazy_source(url=url)))
    return items


def make_progress(desc: str):
    pbar = [None]

    def progress(processed: int, total: int):
        if pbar[0] is None:
            pbar[0] = tqdm(total=total, desc=desc, unit="img", file=sys.stderr)
        pbar[0].n = min(processed, pbar[0].total)
        pbar[0].refresh()

    def close():
        if pbar[0] is not None:
            pbar[0].close()

    return progress, close


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Score photos by quality (sharpness, lighting, smile) and list warnings."
    )
    parser.add_argument(
        "--photos",
        default=None,
        help="Path to folder containing photos (or a single image path)",
    )
    parser.add_argument(
        "--url",
        dest="urls",
        action="append",
        default=[],
        help="Image URL to download and analyze (repeatable)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=cfg.BATCH_MAX_WORKERS,
        help=f"Photos analyzed in parallel (default: {cfg.BATCH_MAX_WORKERS})",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=cfg.ANALYSIS_TIMEOUT_SEC,
        help=f"Per-photo analysis timeout in seconds (default: {cfg.ANALYSIS_TIMEOUT_SEC:g})",
    )
    parser.add_argument(
        "--no-expression",
        action="store_true",
        help="Skip face/smile detection (smile score uses the neutral fallback)",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Optional path to write the full batch result as JSON",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Debug logging",
    )
    args = parser.parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else cfg.LOG_LEVEL)

    if args.photos is None and not args.urls:
        print("Error: provide --photos (folder or image) and/or --url.", file=sys.stderr)
        sys.exit(1)
    if args.photos is not None and not os.path.exists(args.photos):
        print(f"Error: path not found: {args.photos}", file=sys.stderr)
        sys.exit(1)

    items = build_items(args.photos, args.urls)
    if not items:
        print(f"Error: no images found in {args.photos}", file=sys.stderr)
        sys.exit(1)

    models = ExpressionModels("none" if args.no_expression else None)
    analyzer = QualityAnalyzer(
        classifier=models.load(),
        timeout_sec=args.timeout,
        max_workers=max(1, args.workers),
    )

    progress, close = make_progress("Analyzing")
    try:
        result = analyzer.analyze_batch(items, progress_callback=progress)
    finally:
        close()

    for outcome in result.outcomes:
        if outcome.ok:
            print(f"{outcome.report.overall_score}\t{outcome.photo_id}")
            for warning in outcome.report.warnings:
                print(f"\t- {warning}")
        else:
            print(
                f"FAILED\t{outcome.photo_id}\t{outcome.failure.kind}: {outcome.failure.message}",
                file=sys.stderr,
            )

    print(
        f"\n{result.success_count}/{result.total} photos analyzed in {result.elapsed_sec:.2f}s",
        file=sys.stderr,
    )

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            json.dump(result.to_dict(), f, indent=2)
        print(f"Wrote results to {args.output}", file=sys.stderr)


if __name__ == "__main__":
    main()
