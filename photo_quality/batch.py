"""
Batch orchestration: analyze many photos with bounded parallelism and per-photo isolation.
One photo's timeout or failure never aborts the batch; results keep input order.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Iterable, List, Optional

import config as cfg
from .models import BatchResult, PhotoFailure, PhotoOutcome

log = logging.getLogger(__name__)


class BatchOrchestrator:
    """Runs analyzer.analyze_photo over (photo_id, source) pairs."""

    def __init__(self, analyzer, max_workers: int = None):
        self.analyzer = analyzer
        self.max_workers = max(1, max_workers or cfg.BATCH_MAX_WORKERS)
        self._stop = threading.Event()

    def stop(self) -> None:
        """Stop starting new photos. Photos already in flight finish normally."""
        self._stop.set()

    def _run_one(self, photo_id: str, source) -> PhotoOutcome:
        if self._stop.is_set():
            return PhotoOutcome(
                photo_id=photo_id,
                failure=PhotoFailure(kind="cancelled", message="Batch stopped before this photo started"),
            )
        return self.analyzer.analyze_photo(photo_id, source)

    def run(self, items: Iterable, progress_callback=None) -> BatchResult:
        """
        Analyze every (photo_id, source) item. source is bytes or a zero-argument callable
        returning bytes.

        - progress_callback: optional fn(processed_count, total_count)

        Returns a BatchResult with one outcome per item, in input order.
        """
        self._stop.clear()
        items = list(items)
        total = len(items)
        start = time.monotonic()
        outcomes: List[Optional[PhotoOutcome]] = [None] * total
        workers = max(1, min(self.max_workers, total))

        log.info("Analyzing %d photos (workers=%d)", total, workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="photo-batch") as executor:
            futures = {
                executor.submit(self._run_one, photo_id, source): i
                for i, (photo_id, source) in enumerate(items)
            }
            for processed, future in enumerate(as_completed(futures), 1):
                outcomes[futures[future]] = future.result()
                if progress_callback and total:
                    progress_callback(processed, total)

        elapsed = time.monotonic() - start
        success = sum(1 for o in outcomes if o.ok)
        log.info(
            "Batch complete: total=%d successful=%d failed=%d time=%.2fs",
            total,
            success,
            total - success,
            elapsed,
        )
        return BatchResult(
            outcomes=tuple(outcomes),
            total=total,
            success_count=success,
            failure_count=total - success,
            elapsed_sec=elapsed,
        )
