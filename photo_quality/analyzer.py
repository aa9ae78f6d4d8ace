"""
Single-photo pipeline: validate, then sharpness / lighting / expression concurrently, then score.
"""

import logging
import time
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Callable, Iterable, Tuple, Union

import config as cfg
from .batch import BatchOrchestrator
from .errors import AnalysisError, AnalysisTimeoutError
from .expression import ExpressionAnalyzer, ExpressionClassifier, ExpressionModels
from .models import BatchResult, PhotoFailure, PhotoOutcome, QualityReport
from .quality import analyze_lighting, analyze_sharpness
from .scoring import compose_report
from .validator import validate_image_format

log = logging.getLogger(__name__)

ImageSource = Union[bytes, Callable[[], bytes]]


class QualityAnalyzer:
    """
    Entry point for callers. Holds the (optional) expression classifier and the timeout.

    - analyze(buffer) -> QualityReport, raises AnalysisError
    - analyze_photo(photo_id, source) -> PhotoOutcome, never raises
    - analyze_batch(items) -> BatchResult
    """

    def __init__(
        self,
        classifier: ExpressionClassifier = None,
        timeout_sec: float = None,
        max_workers: int = None,
    ):
        if classifier is None:
            classifier = ExpressionModels().load()
        self.expression = ExpressionAnalyzer(classifier)
        self.timeout_sec = cfg.ANALYSIS_TIMEOUT_SEC if timeout_sec is None else timeout_sec
        self.max_workers = max_workers or cfg.BATCH_MAX_WORKERS

    def analyze(self, buffer: bytes, timeout_sec: float = None) -> QualityReport:
        """
        Full report for one encoded image. Validation and the three sub-analyses share one
        wall-clock budget; on timeout the unfinished sub-tasks are abandoned (their results
        are discarded when they eventually finish).
        """
        timeout = self.timeout_sec if timeout_sec is None else timeout_sec
        start = time.monotonic()
        validate_image_format(buffer)

        executor = ThreadPoolExecutor(max_workers=3, thread_name_prefix="photo-quality")
        try:
            sharpness = executor.submit(analyze_sharpness, buffer)
            lighting = executor.submit(analyze_lighting, buffer)
            expression = executor.submit(self.expression.analyze, buffer)

            remaining = None
            if timeout is not None:
                remaining = max(0.0, timeout - (time.monotonic() - start))
            done, pending = wait(
                (sharpness, lighting, expression), timeout=remaining, return_when=FIRST_EXCEPTION
            )
            # Required metrics: a decode failure fails the photo without waiting on the rest
            for future in (sharpness, lighting):
                if future in done and future.exception() is not None:
                    raise future.exception()
            if pending:
                raise AnalysisTimeoutError(time.monotonic() - start, timeout)

            return compose_report(sharpness.result(), lighting.result(), expression.result())
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def analyze_photo(self, photo_id: str, source: ImageSource) -> PhotoOutcome:
        """Fetch (when source is callable) and analyze one photo, recording any failure."""
        start = time.monotonic()
        log.debug("Analyzing photo %s", photo_id)
        try:
            buffer = source() if callable(source) else source
            report = self.analyze(buffer)
        except AnalysisError as e:
            elapsed = time.monotonic() - start
            log.warning("Error analyzing photo %s (after %.2fs): %s", photo_id, elapsed, e)
            return PhotoOutcome(
                photo_id=photo_id,
                failure=PhotoFailure(kind=e.kind, message=str(e)),
                elapsed_sec=elapsed,
            )
        except Exception as e:
            elapsed = time.monotonic() - start
            log.exception("Unexpected error analyzing photo %s (after %.2fs)", photo_id, elapsed)
            return PhotoOutcome(
                photo_id=photo_id,
                failure=PhotoFailure(kind="internal_error", message=str(e) or type(e).__name__),
                elapsed_sec=elapsed,
            )

        elapsed = time.monotonic() - start
        log.info(
            "Photo %s analyzed in %.2fs: overall=%d sharpness=%d lighting=%d smile=%d",
            photo_id,
            elapsed,
            report.overall_score,
            report.sharpness.score,
            report.lighting.score,
            report.expression.score,
        )
        return PhotoOutcome(photo_id=photo_id, report=report, elapsed_sec=elapsed)

    def analyze_batch(
        self,
        items: Iterable[Tuple[str, ImageSource]],
        progress_callback=None,
    ) -> BatchResult:
        return BatchOrchestrator(self, max_workers=self.max_workers).run(
            items, progress_callback=progress_callback
        )
