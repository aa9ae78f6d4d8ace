"""
Error taxonomy for photo analysis.
Every AnalysisError is fatal for one photo only; the batch records it and moves on.
"""


class AnalysisError(Exception):
    """Base class for per-photo analysis failures."""

    kind = "analysis_error"


class ValidationError(AnalysisError):
    kind = "validation_error"


class UnsupportedFormat(ValidationError):
    kind = "unsupported_format"


class TooSmall(ValidationError):
    kind = "too_small"


class TooLarge(ValidationError):
    """Dimensions or payload over the limit. reason: "dimensions" or "payload"."""

    kind = "too_large"

    def __init__(self, message: str, reason: str = "dimensions"):
        super().__init__(message)
        self.reason = reason


class DecodeError(AnalysisError):
    """Corrupt or truncated buffer that the decoder could not read."""

    kind = "decode_error"


class AnalysisTimeoutError(AnalysisError, TimeoutError):
    kind = "timeout"

    def __init__(self, elapsed_sec: float, timeout_sec: float):
        super().__init__(
            f"Image analysis timeout after {timeout_sec:g} seconds (elapsed {elapsed_sec:.2f}s)"
        )
        self.elapsed_sec = elapsed_sec
        self.timeout_sec = timeout_sec


class FetchError(AnalysisError):
    """The byte source could not supply the image."""

    kind = "fetch_error"


class DependencyUnavailable(Exception):
    """Optional expression classifier missing. Never leaves the expression analyzer."""
