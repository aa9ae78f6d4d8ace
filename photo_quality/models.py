"""
Result types: per-metric outputs, the per-photo report and batch results.
All models are frozen; to_dict() gives the camelCase shape the web client and
persistence layer expect (isBlurry, overallScore, ...).
"""

from typing import Annotated, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Severity = Literal["sharp", "slight-blur", "blurry", "very-blurry"]
SmileConfidence = Literal["no-face", "neutral", "slight-smile", "clear-smile"]

Score = Annotated[int, Field(ge=0, le=100)]


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class DecodedMetadata(_Frozen):
    format: str
    width: int = Field(gt=0)
    height: int = Field(gt=0)
    size: int = Field(ge=0)


class SharpnessMetric(_Frozen):
    score: Score
    is_blurry: bool
    severity: Severity


class LightingMetric(_Frozen):
    score: Score
    is_good_lighting: bool
    brightness: Score
    contrast: Score
    issues: Tuple[str, ...] = ()


class ExpressionWeights(_Frozen):
    """Classifier weights scaled to 0-100."""

    happy: Score
    neutral: Score
    sad: Score
    angry: Score
    surprised: Score


class ExpressionMetric(_Frozen):
    score: Score
    has_smile: bool
    confidence: SmileConfidence
    face_detected: bool
    expressions: Optional[ExpressionWeights] = None


class QualityReport(_Frozen):
    sharpness: SharpnessMetric
    lighting: LightingMetric
    expression: ExpressionMetric
    overall_score: Score
    warnings: Tuple[str, ...] = ()


class PhotoFailure(_Frozen):
    kind: str
    message: str


class PhotoOutcome(_Frozen):
    """Either a report or a failure for one photo."""

    photo_id: str
    report: Optional[QualityReport] = None
    failure: Optional[PhotoFailure] = None
    elapsed_sec: float = 0.0

    @property
    def ok(self) -> bool:
        return self.report is not None


class BatchResult(_Frozen):
    outcomes: Tuple[PhotoOutcome, ...]
    total: int
    success_count: int
    failure_count: int
    elapsed_sec: float

    @property
    def reports(self) -> dict:
        """photo_id -> QualityReport for the photos that succeeded."""
        return {o.photo_id: o.report for o in self.outcomes if o.ok}
