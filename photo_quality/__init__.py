"""
Photo quality analysis: sharpness, lighting and smile metrics merged into one score.
"""

from photo_quality.analyzer import QualityAnalyzer
from photo_quality.batch import BatchOrchestrator
from photo_quality.expression import ExpressionClassifier, ExpressionModels, NullExpressionClassifier
from photo_quality.models import BatchResult, PhotoOutcome, QualityReport
from photo_quality.validator import validate_image_format

__all__ = [
    "QualityAnalyzer",
    "BatchOrchestrator",
    "ExpressionClassifier",
    "ExpressionModels",
    "NullExpressionClassifier",
    "BatchResult",
    "PhotoOutcome",
    "QualityReport",
    "validate_image_format",
]
