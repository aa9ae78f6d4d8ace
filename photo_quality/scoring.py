"""
Combine the three metrics into the overall score and the warnings shown to the user.
"""

import config as cfg
from .imaging import clamp, round_half_up
from .models import ExpressionMetric, LightingMetric, QualityReport, SharpnessMetric

WARNING_NO_FACE = "No face detected in image"
WARNING_NO_SMILE = (
    "Consider using a photo with a smile - profiles with smiling photos tend to perform better"
)


def overall_score(sharpness: int, lighting: int, expression: int) -> int:
    """Weighted blend: sharpness and lighting matter most, smile is important but not critical."""
    return round_half_up(
        clamp(
            cfg.WEIGHT_SHARPNESS * sharpness
            + cfg.WEIGHT_LIGHTING * lighting
            + cfg.WEIGHT_EXPRESSION * expression
        )
    )


def collect_warnings(
    sharpness: SharpnessMetric,
    lighting: LightingMetric,
    expression: ExpressionMetric,
) -> list:
    warnings = []
    if sharpness.is_blurry:
        warnings.append(f"Image is {sharpness.severity}: Consider using a sharper photo")
    if not lighting.is_good_lighting:
        warnings.extend(lighting.issues)
    if not expression.face_detected:
        warnings.append(WARNING_NO_FACE)
    elif not expression.has_smile:
        warnings.append(WARNING_NO_SMILE)
    return warnings


def compose_report(
    sharpness: SharpnessMetric,
    lighting: LightingMetric,
    expression: ExpressionMetric,
) -> QualityReport:
    return QualityReport(
        sharpness=sharpness,
        lighting=lighting,
        expression=expression,
        overall_score=overall_score(sharpness.score, lighting.score, expression.score),
        warnings=tuple(collect_warnings(sharpness, lighting, expression)),
    )
