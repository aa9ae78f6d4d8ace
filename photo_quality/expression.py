"""
Expression signal: find the most prominent face and turn its emotion weights into a smile score.

The classifier is optional. insightface / DeepFace are imported lazily so the engine runs even
when TensorFlow or onnxruntime is missing; in that case (or when inference throws) the analyzer
returns a fixed neutral result instead of failing the photo.
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

import config as cfg
from .errors import DependencyUnavailable
from .imaging import clamp, decode_color, round_half_up
from .models import ExpressionMetric, ExpressionWeights

log = logging.getLogger(__name__)

EXPRESSION_NAMES = ("happy", "neutral", "sad", "angry", "surprised")

# our name -> DeepFace emotion key
_DEEPFACE_KEYS = {
    "happy": "happy",
    "neutral": "neutral",
    "sad": "sad",
    "angry": "angry",
    "surprised": "surprise",
}


@dataclass(frozen=True)
class DetectedFace:
    """One detection: bbox (x1, y1, x2, y2), weights in [0, 1] keyed by EXPRESSION_NAMES."""

    bbox: Tuple[float, float, float, float]
    emotions: Mapping[str, float]
    det_score: float = 1.0
    landmarks: Optional[Tuple[Tuple[float, float], ...]] = None


def _face_size(face: DetectedFace) -> float:
    """Minimum of width/height of face bbox."""
    x1, y1, x2, y2 = face.bbox
    return min(x2 - x1, y2 - y1)


def most_prominent(faces: Sequence[DetectedFace]) -> DetectedFace:
    """Largest face; the earliest detection wins ties."""
    return max(faces, key=_face_size)


def _emotion_weights(emotion: Mapping[str, float]) -> Dict[str, float]:
    """DeepFace emotion dict (0-100 per key) -> our five weights in [0, 1]."""
    return {
        name: clamp(float(emotion.get(key, 0.0) or 0.0) / cfg.EMOTION_DIVISOR, 0.0, 1.0)
        for name, key in _DEEPFACE_KEYS.items()
    }


class ExpressionClassifier(ABC):
    """Detects faces with landmarks and expression weights in a BGR image."""

    name = "base"

    @abstractmethod
    def detect(self, image_bgr: np.ndarray) -> List[DetectedFace]:
        ...


class NullExpressionClassifier(ExpressionClassifier):
    """Stands in when no classifier could be loaded; every call reports the dependency missing."""

    name = "none"

    def __init__(self, reason: str = "expression classifier not installed"):
        self.reason = reason

    def detect(self, image_bgr: np.ndarray) -> List[DetectedFace]:
        raise DependencyUnavailable(self.reason)


class DeepFaceClassifier(ExpressionClassifier):
    """DeepFace does both detection and emotion."""

    name = "deepface"

    def __init__(self, detector_backend: str = None):
        try:
            from deepface import DeepFace
        except Exception as e:
            # TensorFlow import problems surface as all sorts of errors, not just ImportError
            raise DependencyUnavailable(f"deepface is not available: {e}") from e
        self._deepface = DeepFace
        self.detector_backend = detector_backend or cfg.DEEPFACE_DETECTOR_BACKEND

    def _analyze_emotion(self, img: np.ndarray, detector_backend: str) -> list:
        result = self._deepface.analyze(
            img,
            actions=["emotion"],
            detector_backend=detector_backend,
            enforce_detection=False,
            silent=True,
        )
        if isinstance(result, dict):
            result = [result]
        return result or []

    def detect(self, image_bgr: np.ndarray) -> List[DetectedFace]:
        faces = []
        for r in self._analyze_emotion(image_bgr, self.detector_backend):
            # With enforce_detection=False an undetected face comes back as the whole frame, confidence 0
            confidence = float(r.get("face_confidence") or 0.0)
            if confidence <= 0:
                continue
            region = r.get("region") or {}
            x, y = float(region.get("x", 0)), float(region.get("y", 0))
            w, h = float(region.get("w", 0)), float(region.get("h", 0))
            if min(w, h) < cfg.MIN_FACE_SIZE_PX:
                continue
            eyes = [region.get("left_eye"), region.get("right_eye")]
            landmarks = tuple(tuple(float(v) for v in e) for e in eyes if e) or None
            faces.append(
                DetectedFace(
                    bbox=(x, y, x + w, y + h),
                    emotions=_emotion_weights(r.get("emotion") or {}),
                    det_score=confidence,
                    landmarks=landmarks,
                )
            )
        return faces


class InsightFaceClassifier(DeepFaceClassifier):
    """
    insightface finds faces and landmarks; DeepFace reads emotion from each face crop.
    Both libraries are required: without deepface this backend is unavailable even when
    insightface is installed.
    """

    name = "insightface"

    def __init__(self, det_size=None):
        super().__init__(detector_backend="skip")
        try:
            from insightface.app import FaceAnalysis
        except Exception as e:
            raise DependencyUnavailable(f"insightface is not available: {e}") from e
        self.app = FaceAnalysis(providers=["CPUExecutionProvider"])
        self.app.prepare(ctx_id=0, det_size=det_size or cfg.DET_SIZE)

    def detect(self, image_bgr: np.ndarray) -> List[DetectedFace]:
        h, w = image_bgr.shape[:2]
        faces = []
        for face in self.app.get(image_bgr):
            x1, y1, x2, y2 = [int(round(v)) for v in face.bbox[:4]]
            x1, x2 = max(0, x1), min(w, x2)
            y1, y2 = max(0, y1), min(h, y2)
            if min(x2 - x1, y2 - y1) < cfg.MIN_FACE_SIZE_PX:
                continue
            crop = image_bgr[y1:y2, x1:x2]
            results = self._analyze_emotion(crop, self.detector_backend)
            emotion = (results[0].get("emotion") if results else None) or {}
            kps = getattr(face, "kps", None)
            faces.append(
                DetectedFace(
                    bbox=(x1, y1, x2, y2),
                    emotions=_emotion_weights(emotion),
                    det_score=float(getattr(face, "det_score", 0.0)),
                    landmarks=tuple(tuple(float(v) for v in p) for p in kps) if kps is not None else None,
                )
            )
        return faces


BACKENDS = {
    "insightface": InsightFaceClassifier,
    "deepface": DeepFaceClassifier,
}


class ExpressionModels:
    """
    Process-scoped holder for the expression classifier.

    load() builds the configured backend on first call and returns the same instance afterwards
    (thread-safe). A backend whose libraries are missing or fail to initialise degrades to
    NullExpressionClassifier; an unknown backend name is a configuration error.
    """

    def __init__(self, backend: str = None):
        self.backend = (backend or cfg.EXPRESSION_BACKEND).strip().lower()
        if self.backend != "none" and self.backend not in BACKENDS:
            raise ValueError(
                f"Unknown expression backend {self.backend!r}; expected one of "
                f"{sorted(BACKENDS) + ['none']}"
            )
        self._lock = threading.Lock()
        self._classifier: Optional[ExpressionClassifier] = None

    @property
    def loaded(self) -> bool:
        return self._classifier is not None

    def load(self) -> ExpressionClassifier:
        with self._lock:
            if self._classifier is None:
                self._classifier = self._build()
            return self._classifier

    def _build(self) -> ExpressionClassifier:
        if self.backend == "none":
            log.info("Expression analysis disabled; smile scores will use the neutral fallback")
            return NullExpressionClassifier("expression analysis disabled")
        try:
            classifier = BACKENDS[self.backend]()
        except DependencyUnavailable as e:
            log.warning("Face detection models unavailable (%s); expression analysis disabled", e)
            return NullExpressionClassifier(str(e))
        except Exception as e:
            log.warning("Failed to load %s models; expression analysis disabled", self.backend, exc_info=True)
            return NullExpressionClassifier(f"{self.backend} failed to load: {e}")
        log.info("Loaded expression classifier backend=%s", self.backend)
        return classifier


def fallback_expression() -> ExpressionMetric:
    """Fixed result when the classifier is unavailable or errors."""
    return ExpressionMetric(
        score=cfg.FALLBACK_EXPRESSION_SCORE,
        has_smile=False,
        confidence="neutral",
        face_detected=False,
        expressions=ExpressionWeights(**{name: 0 for name in EXPRESSION_NAMES}),
    )


def no_face_expression() -> ExpressionMetric:
    return ExpressionMetric(score=0, has_smile=False, confidence="no-face", face_detected=False)


def smile_confidence(score: int) -> str:
    if score >= cfg.CLEAR_SMILE_MIN:
        return "clear-smile"
    if score >= cfg.SLIGHT_SMILE_MIN:
        return "slight-smile"
    return "neutral"


def expression_from_weights(weights: Mapping[str, float]) -> ExpressionMetric:
    """Smile score from the five expression weights of one face (each in [0, 1])."""
    w = {name: clamp(float(weights.get(name, 0.0)), 0.0, 1.0) for name in EXPRESSION_NAMES}
    smile = clamp(
        cfg.SMILE_WEIGHT_HAPPY * w["happy"]
        + cfg.SMILE_WEIGHT_SAD * w["sad"]
        + cfg.SMILE_WEIGHT_ANGRY * w["angry"]
        + cfg.SMILE_WEIGHT_SURPRISED * w["surprised"]
    )
    score = round_half_up(smile)
    return ExpressionMetric(
        score=score,
        has_smile=score >= cfg.SLIGHT_SMILE_MIN,
        confidence=smile_confidence(score),
        face_detected=True,
        expressions=ExpressionWeights(**{name: round_half_up(v * 100) for name, v in w.items()}),
    )


class ExpressionAnalyzer:
    """Best-effort expression metric; never raises."""

    def __init__(self, classifier: ExpressionClassifier):
        self.classifier = classifier

    def analyze(self, buffer: bytes) -> ExpressionMetric:
        if isinstance(self.classifier, NullExpressionClassifier):
            log.debug("Expression classifier unavailable (%s); using neutral fallback", self.classifier.reason)
            return fallback_expression()
        try:
            faces = self.classifier.detect(decode_color(buffer))
        except DependencyUnavailable as e:
            log.debug("Expression classifier unavailable (%s); using neutral fallback", e)
            return fallback_expression()
        except Exception:
            log.warning("Expression analysis failed; using neutral fallback", exc_info=True)
            return fallback_expression()

        if not faces:
            return no_face_expression()
        return expression_from_weights(most_prominent(faces).emotions)
