"""
Configurable thresholds and weights for photo quality analysis.
Tune these without touching the main logic.
"""

import os

# --- Validation ---
SUPPORTED_FORMATS = ("jpeg", "png", "webp")  # Pillow format names, lowercased
# Pillow names some JPEG variants separately; multi-picture JPEGs from phone cameras open as "MPO"
FORMAT_ALIASES = {"mpo": "jpeg"}
MIN_DIMENSION_PX = 200       # Both width and height must be at least this
MAX_DIMENSION_PX = 4000      # Neither width nor height may exceed this
MAX_FILE_SIZE_BYTES = 10 * 1024 * 1024  # 10 MiB

# --- Sharpness (Laplacian variance) ---
SHARPNESS_VARIANCE_DIVISOR = 10  # variance / this → 0-100 score (capped); empirically chosen
SHARPNESS_SHARP_MIN = 50         # score >= this → "sharp"
SHARPNESS_SLIGHT_BLUR_MIN = 30   # score >= this → "slight-blur"; below is blurry
SHARPNESS_BLURRY_MIN = 15        # score >= this → "blurry"; below → "very-blurry"

# --- Lighting (BT.709 luma over a strided pixel sample) ---
LIGHTING_SAMPLE_STRIDE = 4       # Sample every 4th pixel in both axes
LUMA_WEIGHTS = (0.2126, 0.7152, 0.0722)  # R, G, B
CONTRAST_REFERENCE_STD = 70.0    # Luma std dev treated as "typical" portrait contrast
DARK_BRIGHTNESS_MAX = 40         # brightness below → "too dark"
OVEREXPOSED_BRIGHTNESS_MIN = 85  # brightness above → "overexposed"
OVEREXPOSED_PENALTY_FACTOR = 2
LOW_CONTRAST_MAX = 25            # contrast below → "flat"
HIGH_CONTRAST_MIN = 80           # contrast above → "harsh"
HIGH_CONTRAST_PENALTY_DIVISOR = 2
GOOD_LIGHTING_MIN = 50           # lighting score >= this → good lighting

# --- Expression (smile) ---
# smile = 100*happy - 20*sad - 20*angry + 10*surprised, clamped to 0-100
SMILE_WEIGHT_HAPPY = 100.0
SMILE_WEIGHT_SAD = -20.0
SMILE_WEIGHT_ANGRY = -20.0
SMILE_WEIGHT_SURPRISED = 10.0
CLEAR_SMILE_MIN = 60
SLIGHT_SMILE_MIN = 30            # Also the has_smile cutoff
FALLBACK_EXPRESSION_SCORE = 50   # Used when the classifier is missing or fails
EMOTION_DIVISOR = 100.0          # DeepFace returns 0-100; we use score/100
MIN_FACE_SIZE_PX = 30            # Ignore faces smaller than this (width or height)
DET_SIZE = (640, 640)            # insightface detector input size
DEEPFACE_DETECTOR_BACKEND = "opencv"
# "insightface" (detect with insightface, emotion via DeepFace), "deepface", or "none"
EXPRESSION_BACKEND = os.getenv("PHOTO_QUALITY_EXPRESSION_BACKEND", "insightface")

# --- Composite scoring weights (must sum to 1.0) ---
WEIGHT_SHARPNESS = 0.35
WEIGHT_LIGHTING = 0.35
WEIGHT_EXPRESSION = 0.30

# --- Batch processing ---
ANALYSIS_TIMEOUT_SEC = float(os.getenv("PHOTO_QUALITY_TIMEOUT_SEC", "60"))
BATCH_MAX_WORKERS = int(os.getenv("PHOTO_QUALITY_MAX_WORKERS", "2"))

# --- Byte sources ---
HTTP_TIMEOUT_SEC = float(os.getenv("PHOTO_QUALITY_HTTP_TIMEOUT_SEC", "30"))

# --- CLI ---
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp"}
LOG_LEVEL = os.getenv("PHOTO_QUALITY_LOG_LEVEL", "INFO")
