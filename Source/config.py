"""
Centralized configuration for Groupify with environment
"""

import os
from decimal import Decimal

# OCR settings
OCR_PSM = int(os.getenv("GROUPIFY_OCR_PSM", "6"))
OCR_LANGUAGES = os.getenv("GROUPIFY_OCR_LANGUAGES", "eng")

# Runtime settings
DEFAULT_MAX_WORKERS = int(os.getenv("GROUPIFY_MAX_WORKERS", "4"))
LOG_LEVEL = os.getenv("GROUPIFY_LOG_LEVEL", "WARNING")

# Receipt extraction
EXTRACTION_BACKEND = os.getenv("GROUPIFY_EXTRACTION_BACKEND", "tesseract")
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GEMINI_MODEL = os.getenv("GROUPIFY_GEMINI_MODEL", "gemini-2.5-flash")

# Session persistence
SESSION_FILE = os.getenv(
    "GROUPIFY_SESSION_FILE",
    os.path.join(os.path.expanduser("~"), ".groupify", "splitbill_state.json"),
)

# Thresholds
SETTLEMENT_EPSILON = Decimal(os.getenv("GROUPIFY_SETTLEMENT_EPSILON", "0.01"))
DECIMAL_QUANTIZE = Decimal("0.01")
DUPLICATE_SIMILARITY_THRESHOLD = float(os.getenv("GROUPIFY_DUP_SIMILARITY", "0.95"))
IMAGE_REGION_OVERLAP_PX = int(os.getenv("GROUPIFY_IMAGE_OVERLAP", "50"))
MAX_IMAGE_SIZE_BYTES = int(os.getenv("GROUPIFY_MAX_IMAGE_SIZE_BYTES", str(50 * 1024 * 1024)))

# Price normalization
ITEM_PRICE_MIN = float(os.getenv("GROUPIFY_ITEM_PRICE_MIN", "0.01"))
ITEM_PRICE_MAX = float(os.getenv("GROUPIFY_ITEM_PRICE_MAX", "1000000"))
TOTAL_MISMATCH_TOLERANCE = float(os.getenv("GROUPIFY_TOTAL_MISMATCH_TOLERANCE", "1.0"))

# Workers bounds
WORKERS_MIN = int(os.getenv("GROUPIFY_WORKERS_MIN", "1"))
WORKERS_MAX = int(os.getenv("GROUPIFY_WORKERS_MAX", "16"))

# Person color tags, assigned round-robin
PERSON_COLORS = [
    "#ef4444", "#3b82f6", "#22c55e", "#eab308", "#a855f7",
    "#ec4899", "#6366f1", "#14b8a6", "#f97316", "#06b6d4",
]
