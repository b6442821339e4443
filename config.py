"""
Configuration settings for the MRZ Scanner
"""
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_flag(name: str, default: bool) -> bool:
    """Read an on/off style environment variable"""
    value = os.getenv(name, "").strip().lower()
    if value in ["on", "true", "1", "enabled", "yes"]:
        return True
    if value in ["off", "false", "0", "disabled", "no"]:
        return False
    return default


class Config:
    """Application configuration"""

    # API Settings
    API_TITLE = "MRZ Scanner API"
    API_VERSION = "1.0.0"
    API_DESCRIPTION = """
    Machine-Readable Zone scanner for passports, ID cards and visas.

    Features:
    - MRZ band detection from text rectangles
    - Exposure / threshold pre-processing for OCR
    - TD1, TD2, TD3, MRV-A and MRV-B parsing
    - ICAO 9303 check digit validation
    """

    # Tesseract OCR
    TESSERACT_CMD = os.getenv("TESSERACT_CMD", "")
    OCR_LANGUAGE = os.getenv("OCR_LANGUAGE", "ocrb")
    OCR_TIMEOUT = float(os.getenv("OCR_TIMEOUT", "5"))
    OCR_WHITELIST = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789<"

    # Parsing / acceptance policy
    OCR_CORRECTION = _env_flag("OCR_CORRECTION", True)
    ACCEPT_PARTIALLY_VALID = _env_flag("ACCEPT_PARTIALLY_VALID", False)
    VIBRATE_ON_RESULT = _env_flag("VIBRATE_ON_RESULT", True)

    # MRZ region heuristics
    MRZ_MIN_WIDTH_RATIO = 0.8   # text boxes narrower than this are not MRZ lines
    MRZ_MAX_HEIGHT_RATIO = 0.4  # MRZ band taller than this is a false positive
    DOCUMENT_MARGIN_RATIO = 0.05

    # Image Processing
    UPSCALE_FACTOR = 2
    MAX_IMAGE_SIZE = 10 * 1024 * 1024  # 10MB
    DOWNLOAD_TIMEOUT = 30  # seconds timeout for image download
    SUPPORTED_IMAGE_FORMATS = ["jpg", "jpeg", "png", "webp", "bmp"]

    # Logging
    VERBOSE = _env_flag("VERBOSE", False)


# Create global config instance
config = Config()
