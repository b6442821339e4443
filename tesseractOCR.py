"""
Tesseract OCR adapter for pre-processed MRZ images
"""
import pytesseract
from PIL import Image
from typing import Optional
from config import config


def _configure_tesseract():
    """Set Tesseract path from environment"""
    if config.TESSERACT_CMD:
        pytesseract.pytesseract.tesseract_cmd = config.TESSERACT_CMD


def get_mrz_ocr_config() -> str:
    """Tesseract config for a uniform block of MRZ text"""
    return f"--oem 3 --psm 6 -c tessedit_char_whitelist={config.OCR_WHITELIST}"


def check_ocr_available(verbose: bool = True) -> bool:
    """
    Check once at startup that Tesseract and the configured language can be used

    Args:
        verbose: Print the outcome

    Returns:
        True if OCR is usable
    """
    _configure_tesseract()
    try:
        version = pytesseract.get_tesseract_version()
        languages = pytesseract.get_languages(config='')
    except Exception as e:
        if verbose:
            print(f"  ✗ Tesseract not available: {e}")
        return False

    if config.OCR_LANGUAGE not in languages:
        if verbose:
            print(f"  ✗ Tesseract {version}: language '{config.OCR_LANGUAGE}' not installed ({', '.join(languages)})")
        return False

    if verbose:
        print(f"  ✓ Tesseract {version} with language '{config.OCR_LANGUAGE}'")
    return True


def recognize_mrz_text(image: Image.Image, verbose: bool = False) -> Optional[str]:
    """
    Recognize MRZ text in a pre-processed image

    Args:
        image: Single channel MRZ image
        verbose: Print detailed logs

    Returns:
        Recognized multi-line text, or None if OCR failed or found nothing
    """
    _configure_tesseract()
    try:
        text = pytesseract.image_to_string(
            image,
            lang=config.OCR_LANGUAGE,
            config=get_mrz_ocr_config(),
            timeout=config.OCR_TIMEOUT,
        )
    except Exception as e:
        if verbose:
            print(f"    ⚠ Tesseract error: {e}")
        return None

    if not text or not text.strip():
        if verbose:
            print(f"    ⚠ Tesseract: no text recognized")
        return None

    if verbose:
        print(f"    ✓ Tesseract recognized {len(text.strip().splitlines())} line(s)")

    return text
