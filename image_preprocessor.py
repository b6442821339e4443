"""
MRZ image pre-processing for OCR: exposure correction, upscaling and binarization
"""
import cv2
import numpy as np
from PIL import Image
from typing import Optional
from config import config
from utils import to_rgb

NEUTRAL_EXPOSURE = 0.5
OVEREXPOSED_LUMINANCE = 0.8
UNDEREXPOSED_LUMINANCE = 0.35


def average_luminance(image: Image.Image) -> float:
    """
    Average luminance of an image

    Args:
        image: PIL Image

    Returns:
        Mean luma between 0.0 and 1.0
    """
    gray = np.asarray(image.convert('L'), dtype=np.float32)
    if gray.size == 0:
        return 0.0
    return float(gray.mean() / 255.0)


def exposure_bias(luminance: float) -> float:
    """
    Exposure adjustment in EV for the given average luminance

    Overexposed images are darkened proportionally to their excess
    brightness, underexposed ones are brightened exponentially.
    """
    exposure = NEUTRAL_EXPOSURE

    if luminance > OVEREXPOSED_LUMINANCE:
        exposure -= (luminance - 0.5) * 2

    if luminance < UNDEREXPOSED_LUMINANCE:
        exposure += 2 ** (0.5 - luminance)

    return exposure


def binarization_threshold(luminance: float) -> float:
    """Luminance threshold that keeps dark MRZ text on a light background"""
    luminance = min(max(luminance, 0.0), 1.0)
    return 1 - (1 - luminance) ** 0.2


def preprocess_mrz_image(image: Image.Image, luminance: Optional[float] = None, verbose: bool = False) -> Image.Image:
    """
    Prepare a cropped MRZ band for OCR

    Applies, in order: exposure adjustment, upscaling (Lanczos) and
    luminance thresholding.

    Args:
        image: PIL Image of the MRZ region
        luminance: Average luminance, computed from the image when omitted
        verbose: Print detailed logs

    Returns:
        Single channel black and white PIL Image, or the original image if
        any step fails
    """
    try:
        if luminance is None:
            luminance = average_luminance(image)

        ev = exposure_bias(luminance)
        threshold = binarization_threshold(luminance)

        if verbose:
            print(f"    → Luminance {luminance:.2f}, exposure {ev:+.2f} EV, threshold {threshold:.3f}")

        rgb = np.asarray(to_rgb(image), dtype=np.float32) / 255.0
        exposed = np.clip(rgb * (2.0 ** ev), 0.0, 1.0)

        height, width = exposed.shape[:2]
        scale = config.UPSCALE_FACTOR
        upscaled = cv2.resize(exposed, (width * scale, height * scale), interpolation=cv2.INTER_LANCZOS4)
        upscaled = np.clip(upscaled, 0.0, 1.0)

        luma = upscaled[..., 0] * 0.299 + upscaled[..., 1] * 0.587 + upscaled[..., 2] * 0.114
        binary = np.where(luma >= threshold, 255, 0).astype(np.uint8)

        return Image.fromarray(binary)

    except Exception as e:
        if verbose:
            print(f"    ⚠ Pre-processing failed, using original image: {e}")
        return image
