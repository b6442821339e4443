"""
Utility functions for image loading and data formatting
"""
import io
import base64
import requests
from datetime import datetime
from typing import Optional
from PIL import Image
from config import config

EXPIRY_YEARS_AHEAD = 15


def download_image(url: str) -> Image.Image:
    """
    Download image from URL and return as PIL Image

    Args:
        url: Image URL

    Returns:
        PIL Image object

    Raises:
        Exception: If download fails or image is invalid
    """
    try:
        response = requests.get(url, timeout=config.DOWNLOAD_TIMEOUT, stream=True)
        response.raise_for_status()

        # Check file size
        content_length = response.headers.get('content-length')
        if content_length and int(content_length) > config.MAX_IMAGE_SIZE:
            raise Exception(f"Image too large: {content_length} bytes")

        image = Image.open(io.BytesIO(response.content))
        image.load()
        check_image_format(image)
        return image

    except requests.RequestException as e:
        raise Exception(f"Failed to download image: {str(e)}")
    except Exception as e:
        raise Exception(f"Failed to process image: {str(e)}")


def decode_base64_image(base64_string: str) -> Image.Image:
    """
    Decode base64 string and return as PIL Image

    Args:
        base64_string: Base64 encoded image, optionally as a data URI

    Returns:
        PIL Image object

    Raises:
        Exception: If decoding fails or image is invalid
    """
    try:
        # Remove data URI prefix if present (e.g., "data:image/jpeg;base64,")
        if ',' in base64_string and base64_string.startswith('data:'):
            base64_string = base64_string.split(',', 1)[1]

        image_bytes = base64.b64decode(base64_string)

        if len(image_bytes) > config.MAX_IMAGE_SIZE:
            raise Exception(f"Image too large: {len(image_bytes)} bytes")

        image = Image.open(io.BytesIO(image_bytes))
        image.load()
        check_image_format(image)
        return image

    except Exception as e:
        raise Exception(f"Failed to decode base64 data: {str(e)}")


def load_image(path: str) -> Image.Image:
    """Load an image from a local path or an http(s) URL"""
    if path.startswith(("http://", "https://")):
        return download_image(path)
    image = Image.open(path)
    image.load()
    check_image_format(image)
    return image


def check_image_format(image: Image.Image):
    """
    Reject decoded images whose file format is not in SUPPORTED_IMAGE_FORMATS

    Raises:
        Exception: If the format is not supported
    """
    image_format = (image.format or "").lower()
    if image_format not in config.SUPPORTED_IMAGE_FORMATS:
        raise Exception(f"Unsupported image format: {image_format or 'unknown'}")


def to_rgb(image: Image.Image) -> Image.Image:
    """
    Convert image to RGB, flattening any alpha channel onto white
    """
    if image.mode == 'RGB':
        return image

    if image.mode in ('RGBA', 'LA', 'P'):
        if image.mode == 'P':
            image = image.convert('RGBA')
        rgb_image = Image.new('RGB', image.size, (255, 255, 255))
        rgb_image.paste(image, mask=image.split()[-1])
        return rgb_image

    return image.convert('RGB')


def format_mrz_date(mrz_date: str, is_expiry: bool = False, today: Optional[datetime] = None) -> str:
    """
    Convert MRZ date format (YYMMDD) to readable format (YYYY-MM-DD)

    Birth dates are never in the future, so a two-digit year past the current
    one belongs to the 1900s. Expiry dates are taken from the 2000s unless
    that puts them more than 15 years ahead.

    Args:
        mrz_date: Date in YYMMDD format
        is_expiry: Whether the date is an expiry date
        today: Reference date for the century decision

    Returns:
        Date in YYYY-MM-DD format, or "" if the date is not a calendar date
    """
    if not mrz_date or len(mrz_date) != 6 or not mrz_date.isdigit():
        return ""

    today = today or datetime.now()
    year = int(mrz_date[0:2])

    if is_expiry:
        full_year = 2000 + year
        # More than 15 years ahead is an expired document from the 1900s
        if full_year > today.year + EXPIRY_YEARS_AHEAD:
            full_year = 1900 + year
    elif year <= today.year % 100:
        full_year = 2000 + year
    else:
        full_year = 1900 + year

    try:
        parsed = datetime(full_year, int(mrz_date[2:4]), int(mrz_date[4:6]))
    except ValueError:
        return ""

    return parsed.strftime("%Y-%m-%d")
