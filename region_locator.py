"""
MRZ region location from text rectangles
"""
import math
import cv2
import numpy as np
from PIL import Image
from typing import Iterable, List, Optional, Tuple
from config import config

# (x, y, w, h) in pixels, origin top-left, y down
Box = Tuple[float, float, float, float]


def locate_mrz_region(
    boxes: Iterable[Box],
    image_width: int,
    image_height: int,
    min_width_ratio: Optional[float] = None,
    max_height_ratio: Optional[float] = None,
) -> Optional[Tuple[int, int, int, int]]:
    """
    Select the part of the image that holds the MRZ

    MRZ lines span nearly the whole document width, so only wide text
    rectangles are kept and merged. A merged region taller than
    `max_height_ratio` of the image is rejected; it happens when a long
    header line is picked up and would make the whole page look like MRZ.

    Args:
        boxes: Text rectangles in pixel coordinates
        image_width: Image width in pixels
        image_height: Image height in pixels
        min_width_ratio: Minimum box width relative to image width (default 0.8)
        max_height_ratio: Maximum region height relative to image height (default 0.4)

    Returns:
        (x, y, w, h) clamped to the image, or None
    """
    if min_width_ratio is None:
        min_width_ratio = config.MRZ_MIN_WIDTH_RATIO
    if max_height_ratio is None:
        max_height_ratio = config.MRZ_MAX_HEIGHT_RATIO

    wide_boxes = [box for box in boxes if box[2] > image_width * min_width_ratio]
    if not wide_boxes:
        return None

    left = min(x for x, _, _, _ in wide_boxes)
    top = min(y for _, y, _, _ in wide_boxes)
    right = max(x + w for x, _, w, _ in wide_boxes)
    bottom = max(y + h for _, y, _, h in wide_boxes)

    if bottom - top > image_height * max_height_ratio:
        return None

    return _clamp(left, top, right, bottom, image_width, image_height)


def normalized_to_pixel_box(box: Box, image_width: int, image_height: int) -> Box:
    """
    Convert a normalized (0-1), bottom-left origin detector box to pixels, top-left origin

    Args:
        box: (x, y, w, h) normalized, y up
        image_width: Image width in pixels
        image_height: Image height in pixels

    Returns:
        (x, y, w, h) in pixels, y down
    """
    x, y, w, h = box
    return (
        x * image_width,
        (1 - y - h) * image_height,
        w * image_width,
        h * image_height,
    )


def enlarge_region(
    box: Box,
    image_width: int,
    image_height: int,
    margin_ratio: Optional[float] = None,
) -> Optional[Tuple[int, int, int, int]]:
    """
    Grow a region on every side by a margin proportional to its height

    Args:
        box: (x, y, w, h) in pixels
        image_width: Image width in pixels
        image_height: Image height in pixels
        margin_ratio: Margin relative to the box height (default 5%)

    Returns:
        Enlarged (x, y, w, h) clamped to the image
    """
    if margin_ratio is None:
        margin_ratio = config.DOCUMENT_MARGIN_RATIO

    x, y, w, h = box
    margin = h * margin_ratio
    return _clamp(x - margin, y - margin, x + w + margin, y + h + margin, image_width, image_height)


def crop_region(image: Image.Image, box: Tuple[int, int, int, int]) -> Image.Image:
    """Crop a PIL image to (x, y, w, h)"""
    x, y, w, h = box
    return image.crop((x, y, x + w, y + h))


def _clamp(left, top, right, bottom, image_width, image_height) -> Optional[Tuple[int, int, int, int]]:
    left = max(0, int(math.floor(left)))
    top = max(0, int(math.floor(top)))
    right = min(image_width, int(math.ceil(right)))
    bottom = min(image_height, int(math.ceil(bottom)))

    if right <= left or bottom <= top:
        return None

    return left, top, right - left, bottom - top


def detect_text_rectangles(image: Image.Image, verbose: bool = False) -> List[Tuple[int, int, int, int]]:
    """
    Detect text line rectangles with blackhat + horizontal gradient morphology

    Dark characters on a light background are joined horizontally so that
    each MRZ line becomes a single wide rectangle.

    Args:
        image: PIL Image
        verbose: Print detection details

    Returns:
        List of (x, y, w, h) boxes in pixels
    """
    gray = np.array(image.convert('L'))
    height, width = gray.shape

    # Kernel proportional to the image so that characters of one line merge
    rect_kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (max(13, width // 40), max(5, height // 100)))
    blackhat = cv2.morphologyEx(gray, cv2.MORPH_BLACKHAT, rect_kernel)

    grad = cv2.Sobel(blackhat, ddepth=cv2.CV_32F, dx=1, dy=0, ksize=-1)
    grad = np.absolute(grad)
    (min_val, max_val) = (np.min(grad), np.max(grad))
    if max_val - min_val < 1e-6:
        return []
    grad = (255 * ((grad - min_val) / (max_val - min_val))).astype("uint8")

    grad = cv2.morphologyEx(grad, cv2.MORPH_CLOSE, rect_kernel)
    thresh = cv2.threshold(grad, 0, 255, cv2.THRESH_BINARY | cv2.THRESH_OTSU)[1]
    thresh = cv2.erode(thresh, None, iterations=1)

    contours, _ = cv2.findContours(thresh, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)

    boxes = []
    for contour in contours:
        x, y, w, h = cv2.boundingRect(contour)
        # Text lines are much wider than tall
        if h > 2 and w > h * 2:
            boxes.append((x, y, w, h))

    if verbose:
        print(f"    → {len(boxes)} text rectangle(s) detected")

    return boxes
