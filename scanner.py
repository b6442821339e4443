"""
MRZ scanning pipeline for a single frame or still image
Flow: document cutout → text rectangles → MRZ region → pre-processing → OCR → MRZ lines → parser
"""
import time
from PIL import Image
from typing import Callable, Dict, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict
from config import config
from image_preprocessor import preprocess_mrz_image
from mrz_lines import extract_mrz_lines
from mrz_parser import MRZParser, MRZResult
from region_locator import crop_region, detect_text_rectangles, enlarge_region, locate_mrz_region
from tesseractOCR import recognize_mrz_text
from utils import decode_base64_image, download_image, to_rgb

TextDetector = Callable[[Image.Image], List[Tuple[float, float, float, float]]]
OCREngine = Callable[[Image.Image], Optional[str]]


class ScanResult(BaseModel):
    """Accepted scan: parsed MRZ and the document image it was read from"""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    mrz_result: MRZResult
    document_image: Image.Image


def is_acceptable(result: Optional[MRZResult], accept_partially_valid: Optional[bool] = None) -> bool:
    """
    Caller policy: accept only fully valid results unless partial ones are allowed

    Args:
        result: Parsed MRZ or None
        accept_partially_valid: Accept results with failing check digits (default from config)

    Returns:
        True if the result should be delivered
    """
    if result is None:
        return False
    if accept_partially_valid is None:
        accept_partially_valid = config.ACCEPT_PARTIALLY_VALID
    return accept_partially_valid or result.all_check_digits_valid


def run_pipeline(
    frame: Image.Image,
    cutout: Optional[Tuple[float, float, float, float]] = None,
    text_detector: Optional[TextDetector] = None,
    ocr_engine: Optional[OCREngine] = None,
    parser: Optional[MRZParser] = None,
    verbose: bool = False,
) -> Dict:
    """
    Run every pipeline stage on one image

    Never raises; a stage that finds nothing ends the run with an error
    message and no scan result.

    Args:
        frame: Camera frame or still image
        cutout: Document area (x, y, w, h) in frame pixels, whole frame when None
        text_detector: Text rectangle detector, OpenCV detector by default
        ocr_engine: OCR engine, Tesseract by default
        parser: MRZ parser, default configuration when None
        verbose: Print detailed logs

    Returns:
        Dictionary with "scan_result", "mrz_text", "error" and "step_timings"
    """
    text_detector = text_detector or detect_text_rectangles
    ocr_engine = ocr_engine or recognize_mrz_text
    parser = parser or MRZParser()

    outcome = {"scan_result": None, "mrz_text": "", "error": "", "step_timings": {}}
    timings = outcome["step_timings"]

    def finish(error: str) -> Dict:
        outcome["error"] = error
        if verbose:
            print(f"  ⚠ {error}")
        return outcome

    try:
        frame = to_rgb(frame)
        width, height = frame.size

        step_start = time.time()
        cutout_box = enlarge_region(cutout or (0, 0, width, height), width, height, margin_ratio=0.0)
        if cutout_box is None:
            return finish("Cutout lies outside the frame")
        document = crop_region(frame, cutout_box)

        if verbose:
            print(f"  → Detecting text rectangles in {document.size[0]}×{document.size[1]} document area...")
        boxes = text_detector(document)
        region = locate_mrz_region(boxes, document.size[0], document.size[1])
        timings["region_detection"] = f"{time.time() - step_start:.2f}s"
        if region is None:
            return finish("No MRZ region detected")
        if verbose:
            print(f"  ✓ MRZ region: {region}")

        step_start = time.time()
        processed = preprocess_mrz_image(crop_region(document, region), verbose=verbose)
        timings["preprocessing"] = f"{time.time() - step_start:.2f}s"

        step_start = time.time()
        text = ocr_engine(processed)
        timings["ocr"] = f"{time.time() - step_start:.2f}s"
        if not text:
            return finish("No text recognized in MRZ region")

        mrz_lines = extract_mrz_lines(text)
        if mrz_lines is None:
            return finish("No MRZ lines in recognized text")
        outcome["mrz_text"] = "\n".join(mrz_lines)

        step_start = time.time()
        mrz_result = parser.parse(mrz_lines, verbose=verbose)
        timings["parsing"] = f"{time.time() - step_start:.2f}s"
        if mrz_result is None:
            return finish("Recognized lines do not match any MRZ format")

        document_box = enlarge_region(cutout_box, width, height)
        outcome["scan_result"] = ScanResult(
            mrz_result=mrz_result,
            document_image=crop_region(frame, document_box),
        )
        if verbose:
            print(f"  ✓ {mrz_result.mrz_format.value} MRZ read, all check digits valid: {mrz_result.all_check_digits_valid}")
        return outcome

    except Exception as e:
        return finish(f"Pipeline error: {str(e)}")


def scan_frame(
    frame: Image.Image,
    cutout: Optional[Tuple[float, float, float, float]] = None,
    text_detector: Optional[TextDetector] = None,
    ocr_engine: Optional[OCREngine] = None,
    parser: Optional[MRZParser] = None,
    verbose: bool = False,
) -> Optional[ScanResult]:
    """
    Scan one camera frame

    Stateless: every frame is evaluated on its own and failures simply
    return None so the next frame can be tried.

    Returns:
        ScanResult or None
    """
    outcome = run_pipeline(frame, cutout, text_detector, ocr_engine, parser, verbose)
    return outcome["scan_result"]


def scan_image(
    image: Optional[Image.Image] = None,
    image_url: Optional[str] = None,
    image_base64: Optional[str] = None,
    accept_partially_valid: Optional[bool] = None,
    text_detector: Optional[TextDetector] = None,
    ocr_engine: Optional[OCREngine] = None,
    verbose: bool = True,
) -> Dict:
    """
    Scan a still image of a document and build an API style response

    Args:
        image: PIL Image
        image_url: URL of the document image
        image_base64: Base64 encoded document image
        accept_partially_valid: Accept results with failing check digits
        text_detector: Text rectangle detector override
        ocr_engine: OCR engine override
        verbose: Print detailed logs

    Returns:
        Dictionary with extracted MRZ data
    """
    total_start_time = time.time()
    step_timings = {}

    try:
        if verbose:
            print("\n" + "=" * 60)
            print("📄 MRZ SCANNER")
            print("=" * 60)

        step_start = time.time()
        if image is None and image_url:
            if verbose:
                print(f"\n📥 Loading image from URL...")
            image = download_image(image_url)
        elif image is None and image_base64:
            if verbose:
                print(f"\n📥 Decoding base64 image...")
            image = decode_base64_image(image_base64)
        elif image is None:
            return _response(
                success=False,
                total_start_time=total_start_time,
                error="No image provided. Please provide either image_url or image_base64",
            )
        step_timings["image_loading"] = f"{time.time() - step_start:.2f}s"

        if verbose:
            print(f"  ✓ Image loaded: {image.size} {image.mode}")

        outcome = run_pipeline(image, text_detector=text_detector, ocr_engine=ocr_engine, verbose=verbose)
        step_timings.update(outcome["step_timings"])

        scan_result = outcome["scan_result"]
        if scan_result is None:
            return _response(
                success=False,
                total_start_time=total_start_time,
                mrz_text=outcome["mrz_text"],
                step_timings=step_timings,
                error=outcome["error"],
            )

        mrz_result = scan_result.mrz_result
        if not is_acceptable(mrz_result, accept_partially_valid):
            if verbose:
                print("\n❌ MRZ found but check digits do not match")
            return _response(
                success=False,
                total_start_time=total_start_time,
                mrz_data=mrz_result.to_dict(),
                mrz_text=outcome["mrz_text"],
                step_timings=step_timings,
                error="Check digit mismatch",
            )

        if verbose:
            print("\n✅ SUCCESS")

        return _response(
            success=True,
            total_start_time=total_start_time,
            mrz_data=mrz_result.to_dict(),
            mrz_text=outcome["mrz_text"],
            step_timings=step_timings,
        )

    except Exception as e:
        if verbose:
            print(f"\n❌ CRITICAL ERROR: {e}")
        return _response(
            success=False,
            total_start_time=total_start_time,
            step_timings=step_timings,
            error=f"System error: {str(e)}",
        )


def _response(
    success: bool,
    total_start_time: float,
    mrz_data: Optional[Dict] = None,
    mrz_text: str = "",
    step_timings: Optional[Dict] = None,
    error: str = "",
) -> Dict:
    return {
        "success": success,
        "mrz_data": mrz_data or {},
        "mrz_text": mrz_text,
        "step_timings": step_timings or {},
        "total_time": f"{time.time() - total_start_time:.2f}s",
        "error": error,
    }
