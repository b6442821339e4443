import base64
import io

import pytest
from PIL import Image

from mrz_fields import DocumentFormat
from mrz_samples import TD3_LINES, bump_digit
from scanner import is_acceptable, run_pipeline, scan_frame, scan_image
from mrz_parser import parse_mrz

MRZ_BOXES = [(20, 450, 960, 40), (20, 500, 960, 40)]
TD3_TEXT = "UTOPIA\n" + "\n".join(TD3_LINES) + "\n"
TD3_BAD_COMPOSITE_TEXT = "\n".join([TD3_LINES[0], bump_digit(TD3_LINES[1], 43)])


def make_frame(mode="RGB"):
    return Image.new(mode, (1000, 600), "white")


def detector_returning(boxes):
    calls = []

    def detect(image):
        calls.append(image.size)
        return boxes

    detect.calls = calls
    return detect


def ocr_returning(text):
    def recognize(image):
        return text
    return recognize


def test_scan_frame_reads_mrz():
    result = scan_frame(make_frame(), text_detector=detector_returning(MRZ_BOXES), ocr_engine=ocr_returning(TD3_TEXT))

    assert result is not None
    assert result.mrz_result.mrz_format == DocumentFormat.TD3
    assert result.mrz_result.all_check_digits_valid
    assert result.document_image.size == (1000, 600)


def test_scan_frame_accepts_rgba_frames():
    result = scan_frame(make_frame("RGBA"), text_detector=detector_returning(MRZ_BOXES), ocr_engine=ocr_returning(TD3_TEXT))
    assert result is not None


def test_scan_frame_with_cutout():
    detector = detector_returning([(10, 150, 380, 20)])
    result = scan_frame(
        make_frame(),
        cutout=(100, 100, 400, 200),
        text_detector=detector,
        ocr_engine=ocr_returning(TD3_TEXT),
    )

    assert detector.calls == [(400, 200)]
    # Cutout enlarged by 5% of its height on every side
    assert result.document_image.size == (420, 220)


def test_ocr_engine_receives_preprocessed_region():
    received = []

    def recognize(image):
        received.append(image)
        return TD3_TEXT

    scan_frame(make_frame(), text_detector=detector_returning(MRZ_BOXES), ocr_engine=recognize)

    assert len(received) == 1
    assert received[0].mode == "L"
    assert received[0].size == (960 * 2, 90 * 2)


@pytest.mark.parametrize("boxes, text, error", [
    ([], TD3_TEXT, "No MRZ region detected"),
    ([(0, 0, 100, 20)], TD3_TEXT, "No MRZ region detected"),
    ([(20, 50, 960, 40), (20, 500, 960, 40)], TD3_TEXT, "No MRZ region detected"),
    (MRZ_BOXES, None, "No text recognized in MRZ region"),
    (MRZ_BOXES, "", "No text recognized in MRZ region"),
    (MRZ_BOXES, "   \n  \n", "No MRZ lines in recognized text"),
    (MRZ_BOXES, "HELLO WORLD", "Recognized lines do not match any MRZ format"),
])
def test_pipeline_failures(boxes, text, error):
    outcome = run_pipeline(make_frame(), text_detector=detector_returning(boxes), ocr_engine=ocr_returning(text))
    assert outcome["scan_result"] is None
    assert outcome["error"] == error


def test_pipeline_cutout_outside_frame():
    outcome = run_pipeline(
        make_frame(),
        cutout=(2000, 2000, 10, 10),
        text_detector=detector_returning(MRZ_BOXES),
        ocr_engine=ocr_returning(TD3_TEXT),
    )
    assert outcome["error"] == "Cutout lies outside the frame"


def test_pipeline_never_raises():
    def broken_detector(image):
        raise RuntimeError("detector crashed")

    outcome = run_pipeline(make_frame(), text_detector=broken_detector, ocr_engine=ocr_returning(TD3_TEXT))
    assert outcome["scan_result"] is None
    assert outcome["error"] == "Pipeline error: detector crashed"


def test_pipeline_reports_text_and_timings():
    outcome = run_pipeline(make_frame(), text_detector=detector_returning(MRZ_BOXES), ocr_engine=ocr_returning(TD3_TEXT))
    assert outcome["error"] == ""
    assert outcome["mrz_text"] == "\n".join(TD3_LINES)
    assert set(outcome["step_timings"]) == {"region_detection", "preprocessing", "ocr", "parsing"}


def test_is_acceptable():
    valid = parse_mrz(TD3_LINES)
    partial = parse_mrz([TD3_LINES[0], bump_digit(TD3_LINES[1], 43)])

    assert is_acceptable(valid, accept_partially_valid=False)
    assert not is_acceptable(partial, accept_partially_valid=False)
    assert is_acceptable(partial, accept_partially_valid=True)
    assert not is_acceptable(None, accept_partially_valid=True)


def test_scan_image_success():
    result = scan_image(
        image=make_frame(),
        text_detector=detector_returning(MRZ_BOXES),
        ocr_engine=ocr_returning(TD3_TEXT),
        verbose=False,
    )

    assert result["success"] is True
    assert result["error"] == ""
    assert result["mrz_data"]["document_number"] == "L898902C3"
    assert result["mrz_data"]["date_of_birth"] == "1974-08-12"
    assert "image_loading" in result["step_timings"]
    assert result["total_time"].endswith("s")


def test_scan_image_from_base64():
    buffer = io.BytesIO()
    make_frame().save(buffer, format="PNG")
    encoded = "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode()

    result = scan_image(
        image_base64=encoded,
        text_detector=detector_returning(MRZ_BOXES),
        ocr_engine=ocr_returning(TD3_TEXT),
        verbose=False,
    )
    assert result["success"] is True


def test_scan_image_check_digit_mismatch():
    result = scan_image(
        image=make_frame(),
        accept_partially_valid=False,
        text_detector=detector_returning(MRZ_BOXES),
        ocr_engine=ocr_returning(TD3_BAD_COMPOSITE_TEXT),
        verbose=False,
    )

    assert result["success"] is False
    assert result["error"] == "Check digit mismatch"
    assert result["mrz_data"]["composite_valid"] is False


def test_scan_image_accepts_partially_valid_when_asked():
    result = scan_image(
        image=make_frame(),
        accept_partially_valid=True,
        text_detector=detector_returning(MRZ_BOXES),
        ocr_engine=ocr_returning(TD3_BAD_COMPOSITE_TEXT),
        verbose=False,
    )
    assert result["success"] is True
    assert result["mrz_data"]["all_check_digits_valid"] is False


def test_scan_image_without_image():
    result = scan_image(verbose=False)
    assert result["success"] is False
    assert result["error"].startswith("No image provided")
    assert result["mrz_data"] == {}


def test_scan_image_reports_pipeline_error():
    result = scan_image(
        image=make_frame(),
        text_detector=detector_returning([]),
        ocr_engine=ocr_returning(TD3_TEXT),
        verbose=False,
    )
    assert result["success"] is False
    assert result["error"] == "No MRZ region detected"
