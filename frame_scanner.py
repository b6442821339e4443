"""
Frame scheduling for live MRZ scanning
One serial worker processes frames in arrival order; frames arriving while
it is busy are dropped instead of queued.
"""
import threading
from concurrent.futures import ThreadPoolExecutor
from PIL import Image
from typing import Callable, Optional, Tuple
from config import config
from mrz_parser import MRZParser
from scanner import OCREngine, ScanResult, TextDetector, is_acceptable, scan_frame


class FrameScanner:
    """
    Scanning session fed with camera frames

    Accepted results are handed to `on_result` exactly once through
    `dispatch` (a separate delivery thread unless the caller provides its own
    UI context), then the session stops itself.
    """

    def __init__(
        self,
        on_result: Callable[[ScanResult], None],
        dispatch: Optional[Callable[[Callable[[], None]], object]] = None,
        feedback: Optional[Callable[[], None]] = None,
        cutout: Optional[Tuple[float, float, float, float]] = None,
        text_detector: Optional[TextDetector] = None,
        ocr_engine: Optional[OCREngine] = None,
        ocr_correction: Optional[bool] = None,
        accept_partially_valid: Optional[bool] = None,
        vibrate_on_result: Optional[bool] = None,
        verbose: bool = False,
    ):
        """
        Args:
            on_result: Called with the ScanResult of the first accepted frame
            dispatch: Schedules a callable on the caller's UI context
            feedback: Called after delivery when vibrate_on_result is on (haptics, sound)
            cutout: Document area (x, y, w, h) in frame pixels
            text_detector: Text rectangle detector override
            ocr_engine: OCR engine override
            ocr_correction: Apply OCR corrections while parsing (default from config)
            accept_partially_valid: Accept results with failing check digits (default from config)
            vibrate_on_result: Call `feedback` after delivery (default from config)
            verbose: Print detailed logs
        """
        self.on_result = on_result
        self.feedback = feedback
        self.cutout = cutout
        self.text_detector = text_detector
        self.ocr_engine = ocr_engine
        self.accept_partially_valid = (
            config.ACCEPT_PARTIALLY_VALID if accept_partially_valid is None else accept_partially_valid
        )
        self.vibrate_on_result = config.VIBRATE_ON_RESULT if vibrate_on_result is None else vibrate_on_result
        self.verbose = verbose

        self._parser = MRZParser(ocr_correction=ocr_correction)
        self._worker = ThreadPoolExecutor(max_workers=1, thread_name_prefix="mrz-frames")
        self._delivery = None
        if dispatch is None:
            self._delivery = ThreadPoolExecutor(max_workers=1, thread_name_prefix="mrz-delivery")
            dispatch = self._delivery.submit
        self._dispatch = dispatch

        self._busy = threading.Lock()
        self._state_lock = threading.Lock()
        self._scanning = False

    @property
    def is_scanning(self) -> bool:
        with self._state_lock:
            return self._scanning

    def start(self):
        """Start accepting frames"""
        with self._state_lock:
            self._scanning = True
        if self.verbose:
            print("🟢 MRZ scanning started")

    def stop(self):
        """Stop accepting frames; a frame already in progress is not delivered"""
        with self._state_lock:
            self._scanning = False
        if self.verbose:
            print("🔴 MRZ scanning stopped")

    def submit_frame(self, frame: Image.Image) -> bool:
        """
        Hand a camera frame to the worker

        Args:
            frame: Camera frame

        Returns:
            True if the frame will be processed, False if it was dropped
        """
        if not self.is_scanning:
            return False

        if not self._busy.acquire(blocking=False):
            return False

        try:
            self._worker.submit(self._process, frame.copy())
        except Exception as e:
            # Unusable frame or worker already shut down
            self._busy.release()
            if self.verbose:
                print(f"  ⚠ Frame dropped: {e}")
            return False

        return True

    def shutdown(self, wait: bool = True):
        """Stop scanning and release the worker and delivery threads"""
        self.stop()
        self._worker.shutdown(wait=wait)
        if self._delivery is not None:
            self._delivery.shutdown(wait=wait)

    def _process(self, frame: Image.Image):
        try:
            scan_result = scan_frame(
                frame,
                cutout=self.cutout,
                text_detector=self.text_detector,
                ocr_engine=self.ocr_engine,
                parser=self._parser,
                verbose=self.verbose,
            )
            if scan_result is None or not is_acceptable(scan_result.mrz_result, self.accept_partially_valid):
                return

            with self._state_lock:
                if not self._scanning:
                    return
                self._scanning = False

            self._dispatch(lambda: self._deliver(scan_result))
        finally:
            self._busy.release()

    def _deliver(self, scan_result: ScanResult):
        try:
            self.on_result(scan_result)
            if self.vibrate_on_result and self.feedback is not None:
                self.feedback()
        except Exception as e:
            print(f"⚠️ Error in scan result handler: {e}")
