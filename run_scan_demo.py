import json
import sys
from scanner import scan_image
from tesseractOCR import check_ocr_available
from utils import load_image

# Example document image (replace with a real image path or URL)
sample_path = sys.argv[1] if len(sys.argv) > 1 else "https://example.com/sample-passport.jpg"

check_ocr_available()
result = scan_image(image=load_image(sample_path), accept_partially_valid=True)
print(json.dumps(result, indent=2))
