"""
FastAPI application for MRZ scanning
"""
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Dict, List, Optional
from config import config
from mrz_parser import MRZParser
from scanner import scan_image


# Initialize FastAPI app
app = FastAPI(
    title=config.API_TITLE,
    version=config.API_VERSION,
    description=config.API_DESCRIPTION
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request models
class ScanRequest(BaseModel):
    """Request model for document scanning"""
    image_type: str = Field(..., description="Type of input: 'file' for URL, 'base64' for base64 encoded image")
    documents_image_url: Optional[str] = Field(None, description="URL of the document image (required if image_type='file')")
    image_base64: Optional[str] = Field(None, description="Base64 encoded image data (required if image_type='base64')")
    accept_partially_valid: Optional[bool] = Field(None, description="Accept MRZ results with failing check digits")

    @field_validator('image_type')
    @classmethod
    def validate_image_type(cls, v):
        if v not in ['file', 'base64']:
            raise ValueError('image_type must be either "file" or "base64"')
        return v

    @model_validator(mode="after")
    def validate_image_source(self):
        """Validate that the appropriate image source is provided based on image_type"""
        if self.image_type == 'file' and not self.documents_image_url:
            raise ValueError('documents_image_url is required when image_type is "file"')
        if self.image_type == 'base64' and not self.image_base64:
            raise ValueError('image_base64 is required when image_type is "base64"')
        return self


class ParseRequest(BaseModel):
    """Request model for parsing already recognized MRZ text"""
    mrz_text: str = Field(..., description="MRZ lines separated by newlines, OCR noise allowed")
    ocr_correction: Optional[bool] = Field(None, description="Apply OCR corrections (default from config)")


# Response models
class MRZData(BaseModel):
    """Parsed MRZ model"""
    mrz_format: str = ""
    document_type: str = ""
    document_subtype: str = ""
    issuing_state: str = ""
    surname: str = ""
    given_names: str = ""
    document_number: str = ""
    document_number_valid: bool = False
    nationality: str = ""
    birth_date: str = ""
    birth_date_valid: bool = False
    date_of_birth: str = ""
    sex: str = ""
    expiry_date: str = ""
    expiry_date_valid: bool = False
    date_of_expiry: str = ""
    optional_data: str = ""
    optional_data_valid: Optional[bool] = None
    optional_data_2: Optional[str] = None
    composite_valid: Optional[bool] = None
    all_check_digits_valid: bool = False
    mrz_lines: List[str] = []


class ScanResponse(BaseModel):
    """Response model for document scanning"""
    success: bool
    mrz_data: Dict
    mrz_text: str = ""
    step_timings: Dict = {}
    total_time: str = ""
    error: str = ""


class ParseResponse(BaseModel):
    """Response model for MRZ text parsing"""
    success: bool
    mrz_data: Optional[MRZData] = None
    error: str = ""


# API endpoints
@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": config.API_TITLE,
        "version": config.API_VERSION,
        "endpoints": {
            "scan": "/scan - POST endpoint to scan passport/ID card/visa images",
            "parse": "/parse - POST endpoint to parse recognized MRZ text",
            "health": "/health - GET endpoint to check API health",
            "docs": "/docs - Swagger UI documentation"
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": config.API_TITLE,
        "version": config.API_VERSION
    }


@app.post("/scan", response_model=ScanResponse)
def scan_document(request: ScanRequest):
    """
    Scan a document image and read its MRZ

    Examples:
        With image URL:
        ```json
        {
            "image_type": "file",
            "documents_image_url": "https://example.com/passport.jpg"
        }
        ```

        With base64 image:
        ```json
        {
            "image_type": "base64",
            "image_base64": "/9j/4AAQSkZJRgABAQ..."
        }
        ```
    """
    try:
        if request.image_type == "file":
            result = scan_image(
                image_url=request.documents_image_url,
                accept_partially_valid=request.accept_partially_valid,
                verbose=config.VERBOSE,
            )
        else:
            result = scan_image(
                image_base64=request.image_base64,
                accept_partially_valid=request.accept_partially_valid,
                verbose=config.VERBOSE,
            )

        # If extraction failed, return 422 status code with full response
        if not result.get("success"):
            return JSONResponse(status_code=422, content=result)

        return result

    except Exception as e:
        raise HTTPException(
            status_code=500,
            detail=f"Error processing document: {str(e)}"
        )


@app.post("/parse", response_model=ParseResponse)
def parse_mrz_text(request: ParseRequest):
    """
    Parse MRZ text that was recognized elsewhere

    Example:
        ```json
        {
            "mrz_text": "P<UTOERIKSSON<<ANNA<MARIA<<<<<<<<<<<<<<<<<<<\\nL898902C36UTO7408122F1204159ZE184226B<<<<<10"
        }
        ```
    """
    parser = MRZParser(ocr_correction=request.ocr_correction)
    result = parser.parse_text(request.mrz_text, verbose=config.VERBOSE)

    if result is None:
        return JSONResponse(
            status_code=422,
            content={"success": False, "mrz_data": None, "error": "No MRZ found in text"}
        )

    return ParseResponse(success=True, mrz_data=MRZData(**result.to_dict()))


# Run the application
if __name__ == "__main__":
    import uvicorn
    from tesseractOCR import check_ocr_available
    check_ocr_available()
    uvicorn.run(app, host="0.0.0.0", port=8000)
