# fastapi web api for pdf to report, deck conversion and report editing
from fastapi import FastAPI, Request, UploadFile, File
from fastapi.responses import JSONResponse, FileResponse
from fastapi.staticfiles import StaticFiles
from fastapi.middleware.cors import CORSMiddleware
import logging
from pathlib import Path

from .config import MAX_UPLOAD_MB, LOG_LEVEL
from .report_pipeline import ReportPipeline
from .errors import DocGeniusError, TransientUpstreamError, InvalidArgumentError, NotFoundError
from .models import (
    AnalyzeRequest, GenerateReportRequest, ReportHtmlRequest, EditRequest, ChatRequest,
    PDFExtractionResponse, AnalysisResponse, ReportResponse, PresentationResponse, EditResponse
)

# configure logging
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)

# initialize fastapi application
app = FastAPI(
    title="DocGenius API",
    description="Turn PDF documents into styled HTML reports and slide decks, and edit reports conversationally",
    version="1.0.0"
)

# add cors middleware to allow cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# phase number reported with errors, per route
PHASES = {
    "/analyze-pdf": 1,
    "/generate-report-structure": 2,
    "/finalize-report": 3,
    "/convert-to-presentation": 4,
    "/enhance-report": 5,
}

# the generation service is only contacted on first use
pipeline = ReportPipeline()

# uploads are read this many bytes at a time
UPLOAD_CHUNK_BYTES = 1024 * 1024

base_dir = Path(__file__).parent.parent.parent
public_dir = base_dir / "public"


# map the error hierarchy onto http statuses
@app.exception_handler(DocGeniusError)
async def docgenius_error_handler(request: Request, exc: DocGeniusError):
    phase = PHASES.get(request.url.path)
    body = {"error": exc.message, "error_type": exc.error_type, "retry": exc.retry}
    if phase is not None:
        body["phase"] = phase

    if isinstance(exc, TransientUpstreamError):
        status = 503
    elif isinstance(exc, InvalidArgumentError):
        status = 400
    elif isinstance(exc, NotFoundError):
        status = 404
    else:
        status = 500

    logger.error(f"{request.url.path} failed ({status}): {str(exc)}")
    return JSONResponse(status_code=status, content=body)


# ============================================================================
# API ROUTES - Must be defined BEFORE static file mounts
# ============================================================================

# read an upload in chunks, None once it grows past limit bytes
async def read_limited(upload: UploadFile, limit: int):
    size = getattr(upload, "size", None)
    if size is not None and size > limit:
        return None

    chunks = []
    total = 0
    while True:
        chunk = await upload.read(UPLOAD_CHUNK_BYTES)
        if not chunk:
            break
        total += len(chunk)
        if total > limit:
            return None
        chunks.append(chunk)
    return b"".join(chunks)


# extract text from an uploaded pdf
@app.post("/upload-pdf", response_model=PDFExtractionResponse)
async def upload_pdf(pdf: UploadFile = File(None)):
    """Upload a PDF and return its text"""
    if pdf is None or not pdf.filename:
        return JSONResponse(status_code=400, content={"error": "No PDF file provided"})

    content = await read_limited(pdf, int(MAX_UPLOAD_MB * 1024 * 1024))
    if content is None:
        return JSONResponse(status_code=413, content={"error": f"PDF larger than {MAX_UPLOAD_MB} MB"})

    logger.info(f"File uploaded: {pdf.filename} ({len(content)} bytes)")
    return pipeline.extract_pdf(content)


# phase 1
@app.post("/analyze-pdf", response_model=AnalysisResponse)
def analyze_pdf(request: AnalyzeRequest):
    """Analyse the PDF text"""
    return pipeline.analyze(request.pdf_content)


# phase 2
@app.post("/generate-report-structure", response_model=ReportResponse)
def generate_report_structure(request: GenerateReportRequest):
    """Generate the HTML report from an analysis"""
    return pipeline.generate_report(request.analysis, request.file_name, request.report_type)


# phase 3
@app.post("/finalize-report", response_model=ReportResponse)
def finalize_report(request: ReportHtmlRequest):
    return pipeline.finalize(request.report_html, request.file_name)


# phase 4, no generation call
@app.post("/convert-to-presentation", response_model=PresentationResponse)
def convert_to_presentation(request: ReportHtmlRequest):
    """Compile the report into a slide deck"""
    return pipeline.convert_to_presentation(request.report_html, request.file_name)


# phase 5
@app.post("/enhance-report", response_model=ReportResponse)
def enhance_report(request: ReportHtmlRequest):
    """Add generated CSS and SVG charts to the report"""
    return pipeline.enhance(request.report_html, request.file_name)


# conversational edit; failures come back inside the response
@app.post("/edit-report", response_model=EditResponse)
def edit_report(request: EditRequest):
    """Apply a free-text edit instruction to the report"""
    return pipeline.edit(request.message, request.report_html, request.pdf_content)


@app.post("/chat")
def chat(request: ChatRequest):
    """Ask a question, optionally about the PDF"""
    return {"response": pipeline.chat(request.message, request.pdf_content)}


# Serve index.html at root when a ui is bundled
@app.get("/", include_in_schema=False)
async def serve_index():
    """Serve the main UI"""
    index_path = public_dir / "index.html"
    if index_path.exists():
        return FileResponse(str(index_path))
    return {"message": "DocGenius API", "version": "1.0.0"}


@app.get("/api")
async def api_info():
    """API information endpoint"""
    return {
        "message": "DocGenius API",
        "version": "1.0.0",
        "endpoints": {
            "upload": "/upload-pdf",
            "analyze": "/analyze-pdf",
            "generate": "/generate-report-structure",
            "finalize": "/finalize-report",
            "presentation": "/convert-to-presentation",
            "enhance": "/enhance-report",
            "edit": "/edit-report",
            "chat": "/chat",
            "health": "/health"
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "docgenius"}


# ============================================================================
# STATIC FILE MOUNTS - Must be AFTER all API routes
# ============================================================================

if public_dir.exists():
    app.mount("/", StaticFiles(directory=str(public_dir), html=True), name="public")
    logger.info(f"Mounted static files from {public_dir} at /")
