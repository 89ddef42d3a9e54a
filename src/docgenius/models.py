# pydantic models for data validation and structure
from pydantic import BaseModel, Field
from typing import List, Dict, Any, Optional
from enum import Enum

# enum for the report templates the generator knows about
class ReportType(str, Enum):
    INTERVENTION = "intervention"
    ACADEMIC = "academic"
    EXECUTIVE = "executive"

# enum for the kinds of slides a compiled deck contains
class SlideType(str, Enum):
    TITLE = "title"
    CONTENTS = "contents"
    SECTION = "section"

# a section of a report as seen by the editor and the resolver
class SectionInfo(BaseModel):
    index: int
    id: str = ""
    title: str = ""

# a section copied out of a report for the deck
class ExtractedSection(BaseModel):
    id: str
    title: str
    content: str

# model for a single slide of a compiled deck
class Slide(BaseModel):
    index: int
    type: SlideType
    title: str
    section_id: Optional[str] = None

# model for a complete compiled deck
class Deck(BaseModel):
    title: str
    subtitle: str
    slides: List[Slide]
    sections: List[ExtractedSection]
    report_styles: str = ""

# what a mutation operator hands back on success
class OperatorOutcome(BaseModel):
    html: str
    message: str
    instant: bool = True
    changes: int = 1

# a structured instruction returned by the classifier
class ToolCall(BaseModel):
    name: str
    arguments: Dict[str, Any] = {}

# result of one attempted tool call
class OperationResult(BaseModel):
    tool: str
    success: bool
    message: str
    instant: bool = True
    changes: int = 0
    error_type: Optional[str] = None
    retry: bool = False

# response model for a conversational edit
class EditResponse(BaseModel):
    success: bool
    reply: str = ""
    report_html: str
    results: List[OperationResult] = []
    ai_backed: bool = False
    retry: bool = False

# detected document profile and the rules that go with it
class DocumentProfile(BaseModel):
    type: str
    confidence: float = 0.0
    config: Dict[str, Any] = {}

# outcome of the visual enhancement pass
class EnhancementResult(BaseModel):
    report_html: str
    injected: int = 0
    requested: int = 0

# text and metadata pulled out of an uploaded pdf
class PDFExtractionResponse(BaseModel):
    text: str
    pages: int
    info: Dict[str, Any] = {}

# request model for the analysis phase
class AnalyzeRequest(BaseModel):
    pdf_content: str

# request model for generating the report
class GenerateReportRequest(BaseModel):
    analysis: str
    file_name: Optional[str] = None
    report_type: ReportType = ReportType.INTERVENTION

# request model for the phases that work on an existing report
class ReportHtmlRequest(BaseModel):
    report_html: str
    file_name: Optional[str] = None

# request model for a conversational edit
class EditRequest(BaseModel):
    message: str = Field(..., min_length=1)
    report_html: str
    pdf_content: Optional[str] = None

# request model for free chat about the pdf
class ChatRequest(BaseModel):
    message: str
    pdf_content: Optional[str] = None

# response model for the analysis phase
class AnalysisResponse(BaseModel):
    analysis: str
    phase: int = 1
    message: str = "Analysis completed"
    profile: Optional[DocumentProfile] = None

# response model for phases that return a report
class ReportResponse(BaseModel):
    report_html: str
    file_name: str
    phase: int
    message: str
    size: int = 0
    timestamp: str = ""

# response model for the presentation conversion
class PresentationResponse(BaseModel):
    presentation_html: str
    file_name: str
    phase: int = 4
    message: str = "Presentation conversion completed"
    size: int = 0
    slide_count: int = 0
    timestamp: str = ""

# response model for the one-shot pdf to report pipeline
class ReportProcessingResponse(BaseModel):
    success: bool
    message: str
    report_html: Optional[str] = None
    file_name: Optional[str] = None
    domain: Optional[str] = None
    profile: Optional[DocumentProfile] = None
    processing_time: float = 0.0
    retry: bool = False
