import re
import time
import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from .config import PDF_CONTEXT_CHARS
from .pdf_parser import PDFParser
from .deck_compiler import get_deck_compiler
from .document_profiles import analyze_document_type, get_profile_instructions
from .report_enhancer import ReportEnhancer
from .command_resolver import CommandResolver
from .ai_operators import strip_code_fences
from .errors import DocGeniusError, InvalidArgumentError, GenerationServiceError
from .models import (
    ReportType, DocumentProfile, PDFExtractionResponse, AnalysisResponse, ReportResponse,
    PresentationResponse, EditResponse, ReportProcessingResponse
)

logger = logging.getLogger(__name__)

DOMAINS = ["cybersecurity", "finance", "technical", "commercial", "hr", "legal", "medical", "educational", "other"]
FALLBACK_DOMAIN = "other"

# per report type: title, focus, required sections and visualisations
REPORT_TEMPLATES: Dict[ReportType, Dict[str, Any]] = {
    ReportType.INTERVENTION: {
        "title": "TECHNICAL INTERVENTION REPORT",
        "focus": "detailed technical intervention",
        "sections": ["Executive Summary", "Intervention Context", "Technical Analysis", "Actions Taken",
                     "Results and Metrics", "Recommendations", "Follow-up Plan"],
        "visualizations": ["Intervention timeline", "Before/after performance charts", "Technical diagrams",
                           "Resolution metrics"]
    },
    ReportType.ACADEMIC: {
        "title": "ACADEMIC ANALYSIS REPORT",
        "focus": "in-depth academic study with rigorous methodology",
        "sections": ["Abstract", "Introduction", "Methodology", "Data Analysis", "Results", "Discussion",
                     "Conclusion", "References"],
        "visualizations": ["Statistical charts", "Correlation tables", "Methodology diagrams", "Comparative analyses"]
    },
    ReportType.EXECUTIVE: {
        "title": "STRATEGIC EXECUTIVE REPORT",
        "focus": "decision-oriented executive synthesis with KPIs",
        "sections": ["Strategic Summary", "Key Issues", "Impact Analysis", "Opportunities", "Risks",
                     "Strategic Recommendations", "Action Plan"],
        "visualizations": ["Executive dashboard", "Strategic matrices", "ROI charts", "KPI scorecards"]
    }
}

ANALYSIS_PROMPT = """Analyse this PDF content in two steps.

STEP 1: identify the main domain. Answer with one of: {domains}
STEP 2: structure the information:
- main subject of the document
- 5-7 key sections
- important points per section
- conclusions or recommendations if present

CONTENT:
{content}

RESPONSE FORMAT:
DOMAIN: [domain]

SUBJECT: [one sentence]

SECTIONS:
1. [Section title] - [two-line summary]
...

KEY_POINTS:
- [point]
..."""

DOMAIN_PROMPT = """Identify the main domain of this document.
Answer with exactly one word from: {domains}

CONTENT:
{content}"""

REPORT_PROMPT = """Create a complete, professional HTML report of type "{title}" based on this analysis.

ANALYSIS:
{analysis}

REPORT FOCUS: {focus}
REQUIRED SECTIONS: {sections}

Requirements:
- One <section> element with a unique id per required section, each starting with an <h2> title.
- A first <section id="hero"> with an <h1> title and a <p> subtitle.
- Include these visualisations as inline SVG or styled HTML: {visualizations}.
- Stat boxes, cards and tables use inline styles and literal hex colours.
- All CSS lives in one <style> block in <head>; no external scripts or stylesheets.
- The document must be complete and end with </html>.
{profile_instructions}"""


# strip .pdf/.html so derived file names do not stack extensions
def file_stem(file_name: Optional[str]) -> str:
    return re.sub(r"\.(pdf|html?)$", "", (file_name or "").strip(), flags=re.IGNORECASE)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _require_text(value: Optional[str], what: str) -> str:
    if not value or not value.strip():
        raise InvalidArgumentError(f"Missing {what}")
    return value


# report pipeline orchestrates extraction, analysis, generation, conversion and editing
class ReportPipeline:
    def __init__(self, llm=None):
        self._llm = llm
        self.pdf_parser = PDFParser()
        self.deck_compiler = get_deck_compiler()

    @property
    def llm(self):
        if self._llm is None:
            from .llm_service import get_llm_service
            self._llm = get_llm_service()
        return self._llm

    def extract_pdf(self, data: bytes) -> PDFExtractionResponse:
        return self.pdf_parser.extract(data)

    # phase 1: structured analysis of the pdf text
    def analyze(self, pdf_content: str) -> AnalysisResponse:
        pdf_content = _require_text(pdf_content, "PDF content")
        profile = analyze_document_type(pdf_content)

        prompt = ANALYSIS_PROMPT.format(
            domains=", ".join(DOMAINS),
            content=pdf_content[:PDF_CONTEXT_CHARS]
        )
        analysis = self.llm.generate_text(prompt, max_tokens=2000)
        logger.info(f"✓ Phase 1 analysis done ({len(analysis)} chars, profile {profile.type})")
        return AnalysisResponse(analysis=analysis, phase=1, message="Analysis completed", profile=profile)

    # one-word domain label; any failure falls back to "other"
    def detect_domain(self, pdf_content: str) -> str:
        try:
            answer = self.llm.generate_text(
                DOMAIN_PROMPT.format(domains=", ".join(DOMAINS), content=pdf_content[:3000]),
                max_tokens=10,
                temperature=0.0
            )
        except GenerationServiceError as e:
            logger.warning(f"Domain detection failed, using '{FALLBACK_DOMAIN}': {e.message}")
            return FALLBACK_DOMAIN

        words = re.findall(r"[a-z]+", answer.lower())
        domain = next((word for word in words if word in DOMAINS), FALLBACK_DOMAIN)
        logger.info(f"✓ Domain: {domain}")
        return domain

    # phase 2: generate the report html from the analysis
    def generate_report(self, analysis: str, file_name: Optional[str] = None,
                        report_type: ReportType = ReportType.INTERVENTION,
                        profile: Optional[DocumentProfile] = None) -> ReportResponse:
        analysis = _require_text(analysis, "analysis")
        template = REPORT_TEMPLATES[ReportType(report_type)]

        prompt = REPORT_PROMPT.format(
            title=template["title"],
            analysis=analysis,
            focus=template["focus"],
            sections=", ".join(template["sections"]),
            visualizations=", ".join(template["visualizations"]),
            profile_instructions=get_profile_instructions(profile) if profile else ""
        )
        report_html = strip_code_fences(self.llm.generate_text(prompt, max_tokens=16000))

        stem = file_stem(file_name)
        logger.info(f"✓ Phase 2 report generated ({len(report_html)} chars)")
        return ReportResponse(
            report_html=report_html,
            file_name=f"{stem}-report.html" if stem else "report.html",
            phase=2,
            message="Report generated",
            size=len(report_html),
            timestamp=_timestamp()
        )

    # phase 3: metadata for download
    def finalize(self, report_html: str, file_name: Optional[str] = None) -> ReportResponse:
        report_html = _require_text(report_html, "report HTML")
        return ReportResponse(
            report_html=report_html,
            file_name=file_name or "report-final.html",
            phase=3,
            message="Report finalized, ready for download",
            size=len(report_html),
            timestamp=_timestamp()
        )

    # phase 4: deck compiled from the report, no generation call
    def convert_to_presentation(self, report_html: str, file_name: Optional[str] = None) -> PresentationResponse:
        report_html = _require_text(report_html, "report HTML")
        deck = self.deck_compiler.build_deck(report_html)
        presentation_html = self.deck_compiler.render(deck)

        stem = file_stem(file_name)
        logger.info(f"✓ Phase 4 presentation compiled ({len(deck.slides)} slides)")
        return PresentationResponse(
            presentation_html=presentation_html,
            file_name=f"{stem}-presentation.html" if stem else "presentation.html",
            phase=4,
            message="Presentation conversion completed",
            size=len(presentation_html),
            slide_count=len(deck.slides),
            timestamp=_timestamp()
        )

    # phase 5: generated css and svg charts added to the report
    def enhance(self, report_html: str, file_name: Optional[str] = None) -> ReportResponse:
        report_html = _require_text(report_html, "report HTML")
        result = ReportEnhancer(self.llm).enhance(report_html)

        stem = file_stem(file_name)
        return ReportResponse(
            report_html=result.report_html,
            file_name=f"{stem}-enhanced.html" if stem else "enhanced.html",
            phase=5,
            message=f"Visual enhancement applied ({result.injected}/{result.requested} charts injected)",
            size=len(result.report_html),
            timestamp=_timestamp()
        )

    # conversational edit of an existing report
    def edit(self, message: str, report_html: str, pdf_content: Optional[str] = None) -> EditResponse:
        _require_text(message, "edit instruction")
        return CommandResolver(llm=self._llm).resolve(message, report_html, pdf_content=pdf_content)

    # free question answering, optionally grounded on the pdf
    def chat(self, message: str, pdf_content: Optional[str] = None) -> str:
        message = _require_text(message, "message")
        prompt = message
        if pdf_content:
            prompt = f"PDF content:\n\n{pdf_content[:PDF_CONTEXT_CHARS]}\n\nQuestion: {message}"
        return self.llm.generate_text(prompt, max_tokens=4000)

    def process_pdf(self, data: bytes, file_name: Optional[str] = None,
                    report_type: ReportType = ReportType.INTERVENTION) -> ReportProcessingResponse:
        """Main processing pipeline: extract, analyse, generate"""
        start_time = time.time()

        try:
            logger.info(f"Starting PDF processing: {file_name or '<upload>'}")
            logger.info("=" * 60)

            logger.info("Step 1: Extracting text...")
            extracted = self.extract_pdf(data)
            logger.info(f"  ✓ Pages: {extracted.pages}")

            logger.info("\nStep 2: Analysing content...")
            analysis = self.analyze(extracted.text)
            domain = self.detect_domain(extracted.text)
            logger.info(f"  ✓ Domain: {domain}, profile: {analysis.profile.type}")

            logger.info("\nStep 3: Generating report...")
            report = self.generate_report(analysis.analysis, file_name, report_type, profile=analysis.profile)
            logger.info(f"  ✓ Report size: {report.size} chars")

            processing_time = time.time() - start_time
            logger.info("=" * 60)
            logger.info(f"✓ SUCCESS! Completed in {processing_time:.2f} seconds")

            return ReportProcessingResponse(
                success=True,
                message="PDF processed successfully",
                report_html=report.report_html,
                file_name=report.file_name,
                domain=domain,
                profile=analysis.profile,
                processing_time=processing_time
            )

        except DocGeniusError as e:
            processing_time = time.time() - start_time
            logger.error(f"✗ ERROR: {e.message}", exc_info=True)

            return ReportProcessingResponse(
                success=False,
                message=f"Error processing PDF: {e.message}",
                processing_time=processing_time,
                retry=e.retry
            )
