# pdf text extraction using pymupdf
import fitz  # PyMuPDF
import re
from typing import List, Dict, Any
import logging

from .errors import InvalidArgumentError
from .models import PDFExtractionResponse

logger = logging.getLogger(__name__)


# class for extracting text and metadata from uploaded pdf bytes
class PDFParser:
    # open a pdf from memory, rejecting anything pymupdf cannot read
    def _open(self, data: bytes):
        if not data:
            raise InvalidArgumentError("No PDF data received")
        try:
            return fitz.open(stream=data, filetype="pdf")
        except Exception as e:
            raise InvalidArgumentError("File is not a readable PDF", cause=e)

    # extract all page text plus metadata
    def extract(self, data: bytes) -> PDFExtractionResponse:
        """Extract text, page count and metadata from PDF bytes"""
        doc = self._open(data)
        try:
            pages = []
            for page_num in range(doc.page_count):
                page_text = doc[page_num].get_text()
                lines = [line.strip() for line in page_text.split('\n')]
                pages.append("\n".join(line for line in lines if line))

            text = "\n\n".join(page for page in pages if page)
            info = self._metadata(doc)
            info["title"] = info.get("title") or self._extract_title(text.split("\n"))
            total_pages = doc.page_count
        finally:
            doc.close()

        logger.info(f"✓ Extracted {len(text)} characters from {total_pages} pages")
        return PDFExtractionResponse(text=text, pages=total_pages, info=info)

    # pick a title-like line from the first lines of text
    def _extract_title(self, lines: List[str]) -> str:
        """Extract document title"""
        for line in lines[:20]:
            if 15 < len(line) < 100:
                words = line.split()
                if 2 <= len(words) <= 8 and (line.istitle() or line.isupper()):
                    return re.sub(r'^(Title:|Report:|Project:)\s*', '', line, flags=re.IGNORECASE)

        # fallback: first substantial line
        for line in lines:
            if len(line) > 15:
                return line[:80]
        return ""

    # metadata like author, creation date, etc
    def _metadata(self, doc) -> Dict[str, Any]:
        metadata = doc.metadata or {}
        return {
            'title': metadata.get('title', ''),
            'author': metadata.get('author', ''),
            'subject': metadata.get('subject', ''),
            'creator': metadata.get('creator', ''),
            'producer': metadata.get('producer', ''),
            'creation_date': metadata.get('creationDate', ''),
            'modification_date': metadata.get('modDate', ''),
            'page_count': doc.page_count
        }
