#!/usr/bin/env python3
"""
Example usage of the report pipeline and the edit operators
"""

import os
import sys
from pathlib import Path

# Add the repo root to Python path
sys.path.insert(0, str(Path(__file__).parent))

from src.docgenius.report_pipeline import ReportPipeline
from src.docgenius.models import ReportType
from src.docgenius import operators


def main():
    """Example of how to use the pipeline directly"""

    print("This example uses free local LLM (Llama 3 via Ollama)")
    print("Make sure Ollama is installed and running:")
    print("1. Install Ollama: https://ollama.ai/")
    print("2. Start Ollama: ollama serve")
    print("3. Pull model: ollama pull llama3")
    print()

    # Example PDF path (replace with your actual PDF)
    pdf_path = "example.pdf"

    if not os.path.exists(pdf_path):
        print(f"Please place a PDF file named '{pdf_path}' in the current directory")
        return

    print("Processing PDF...")
    pipeline = ReportPipeline()
    response = pipeline.process_pdf(Path(pdf_path).read_bytes(), pdf_path, ReportType.EXECUTIVE)

    if not response.success:
        print(f"✗ Error: {response.message}")
        return

    print(f"✓ Success! Processing took {response.processing_time:.2f} seconds")
    print(f"✓ Domain: {response.domain}")
    report_html = response.report_html

    # instant edits, no model call
    report_html = operators.change_all_colors(report_html, "blue").html
    if "<section" in report_html:
        print("✓ Recolored report")

    # deck compilation, no model call
    presentation = pipeline.convert_to_presentation(report_html, response.file_name)
    Path(response.file_name).write_text(report_html, encoding="utf-8")
    Path(presentation.file_name).write_text(presentation.presentation_html, encoding="utf-8")
    print(f"✓ Report saved to: {response.file_name}")
    print(f"✓ Presentation ({presentation.slide_count} slides) saved to: {presentation.file_name}")


if __name__ == "__main__":
    main()
