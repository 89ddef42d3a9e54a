"""
Shared fixtures for the docgenius tests.

Nothing here talks to Ollama: generation is replaced by FakeLLM, which hands
back scripted responses in order and records every prompt it was given.
"""

import fitz  # PyMuPDF
import pytest
from unittest.mock import MagicMock

from src.docgenius.markup import ReportDocument
from src.docgenius.models import ToolCall


SAMPLE_REPORT = """<!DOCTYPE html>
<html>
<head>
<title>Quarterly Finance Review</title>
<style>body { font-family: 'Inter', sans-serif; color: #333333; } .card { border-radius: 12px; }</style>
</head>
<body>
<main>
<section id="hero" style="background: #1e40af;">
  <h1>Quarterly Finance Review</h1>
  <p>Cash position and investment outlook</p>
</section>
<section id="summary" style="padding: 40px;">
  <h2 style="color: #1e40af;">Executive Summary</h2>
  <p style="color: #333;">Revenue grew across all regions.</p>
  <div class="card" style="background: #ffffff; border-left: 4px solid #3b82f6; padding: 20px;">
    <h3>Present Value</h3>
    <p>Discounted worth of future cash.</p>
  </div>
  <div class="card" style="background: #ffffff; border-left: 4px solid #10b981; padding: 20px;">
    <h3>Present Value Calculation</h3>
    <p>PV = FV / (1 + r)^n</p>
  </div>
</section>
<section id="metrics" style="padding: 40px;">
  <h2 style="color: #1e40af;">Key Metrics</h2>
  <div style="display: grid; grid-template-columns: repeat(2, 1fr); gap: 16px;">
    <div style="background: #f0f9ff; padding: 16px;">
      <div style="font-size: 2.5rem; color: #0ea5e9;">Cash Flow</div>
      <p>Operating cash up 12%</p>
    </div>
    <div style="background: #fef2f2; padding: 16px;">
      <div style="font-size: 2.5rem; color: #ef4444;">Risk</div>
      <p>Exposure reduced</p>
    </div>
  </div>
</section>
<section id="outlook" style="padding: 40px;">
  <h2 style="color: #1e40af;">Outlook</h2>
  <p>Investments continue next year.</p>
</section>
</main>
</body>
</html>
"""


# cards that open with an icon or badge, so the heading is never the first child
ICON_REPORT = """<!DOCTYPE html>
<html>
<body>
<main>
<section id="overview" style="padding: 40px;">
  <h2>Overview</h2>
  <div style="display: grid; grid-template-columns: repeat(2, 1fr); gap: 16px;">
    <div style="background: #f0f9ff; padding: 16px;">
      <span>💰</span>
      <h3>Cash Flow</h3>
      <p>Operating cash up 12%</p>
    </div>
    <div style="background: #fef2f2; padding: 16px;">
      <span>⚠️</span>
      <h3>Risk</h3>
      <p>Exposure reduced</p>
    </div>
  </div>
</section>
<section id="margins" style="padding: 40px;">
  <h2>Margins</h2>
  <div class="card" style="border-left: 4px solid #3b82f6;">
    <span class="badge">New</span>
    <h3>Net Margin</h3>
    <p>Net margin held at 18%</p>
  </div>
  <div class="card" style="border-left: 4px solid #10b981;">
    <span class="badge">Q1</span>
    <h3>Gross Margin</h3>
    <p>Gross margin widened</p>
  </div>
</section>
<section id="people" style="padding: 40px;">
  <h2>People</h2>
  <div class="card">
    <div class="card-body">
      <span>📊</span>
      <h5 class="card-title">Headcount</h5>
      <p>Headcount flat year on year</p>
    </div>
  </div>
</section>
</main>
</body>
</html>
"""


# plain report with lettered sections, used for ordering tests
def lettered_report(count: int) -> str:
    sections = "\n".join(
        f'<section id="s{letter}"><h2>Section {letter}</h2><p>Body {letter}</p></section>'
        for letter in "ABCDEFGH"[:count]
    )
    return f"<html><body><main>\n{sections}\n</main></body></html>"


def section_ids(html: str):
    return [section.get("id") for section in ReportDocument(html).sections()]


class FakeLLM:
    """Stand-in for OllamaLLMService with scripted answers.

    ``responses`` feed generate_text, ``tool_responses`` feed chat_with_tools;
    an exception instance in either list is raised instead of returned.
    """

    def __init__(self, responses=None, tool_responses=None):
        self.responses = list(responses or [])
        self.tool_responses = list(tool_responses or [])
        self.prompts = []
        self.messages = []

    def generate_text(self, prompt, max_tokens=2000, temperature=0.3, system=None):
        self.prompts.append(prompt)
        if not self.responses:
            raise AssertionError("generate_text called more often than scripted")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def chat_with_tools(self, messages, tools, temperature=0.1):
        self.messages.append(messages)
        if not self.tool_responses:
            raise AssertionError("chat_with_tools called more often than scripted")
        response = self.tool_responses.pop(0)
        if isinstance(response, Exception):
            raise response
        reply, calls = response
        return reply, [call if isinstance(call, ToolCall) else ToolCall(**call) for call in calls]


# one-page pdf with one line of text per argument
def make_pdf(*lines):
    doc = fitz.open()
    page = doc.new_page()
    for offset, line in enumerate(lines):
        page.insert_text((72, 72 + 20 * offset), line)
    data = doc.tobytes()
    doc.close()
    return data


def http_response(status_code=200, json_body=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    response.json.return_value = json_body if json_body is not None else {}
    return response


@pytest.fixture
def sample_report():
    return SAMPLE_REPORT


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def icon_report():
    return ICON_REPORT
