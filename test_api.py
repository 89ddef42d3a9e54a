"""
Tests for the HTTP surface, with the pipeline's generation service faked.
"""

import io
import asyncio

import pytest
from fastapi.testclient import TestClient

from conftest import FakeLLM, make_pdf
from src.docgenius import api
from src.docgenius.errors import TransientUpstreamError
from src.docgenius.report_pipeline import ReportPipeline


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
def client(monkeypatch, llm):
    monkeypatch.setattr(api, "pipeline", ReportPipeline(llm=llm))
    return TestClient(api.app)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


class TestUpload:
    def test_pdf_text_is_returned(self, client):
        response = client.post("/upload-pdf", files={"pdf": ("q3.pdf", make_pdf("Revenue Overview Report"), "application/pdf")})

        assert response.status_code == 200
        assert response.json()["pages"] == 1
        assert "Revenue Overview Report" in response.json()["text"]

    def test_missing_file(self, client):
        response = client.post("/upload-pdf")
        assert response.status_code == 400

    def test_unreadable_file(self, client):
        response = client.post("/upload-pdf", files={"pdf": ("q3.pdf", b"plain text", "application/pdf")})
        assert response.status_code == 400
        assert response.json()["error_type"] == "invalid_argument"

    def test_oversized_file(self, client, monkeypatch):
        monkeypatch.setattr(api, "MAX_UPLOAD_MB", 0)
        response = client.post("/upload-pdf", files={"pdf": ("q3.pdf", make_pdf("Revenue"), "application/pdf")})

        assert response.status_code == 413
        assert "error" in response.json()


class StreamedUpload:
    """Upload with no known size that hands out its bytes on demand"""

    size = None

    def __init__(self, data):
        self.stream = io.BytesIO(data)
        self.reads = 0

    async def read(self, size=-1):
        self.reads += 1
        return self.stream.read(size)


class TestReadLimited:
    def test_stops_reading_past_the_limit(self, monkeypatch):
        monkeypatch.setattr(api, "UPLOAD_CHUNK_BYTES", 4)
        upload = StreamedUpload(b"x" * 100)

        assert asyncio.run(api.read_limited(upload, 10)) is None
        assert upload.reads == 3

    def test_small_upload_is_read_whole(self, monkeypatch):
        monkeypatch.setattr(api, "UPLOAD_CHUNK_BYTES", 4)
        assert asyncio.run(api.read_limited(StreamedUpload(b"0123456789"), 10)) == b"0123456789"

    def test_declared_size_is_checked_first(self):
        upload = StreamedUpload(b"x" * 100)
        upload.size = 100

        assert asyncio.run(api.read_limited(upload, 10)) is None
        assert upload.reads == 0


class TestPhases:
    def test_convert_to_presentation(self, client, sample_report):
        response = client.post("/convert-to-presentation", json={"report_html": sample_report, "file_name": "q3-report.html"})

        body = response.json()
        assert response.status_code == 200
        assert body["phase"] == 4
        assert body["slide_count"] == 5
        assert body["file_name"] == "q3-report-presentation.html"

    def test_empty_report_is_rejected_with_phase(self, client):
        response = client.post("/convert-to-presentation", json={"report_html": ""})

        assert response.status_code == 400
        assert response.json()["phase"] == 4
        assert response.json()["retry"] is False

    def test_overload_maps_to_503(self, client, llm, sample_report):
        llm.responses.append(TransientUpstreamError("Generation service still unavailable"))
        response = client.post("/enhance-report", json={"report_html": sample_report})

        assert response.status_code == 503
        assert response.json() == {
            "error": "Generation service still unavailable",
            "error_type": "transient_upstream",
            "retry": True,
            "phase": 5
        }

    def test_analyze(self, client, llm):
        llm.responses.append("DOMAIN: legal")
        response = client.post("/analyze-pdf", json={"pdf_content": "whereas the plaintiff"})

        assert response.status_code == 200
        assert response.json()["profile"]["type"] == "legal"


class TestEdit:
    def test_edit_report(self, client, llm, sample_report):
        llm.tool_responses.append(("", [{"name": "move_section", "arguments": {"section_index": 3, "new_position": 1}}]))
        response = client.post("/edit-report", json={"message": "move outlook up", "report_html": sample_report})

        body = response.json()
        assert response.status_code == 200
        assert body["success"] is True
        assert body["results"][0]["tool"] == "move_section"
        assert body["report_html"].index('id="outlook"') < body["report_html"].index('id="summary"')

    def test_empty_message_is_invalid(self, client, sample_report):
        response = client.post("/edit-report", json={"message": "", "report_html": sample_report})
        assert response.status_code == 422

    def test_chat(self, client, llm):
        llm.responses.append("Forty-two.")
        response = client.post("/chat", json={"message": "What is the answer?"})
        assert response.json() == {"response": "Forty-two."}
