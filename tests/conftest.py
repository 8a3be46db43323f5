"""
Pytest configuration and fixtures for Print Shop Backend tests.
"""

import os
import random
import shutil
import tempfile
from io import BytesIO

import pypdfium2 as pdfium
import pytest
from fastapi.testclient import TestClient

# Point the module-level app at throwaway directories before importing it
_SESSION_ROOT = tempfile.mkdtemp(prefix="print_shop_test_")
os.environ["DATA_DIR"] = os.path.join(_SESSION_ROOT, "data")
os.environ["UPLOAD_DIR"] = os.path.join(_SESSION_ROOT, "uploads")

from print_shop_backend.configuration import make_runtime_config  # noqa: E402
from print_shop_backend.main import create_app  # noqa: E402


def pytest_sessionfinish(session, exitstatus):
    shutil.rmtree(_SESSION_ROOT, ignore_errors=True)


@pytest.fixture
def storage_dirs(tmp_path):
    """Per-test data and upload directories."""
    return {"data": tmp_path / "data", "uploads": tmp_path / "uploads"}


@pytest.fixture
def make_config(storage_dirs):
    """Build a runtime config rooted in the per-test directories."""

    def _make(**sections):
        overrides = {
            "storage": {
                "data_dir": str(storage_dirs["data"]),
                "upload_dir": str(storage_dirs["uploads"]),
            }
        }
        for section, values in sections.items():
            overrides.setdefault(section, {}).update(values)
        return make_runtime_config(overrides)

    return _make


@pytest.fixture
def app(make_config):
    return create_app(make_config())


@pytest.fixture
def client(app):
    """Create a test client for the FastAPI app."""
    return TestClient(app)


@pytest.fixture
def seeded_rng():
    return random.Random(1234)


def build_pdf(pages: int) -> bytes:
    """Render a blank PDF with the given number of pages."""
    pdf = pdfium.PdfDocument.new()
    try:
        for _ in range(pages):
            pdf.new_page(612, 792)
        buffer = BytesIO()
        pdf.save(buffer)
        return buffer.getvalue()
    finally:
        pdf.close()


@pytest.fixture
def pdf_factory():
    return build_pdf


@pytest.fixture
def sample_order():
    return {
        "customerName": "Ada Lovelace",
        "email": "ada@example.com",
        "phone": "555-0100",
        "pageRange": "1-4",
        "copies": 2,
        "colorMode": "bw",
        "files": ["/uploads/1700000000000-1-notes.pdf"],
    }
