"""Pytest configuration and fixtures."""

import io
import json
import os
from typing import Callable, Generator

# Configure the application before it is imported: in-memory database and
# no OpenAI key, so the real client is never constructed.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["APP_ENV"] = "test"
os.environ["OPENAI_API_KEY"] = ""
os.environ["EXTRACT_SAMPLE_FALLBACK"] = "false"

import pytest
from fastapi.testclient import TestClient
from pypdf import PdfWriter
from pypdf.generic import DecodedStreamObject, DictionaryObject, NameObject
from sqlalchemy.orm import Session

from app.invoice_api.database import Base, SessionLocal, engine
from app.invoice_api.main import app
from app.invoice_api.services.ai import NormalizationClient, get_normalization_client


VALID_REPLY = {
    "vendor": {
        "name": "ACME Supplies Ltd",
        "address": "1 Industrial Way, Springfield",
        "taxId": "GB123456789",
    },
    "invoice": {
        "number": "INV-2024-042",
        "date": "2024-03-15",
        "currency": "USD",
        "subtotal": 150.0,
        "taxPercent": 10,
        "total": 165.0,
        "lineItems": [
            {"description": "Widget", "unitPrice": 50.0, "quantity": 2, "total": 100.0},
            {"description": "Gadget", "unitPrice": 25.0, "quantity": 2, "total": 50.0},
        ],
    },
}


class FakeNormalizationClient(NormalizationClient):
    """Normalization client returning a canned model reply."""

    def __init__(self, reply: str | Callable[[str], str]):
        self.reply = reply
        self.calls: list[tuple[str, str]] = []

    async def generate(self, instructions: str, content: str) -> str:
        self.calls.append((instructions, content))
        if callable(self.reply):
            return self.reply(content)
        return self.reply


def make_text_pdf(pages: list[list[str]]) -> bytes:
    """Build a PDF whose pages contain the given lines of text."""
    writer = PdfWriter()
    for lines in pages:
        page = writer.add_blank_page(width=612, height=792)
        font = DictionaryObject(
            {
                NameObject("/Type"): NameObject("/Font"),
                NameObject("/Subtype"): NameObject("/Type1"),
                NameObject("/BaseFont"): NameObject("/Helvetica"),
            }
        )
        page[NameObject("/Resources")] = DictionaryObject(
            {NameObject("/Font"): DictionaryObject({NameObject("/F1"): font})}
        )

        ops = ["BT", "/F1 12 Tf", "14 TL", "72 720 Td"]
        for line in lines:
            escaped = line.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
            ops.append(f"({escaped}) Tj T*")
        ops.append("ET")

        content = DecodedStreamObject()
        content.set_data("\n".join(ops).encode("latin-1"))
        page.replace_contents(content)

    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def make_blank_pdf(widths: list[int]) -> bytes:
    """Build a PDF of blank pages; page widths identify page order."""
    writer = PdfWriter()
    for width in widths:
        writer.add_blank_page(width=width, height=792)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


@pytest.fixture(autouse=True)
def reset_database() -> Generator[None, None, None]:
    """Give every test an empty database."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fake_normalizer() -> FakeNormalizationClient:
    """Fake client replying with a valid invoice record."""
    return FakeNormalizationClient(json.dumps(VALID_REPLY))


@pytest.fixture
def client(fake_normalizer: FakeNormalizationClient) -> Generator[TestClient, None, None]:
    """Create a test client with the fake normalization client injected."""
    app.dependency_overrides[get_normalization_client] = lambda: fake_normalizer
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def invoice_pdf_bytes() -> bytes:
    """A two-page invoice PDF with visible vendor and invoice fields."""
    return make_text_pdf(
        [
            [
                "INVOICE",
                "ACME Supplies Ltd",
                "1 Industrial Way, Springfield",
                "Invoice Number: INV-2024-042",
                "Invoice Date: 2024-03-15",
            ],
            [
                "Widget 2 x 50.00 = 100.00",
                "Gadget 2 x 25.00 = 50.00",
                "Subtotal: 150.00",
                "Tax (10%): 15.00",
                "Total: 165.00",
            ],
        ]
    )


@pytest.fixture
def blank_pdf_bytes() -> bytes:
    """A PDF without any text (like a scanned, image-only invoice)."""
    return make_blank_pdf([612])


@pytest.fixture
def invalid_file_bytes() -> bytes:
    """Create invalid (non-PDF) file bytes for testing."""
    return b"This is not a PDF file"


@pytest.fixture
def invoice_payload() -> dict:
    """A valid InvoiceCreate body (camelCase)."""
    return {
        "fileId": "3f2b6a52-5c1e-4a8f-9a51-7d0f3c2e9b11",
        "fileName": "acme.pdf",
        "vendor": VALID_REPLY["vendor"],
        "invoice": VALID_REPLY["invoice"],
    }
