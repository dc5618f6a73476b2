import base64
import io

import docx
import pytest
from docx.shared import Inches
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

# 1x1 transparent PNG
PNG_1X1 = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)


def _docx_bytes(document: "docx.document.Document") -> bytes:
    buf = io.BytesIO()
    document.save(buf)
    return buf.getvalue()


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF with known text and metadata."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.setTitle("Login Requirements")
    c.setAuthor("Product Team")
    c.drawString(72, 720, "Hello PDF World")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def multi_page_pdf_bytes() -> bytes:
    """Generate a two-page PDF with known text on each page."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Page one content")
    c.showPage()
    c.drawString(72, 720, "Page two content")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def empty_pdf_bytes() -> bytes:
    """Generate a valid PDF with no text content (blank page)."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def sample_docx_bytes() -> bytes:
    """DOCX with an intro paragraph, two headed sections and a 2x2 table."""
    document = docx.Document()
    document.core_properties.title = "Payment Spec"
    document.core_properties.author = "Jordan"
    document.add_paragraph("Intro paragraph")
    document.add_heading("Overview", level=1)
    document.add_paragraph("Users pay by card")
    document.add_heading("Storage", level=2)
    document.add_paragraph("Card numbers are tokenized")
    table = document.add_table(rows=2, cols=2)
    table.cell(0, 0).text = "Field"
    table.cell(0, 1).text = "Type"
    table.cell(1, 0).text = "pan"
    table.cell(1, 1).text = "token"
    return _docx_bytes(document)


@pytest.fixture()
def paged_docx_bytes() -> bytes:
    """DOCX spanning three pages through explicit page breaks, with one image."""
    document = docx.Document()
    document.add_heading("Cover", level=0)
    document.add_page_break()
    document.add_paragraph("Second page text")
    document.add_picture(io.BytesIO(PNG_1X1), width=Inches(0.1))
    document.add_page_break()
    document.add_paragraph("Third page text")
    return _docx_bytes(document)


@pytest.fixture()
def empty_docx_bytes() -> bytes:
    return _docx_bytes(docx.Document())
