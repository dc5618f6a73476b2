import io

import pdfplumber

from docsentry.documents.base import BaseDocumentParser, StepBudget
from docsentry.documents.models import DocumentModel, ImageRecord, Section, TableRecord
from docsentry.exceptions import ParseError


class PdfPlumberParser(BaseDocumentParser):
    """Extracts text, metadata and page structure from PDF using pdfplumber."""

    FORMAT = "PDF"
    SIGNATURE = b"%PDF-"

    def _decode(self, data: bytes, budget: StepBudget) -> DocumentModel:
        pages_text: list[str] = []
        sections: list[Section] = []
        tables: list[TableRecord] = []
        images: list[ImageRecord] = []

        with pdfplumber.open(io.BytesIO(data)) as pdf:
            info = pdf.metadata or {}
            if not pdf.pages:
                raise ParseError("Document has no pages")
            for page in pdf.pages:
                budget.charge()
                page_no = page.page_number
                page_text = (page.extract_text() or "").strip()
                pages_text.append(page_text)
                sections.append(Section(title=f"Page {page_no}", content=page_text, level=page_no))

                for table in page.find_tables():
                    budget.charge()
                    rows = table.rows
                    tables.append(
                        TableRecord(
                            position=len(tables),
                            page=page_no,
                            rows=len(rows),
                            columns=max((len(row.cells) for row in rows), default=0),
                        )
                    )
                for _image in page.images:
                    budget.charge()
                    images.append(ImageRecord(position=len(images), page=page_no))
            page_count = len(pdf.pages)

        return DocumentModel.parsed(
            "\n\n".join(pages_text).strip(),
            title=_info_text(info.get("Title")),
            author=_info_text(info.get("Author")),
            pages=page_count,
            sections=sections,
            tables=tables,
            images=images,
        )


def _info_text(value: object) -> str | None:
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None
