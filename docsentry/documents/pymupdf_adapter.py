import pymupdf

from docsentry.documents.base import BaseDocumentParser, StepBudget
from docsentry.documents.models import DocumentModel, ImageRecord, Section, TableRecord
from docsentry.exceptions import ParseError
from docsentry.logging.logger import Log


class PyMuPdfParser(BaseDocumentParser):
    """Extracts text, metadata and page structure from PDF using PyMuPDF."""

    FORMAT = "PDF"
    SIGNATURE = b"%PDF-"

    def _decode(self, data: bytes, budget: StepBudget) -> DocumentModel:
        try:
            doc = pymupdf.open(stream=data, filetype="pdf")  # type: ignore[no-untyped-call]
        except Exception as exc:
            raise ParseError(f"pymupdf could not open document: {exc}") from exc

        with doc:
            if doc.needs_pass:
                raise ParseError("Document is password-protected")
            if doc.page_count == 0:
                raise ParseError("Document has no pages")
            metadata = doc.metadata or {}
            pages_text: list[str] = []
            sections: list[Section] = []
            tables: list[TableRecord] = []
            images: list[ImageRecord] = []

            for page in doc:
                budget.charge()
                page_no = page.number + 1
                page_text = (page.get_text() or "").strip()
                pages_text.append(page_text)
                sections.append(Section(title=f"Page {page_no}", content=page_text, level=page_no))

                for table in self._find_tables(page):
                    budget.charge()
                    tables.append(
                        TableRecord(
                            position=len(tables),
                            page=page_no,
                            rows=table.row_count,
                            columns=table.col_count,
                        )
                    )
                for _image in page.get_images(full=True):
                    budget.charge()
                    images.append(ImageRecord(position=len(images), page=page_no))

            page_count = doc.page_count

        return DocumentModel.parsed(
            "\n\n".join(pages_text).strip(),
            title=metadata.get("title"),
            author=metadata.get("author"),
            pages=page_count,
            sections=sections,
            tables=tables,
            images=images,
        )

    @staticmethod
    def _find_tables(page: "pymupdf.Page") -> list:  # type: ignore[type-arg]
        try:
            return list(page.find_tables().tables)
        except Exception as exc:
            Log.warning(f"Table detection skipped on page {page.number + 1}: {exc}")
            return []
