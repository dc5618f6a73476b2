from docsentry.config.settings import Settings
from docsentry.documents.base import BaseDocumentParser
from docsentry.documents.docx_adapter import DocxParser
from docsentry.documents.models import DocumentModel
from docsentry.documents.pdfplumber_adapter import PdfPlumberParser
from docsentry.documents.pymupdf_adapter import PyMuPdfParser


class DocumentParserFactory:
    """Creates the PDF and DOCX codecs selected by settings."""

    PDF_ENGINES: dict[str, type[BaseDocumentParser]] = {
        "pdfplumber": PdfPlumberParser,
        "pymupdf": PyMuPdfParser,
    }

    @classmethod
    def create_pdf_parser(cls, settings: Settings) -> BaseDocumentParser:
        engine = settings.pdf_engine.lower()
        parser_cls = cls.PDF_ENGINES.get(engine)
        if parser_cls is None:
            raise ValueError(
                f"Unknown PDF engine '{engine}'. Choose from: {list(cls.PDF_ENGINES)}"
            )
        return parser_cls(max_bytes=settings.max_document_bytes)

    @classmethod
    def create_docx_parser(cls, settings: Settings) -> BaseDocumentParser:
        return DocxParser(max_bytes=settings.max_document_bytes)


_DEFAULT_PDF_PARSER = PyMuPdfParser()
_DEFAULT_DOCX_PARSER = DocxParser()


def parse_pdf(buffer: bytes | bytearray | memoryview | None) -> DocumentModel:
    """Decode a PDF buffer with the default engine."""
    return _DEFAULT_PDF_PARSER.parse(buffer)


def parse_docx(buffer: bytes | bytearray | memoryview | None) -> DocumentModel:
    """Decode a DOCX buffer."""
    return _DEFAULT_DOCX_PARSER.parse(buffer)
