from docsentry.documents.base import StepBudget
from docsentry.documents.pymupdf_adapter import PyMuPdfParser


class TestPyMuPdfParser:
    def test_parse_returns_text(self, sample_pdf_bytes: bytes) -> None:
        model = PyMuPdfParser().parse(sample_pdf_bytes)
        assert model.success is True
        assert "Hello PDF World" in model.text
        assert model.metadata.word_count == 3

    def test_reads_metadata(self, sample_pdf_bytes: bytes) -> None:
        model = PyMuPdfParser().parse(sample_pdf_bytes)
        assert model.metadata.title == "Login Requirements"
        assert model.metadata.author == "Product Team"
        assert model.metadata.pages == 1

    def test_one_section_per_page(self, multi_page_pdf_bytes: bytes) -> None:
        model = PyMuPdfParser().parse(multi_page_pdf_bytes)
        sections = model.structure.sections
        assert [s.title for s in sections] == ["Page 1", "Page 2"]
        assert [s.level for s in sections] == [1, 2]
        assert "Page two content" in sections[1].content
        assert model.text.index("Page one content") < model.text.index("Page two content")

    def test_blank_page(self, empty_pdf_bytes: bytes) -> None:
        model = PyMuPdfParser().parse(empty_pdf_bytes)
        assert model.success is True
        assert model.text == ""
        assert model.metadata.word_count == 0

    def test_empty_buffer(self) -> None:
        model = PyMuPdfParser().parse(b"")
        assert model.success is False
        assert model.error == "PDF parsing failed: Empty or invalid buffer"
        assert model.metadata.word_count == 0

    def test_none_buffer(self) -> None:
        model = PyMuPdfParser().parse(None)
        assert model.success is False

    def test_missing_signature(self) -> None:
        model = PyMuPdfParser().parse(b"not a pdf")
        assert model.success is False
        assert model.error == "PDF parsing failed: Invalid PDF signature"
        assert model.error_kind == "ParseError"

    def test_corrupt_body(self) -> None:
        model = PyMuPdfParser().parse(b"%PDF-1.4\n garbage without objects")
        assert model.success is False
        assert model.error is not None
        assert model.error.startswith("PDF parsing failed:")

    def test_oversize_buffer(self, sample_pdf_bytes: bytes) -> None:
        model = PyMuPdfParser(max_bytes=10).parse(sample_pdf_bytes)
        assert model.success is False
        assert "too large" in (model.error or "")

    def test_step_budget_exhausted(self, multi_page_pdf_bytes: bytes) -> None:
        model = PyMuPdfParser(step_limit=1).parse(multi_page_pdf_bytes)
        assert model.success is False
        assert "Document too complex" in (model.error or "")


class TestStepBudget:
    def test_allows_up_to_limit(self) -> None:
        budget = StepBudget(limit=2)
        budget.charge()
        budget.charge()
        assert budget.used == 2
