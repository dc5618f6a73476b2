from docsentry.documents.docx_adapter import DocxParser


class TestDocxParser:
    def test_parse_returns_text_in_order(self, sample_docx_bytes: bytes) -> None:
        model = DocxParser().parse(sample_docx_bytes)
        assert model.success is True
        assert model.text.index("Intro paragraph") < model.text.index("Overview")
        assert model.text.index("Overview") < model.text.index("Card numbers are tokenized")

    def test_reads_core_properties(self, sample_docx_bytes: bytes) -> None:
        model = DocxParser().parse(sample_docx_bytes)
        assert model.metadata.title == "Payment Spec"
        assert model.metadata.author == "Jordan"

    def test_sections_follow_headings(self, sample_docx_bytes: bytes) -> None:
        sections = DocxParser().parse(sample_docx_bytes).structure.sections
        assert [(s.title, s.level) for s in sections] == [
            ("", 1),
            ("Overview", 1),
            ("Storage", 2),
        ]
        assert sections[0].content == "Intro paragraph"
        assert sections[1].content == "Users pay by card"

    def test_table_rows_rendered_into_text(self, sample_docx_bytes: bytes) -> None:
        model = DocxParser().parse(sample_docx_bytes)
        assert "Field | Type" in model.text
        assert "pan | token" in model.text
        assert len(model.structure.tables) == 1
        table = model.structure.tables[0]
        assert (table.position, table.rows, table.columns) == (0, 2, 2)

    def test_word_count_matches_text(self, sample_docx_bytes: bytes) -> None:
        model = DocxParser().parse(sample_docx_bytes)
        assert model.metadata.word_count == len(model.text.split())

    def test_page_breaks_and_images(self, paged_docx_bytes: bytes) -> None:
        model = DocxParser().parse(paged_docx_bytes)
        assert model.metadata.pages == 3
        assert len(model.structure.images) == 1
        assert model.structure.images[0].content_type == "image/png"

    def test_title_style_is_level_one(self, paged_docx_bytes: bytes) -> None:
        sections = DocxParser().parse(paged_docx_bytes).structure.sections
        assert sections[0].title == "Cover"
        assert sections[0].level == 1

    def test_empty_document(self, empty_docx_bytes: bytes) -> None:
        model = DocxParser().parse(empty_docx_bytes)
        assert model.success is True
        assert model.metadata.word_count == 0
        assert model.metadata.pages == 1

    def test_empty_buffer(self) -> None:
        model = DocxParser().parse(b"")
        assert model.success is False
        assert model.error == "DOCX parsing failed: Empty or invalid buffer"
        assert model.metadata.word_count == 0

    def test_missing_signature(self, sample_pdf_bytes: bytes) -> None:
        model = DocxParser().parse(sample_pdf_bytes)
        assert model.success is False
        assert model.error == "DOCX parsing failed: Invalid DOCX signature"

    def test_corrupt_archive(self) -> None:
        model = DocxParser().parse(b"PK\x03\x04 truncated archive")
        assert model.success is False
        assert (model.error or "").startswith("DOCX parsing failed:")
        assert model.error_kind == "ParseError"
