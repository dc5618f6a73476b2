import io
import re
from dataclasses import dataclass, field

import docx
from docx.document import Document
from docx.oxml.ns import qn
from docx.table import Table
from docx.text.paragraph import Paragraph

from docsentry.documents.base import BaseDocumentParser, StepBudget
from docsentry.documents.models import DocumentModel, ImageRecord, Section, TableRecord
from docsentry.exceptions import ParseError

_HEADING_RE = re.compile(r"^heading\s*(\d+)$", re.IGNORECASE)


@dataclass
class _OpenSection:
    title: str
    level: int
    lines: list[str] = field(default_factory=list)

    def close(self) -> Section:
        return Section(title=self.title, content="\n".join(self.lines), level=self.level)


class DocxParser(BaseDocumentParser):
    """Extracts text, core properties and heading outline from DOCX using python-docx."""

    FORMAT = "DOCX"
    SIGNATURE = b"PK\x03\x04"

    def _decode(self, data: bytes, budget: StepBudget) -> DocumentModel:
        try:
            document = docx.Document(io.BytesIO(data))
        except Exception as exc:
            raise ParseError(f"not a Word document package: {exc}") from exc

        lines: list[str] = []
        sections: list[Section] = []
        tables: list[TableRecord] = []
        images: list[ImageRecord] = []
        current = _OpenSection(title="", level=1)
        page_breaks = 0

        for block in document.iter_inner_content():
            budget.charge()
            for content_type in self._image_types(document, block):
                budget.charge()
                images.append(ImageRecord(position=len(images), content_type=content_type))

            if isinstance(block, Table):
                table_lines = self._table_lines(block, budget)
                tables.append(
                    TableRecord(
                        position=len(tables),
                        rows=len(block.rows),
                        columns=len(block.columns),
                    )
                )
                lines.extend(table_lines)
                current.lines.extend(table_lines)
                continue

            page_breaks += self._page_breaks(block)
            text = block.text.strip()
            if not text:
                continue
            lines.append(text)
            level = self._heading_level(block)
            if level is None:
                current.lines.append(text)
                continue
            if current.title or current.lines:
                sections.append(current.close())
            current = _OpenSection(title=text, level=level)

        if current.title or current.lines:
            sections.append(current.close())

        props = document.core_properties
        return DocumentModel.parsed(
            "\n".join(lines),
            title=props.title,
            author=props.author,
            pages=page_breaks + 1,
            sections=sections,
            tables=tables,
            images=images,
        )

    @staticmethod
    def _heading_level(paragraph: Paragraph) -> int | None:
        style_name = getattr(paragraph.style, "name", "") or ""
        if style_name.lower() == "title":
            return 1
        match = _HEADING_RE.match(style_name.strip())
        if match is None:
            return None
        return max(1, int(match.group(1)))

    @staticmethod
    def _table_lines(table: Table, budget: StepBudget) -> list[str]:
        lines: list[str] = []
        for row in table.rows:
            budget.charge()
            cells = [cell.text.strip() for cell in row.cells]
            if any(cells):
                lines.append(" | ".join(cells))
        return lines

    @staticmethod
    def _page_breaks(paragraph: Paragraph) -> int:
        element = paragraph._p
        explicit = len(element.xpath(".//w:br[@w:type='page']"))
        rendered = len(element.xpath(".//w:lastRenderedPageBreak"))
        return max(explicit, rendered)

    @staticmethod
    def _image_types(document: Document, block: Paragraph | Table) -> list[str]:
        element = block._p if isinstance(block, Paragraph) else block._tbl
        related = document.part.related_parts
        types: list[str] = []
        for blip in element.xpath(".//a:blip"):
            part = related.get(blip.get(qn("r:embed")))
            types.append(getattr(part, "content_type", "") or "")
        return types
