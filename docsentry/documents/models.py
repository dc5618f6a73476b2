"""Normalized document model shared by every parser and the webpage fallback."""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


def count_words(text: str) -> int:
    """Whitespace-delimited word count; empty tokens are discarded."""
    return len(text.split())


class SourceType(str, Enum):
    ATTACHMENT_PDF = "ATTACHMENT_PDF"
    ATTACHMENT_DOCX = "ATTACHMENT_DOCX"
    WEBPAGE = "WEBPAGE"


@dataclass(frozen=True)
class Section:
    """A heading (DOCX) or page (PDF) boundary and the text that follows it."""

    title: str
    content: str
    level: int = 1

    def __post_init__(self) -> None:
        if self.level < 1:
            raise ValueError(f"Section level must be >= 1, got {self.level}")


@dataclass(frozen=True)
class TableRecord:
    """Presence and position of a table; cell content is not captured."""

    position: int
    page: int | None = None
    rows: int = 0
    columns: int = 0


@dataclass(frozen=True)
class ImageRecord:
    """Presence and position of an embedded image."""

    position: int
    page: int | None = None
    content_type: str = ""


@dataclass(frozen=True)
class DocumentMetadata:
    word_count: int = 0
    title: str | None = None
    author: str | None = None
    pages: int | None = None

    def __post_init__(self) -> None:
        if self.word_count < 0:
            raise ValueError("word_count must be >= 0")
        if self.pages is not None and self.pages < 0:
            raise ValueError("pages must be >= 0")


@dataclass(frozen=True)
class DocumentStructure:
    sections: tuple[Section, ...] = ()
    tables: tuple[TableRecord, ...] = ()
    images: tuple[ImageRecord, ...] = ()

    def is_empty(self) -> bool:
        return not (self.sections or self.tables or self.images)


@dataclass(frozen=True)
class DocumentSource:
    type: SourceType
    url: str = ""
    name: str = ""


@dataclass(frozen=True)
class DocumentModel:
    """Output of every parser and of the webpage fallback path.

    Build instances through :meth:`parsed`, :meth:`webpage` or :meth:`failure`
    so the success/failure invariants hold.
    """

    text: str
    metadata: DocumentMetadata
    structure: DocumentStructure = field(default_factory=DocumentStructure)
    success: bool = True
    error: str | None = None
    error_kind: str | None = None
    warning: str | None = None
    source: DocumentSource | None = None

    def __post_init__(self) -> None:
        if self.success and self.error is not None:
            raise ValueError("A successful DocumentModel cannot carry an error")
        if not self.success:
            if not self.error:
                raise ValueError("A failed DocumentModel must carry an error")
            if self.text or self.metadata.word_count or not self.structure.is_empty():
                raise ValueError("A failed DocumentModel must be empty")
        if self.metadata.word_count != count_words(self.text):
            raise ValueError("metadata.word_count does not match text")

    @classmethod
    def parsed(
        cls,
        text: str,
        *,
        title: str | None = None,
        author: str | None = None,
        pages: int | None = None,
        sections: list[Section] | None = None,
        tables: list[TableRecord] | None = None,
        images: list[ImageRecord] | None = None,
        warning: str | None = None,
        source: DocumentSource | None = None,
    ) -> "DocumentModel":
        return cls(
            text=text,
            metadata=DocumentMetadata(
                word_count=count_words(text),
                title=title or None,
                author=author or None,
                pages=pages,
            ),
            structure=DocumentStructure(
                sections=tuple(sections or ()),
                tables=tuple(tables or ()),
                images=tuple(images or ()),
            ),
            warning=warning,
            source=source,
        )

    @classmethod
    def webpage(cls, text: str, warning: str) -> "DocumentModel":
        """Text-only model for raw page content used in place of an attachment."""
        sections = [Section(title="Webpage Content", content=text.strip())] if text.strip() else []
        return cls.parsed(
            text,
            title="Webpage Content",
            pages=1,
            sections=sections,
            warning=warning,
            source=DocumentSource(type=SourceType.WEBPAGE, name="Webpage Content"),
        )

    @classmethod
    def failure(cls, error: str, kind: str | None = None) -> "DocumentModel":
        return cls(
            text="",
            metadata=DocumentMetadata(),
            success=False,
            error=error,
            error_kind=kind,
        )

    def with_source(self, source: DocumentSource) -> "DocumentModel":
        return replace(self, source=source)

    def with_warning(self, warning: str) -> "DocumentModel":
        return replace(self, warning=warning)

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the camelCase field names consumed downstream."""
        metadata: dict[str, Any] = {"wordCount": self.metadata.word_count}
        if self.metadata.title is not None:
            metadata["title"] = self.metadata.title
        if self.metadata.author is not None:
            metadata["author"] = self.metadata.author
        if self.metadata.pages is not None:
            metadata["pages"] = self.metadata.pages

        payload: dict[str, Any] = {
            "text": self.text,
            "metadata": metadata,
            "structure": {
                "sections": [
                    {"title": s.title, "content": s.content, "level": s.level}
                    for s in self.structure.sections
                ],
                "tables": [
                    {"position": t.position, "page": t.page, "rows": t.rows, "columns": t.columns}
                    for t in self.structure.tables
                ],
                "images": [
                    {"position": i.position, "page": i.page, "contentType": i.content_type}
                    for i in self.structure.images
                ],
            },
            "success": self.success,
        }
        if self.error is not None:
            payload["error"] = self.error
        if self.error_kind is not None:
            payload["errorKind"] = self.error_kind
        if self.warning is not None:
            payload["warning"] = self.warning
        if self.source is not None:
            payload["source"] = {
                "type": self.source.type.value,
                "url": self.source.url,
                "name": self.source.name,
            }
        return payload


_EXTENSION_RE = re.compile(r"\.([a-z0-9]+)(?:[?#]|$)", re.IGNORECASE)
_EXTENSION_TYPES = {"pdf": "PDF", "docx": "DOCX", "doc": "DOC"}


@dataclass(frozen=True)
class AttachmentDescriptor:
    """Attachment located by the content-detection collaborator."""

    url: str = ""
    type: str = ""
    name: str = ""

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "AttachmentDescriptor":
        return cls(
            url=str(data.get("url") or ""),
            type=str(data.get("type") or ""),
            name=str(data.get("name") or ""),
        )

    def resolved_type(self) -> str:
        """Declared type upper-cased, or inferred from the url/name extension."""
        declared = self.type.strip().upper()
        if declared:
            return declared
        for candidate in (self.url, self.name):
            match = _EXTENSION_RE.search(candidate or "")
            if match:
                return _EXTENSION_TYPES.get(match.group(1).lower(), "")
        return ""
