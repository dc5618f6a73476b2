"""Decides what to parse for a request: an attachment, raw page text, or nothing."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from docsentry.documents.base import BaseDocumentParser
from docsentry.documents.docx_adapter import DocxParser
from docsentry.documents.fetcher import AttachmentFetcher
from docsentry.documents.models import (
    AttachmentDescriptor,
    DocumentModel,
    DocumentSource,
    SourceType,
)
from docsentry.documents.pymupdf_adapter import PyMuPdfParser
from docsentry.exceptions import InvalidInputError, NetworkError
from docsentry.logging.logger import Log

NO_ATTACHMENT_WARNING = "Using webpage content as no attachments were found"

_SOURCE_TYPES = {
    "PDF": SourceType.ATTACHMENT_PDF,
    "DOCX": SourceType.ATTACHMENT_DOCX,
    "DOC": SourceType.ATTACHMENT_DOCX,
}


@dataclass(frozen=True)
class ParseOptions:
    fallback_content: str | None = None
    enable_webpage_fallback: bool = False
    timeout_seconds: float | None = None

    @classmethod
    def coerce(cls, options: "ParseOptions | Mapping[str, Any] | None") -> "ParseOptions":
        if options is None:
            return cls()
        if isinstance(options, ParseOptions):
            return options
        fallback = options.get("fallback_content", options.get("fallbackContent"))
        return cls(
            fallback_content=fallback if isinstance(fallback, str) else None,
            enable_webpage_fallback=bool(
                options.get("enable_webpage_fallback", options.get("enableWebpageFallback", False))
            ),
            timeout_seconds=options.get("timeout_seconds"),
        )


def detect_source_type(data: bytes) -> SourceType | None:
    """Identify the container from its leading signature bytes."""
    if data.startswith(PyMuPdfParser.SIGNATURE):
        return SourceType.ATTACHMENT_PDF
    if data.startswith(DocxParser.SIGNATURE):
        return SourceType.ATTACHMENT_DOCX
    return None


class SourceSelector:
    """Turns an attachment descriptor and/or page text into a DocumentModel.

    Never retries; every outcome, including network and decode failures, is
    returned as a DocumentModel.
    """

    def __init__(
        self,
        fetcher: AttachmentFetcher,
        pdf_parser: BaseDocumentParser,
        docx_parser: BaseDocumentParser,
    ) -> None:
        self._fetcher = fetcher
        self._parsers: dict[SourceType, BaseDocumentParser] = {
            SourceType.ATTACHMENT_PDF: pdf_parser,
            SourceType.ATTACHMENT_DOCX: docx_parser,
        }

    async def parse_document(
        self,
        attachment: AttachmentDescriptor | Mapping[str, Any] | None = None,
        options: ParseOptions | Mapping[str, Any] | None = None,
    ) -> DocumentModel:
        opts = ParseOptions.coerce(options)

        if attachment is None:
            if opts.fallback_content:
                Log.info("No attachment, using webpage content")
                return DocumentModel.webpage(opts.fallback_content, NO_ATTACHMENT_WARNING)
            return self._rejected("Invalid attachment: Attachment object is required")

        if isinstance(attachment, AttachmentDescriptor):
            descriptor = attachment
        elif isinstance(attachment, Mapping):
            descriptor = AttachmentDescriptor.from_mapping(attachment)
        else:
            return self._rejected("Invalid attachment: Attachment object is required")
        if not descriptor.url.strip():
            return self._rejected("Invalid attachment: URL is required")
        doc_type = descriptor.resolved_type()
        if not doc_type:
            return self._rejected("Invalid attachment: File type could not be determined")
        source_type = _SOURCE_TYPES.get(doc_type)
        if source_type is None:
            return self._rejected(f"Unsupported document type: {doc_type}")

        try:
            data = await self._fetcher.fetch(descriptor.url, opts.timeout_seconds)
        except NetworkError as exc:
            failed = DocumentModel.failure(f"Network error: {exc}", kind=exc.kind)
            return self._fall_back(failed, opts)

        model = self._parsers[source_type].parse(data)
        if not model.success:
            model, source_type = self._detect_and_reparse(model, data, source_type)
        if not model.success:
            return self._fall_back(model, opts)
        return model.with_source(
            DocumentSource(type=source_type, url=descriptor.url, name=descriptor.name)
        )

    def _detect_and_reparse(
        self,
        failed: DocumentModel,
        data: bytes,
        declared: SourceType,
    ) -> tuple[DocumentModel, SourceType]:
        detected = detect_source_type(data)
        if detected is None or detected == declared:
            return failed, declared
        Log.warning(f"Declared {declared.value} but content looks like {detected.value}, re-parsing")
        model = self._parsers[detected].parse(data)
        if not model.success:
            return failed, declared
        warning = f"Primary parsing failed ({failed.error}), used content type detection fallback"
        return model.with_warning(warning), detected

    @staticmethod
    def _fall_back(failed: DocumentModel, opts: ParseOptions) -> DocumentModel:
        if opts.enable_webpage_fallback and opts.fallback_content:
            Log.warning(f"Attachment unusable, using webpage content: {failed.error}")
            return DocumentModel.webpage(
                opts.fallback_content,
                f"Document parsing failed: {failed.error}. Using webpage content as fallback",
            )
        return failed

    @staticmethod
    def _rejected(message: str) -> DocumentModel:
        Log.warning(message)
        return DocumentModel.failure(message, kind=InvalidInputError.kind)
