from abc import ABC, abstractmethod
from typing import ClassVar

from docsentry.documents.models import DocumentModel
from docsentry.exceptions import ParseError
from docsentry.logging.logger import Log

MAX_BUFFER_BYTES = 50 * 1024 * 1024
DEFAULT_STEP_LIMIT = 20_000


class StepBudget:
    """Counts decode steps (pages, paragraphs, tables, images) and stops runaway documents."""

    def __init__(self, limit: int = DEFAULT_STEP_LIMIT) -> None:
        self.limit = limit
        self.used = 0

    def charge(self, steps: int = 1) -> None:
        self.used += steps
        if self.used > self.limit:
            raise ParseError(
                f"Document too complex: exceeded {self.limit} decode steps"
            )


class BaseDocumentParser(ABC):
    """Contract for all binary document codecs.

    ``parse`` never raises: every failure, including an exhausted step budget,
    comes back as a failed DocumentModel whose error names the format.
    """

    FORMAT: ClassVar[str] = ""
    SIGNATURE: ClassVar[bytes] = b""

    def __init__(
        self,
        max_bytes: int = MAX_BUFFER_BYTES,
        step_limit: int = DEFAULT_STEP_LIMIT,
    ) -> None:
        self._max_bytes = max_bytes
        self._step_limit = step_limit

    def parse(self, buffer: bytes | bytearray | memoryview | None) -> DocumentModel:
        """Decode *buffer* into a DocumentModel.

        Args:
            buffer: Raw document content.

        Returns:
            A successful model, or a failed one with
            ``error="<FORMAT> parsing failed: <reason>"``.
        """
        if not buffer:
            return self._failed("Empty or invalid buffer")
        data = bytes(buffer)
        try:
            self._check_container(data)
            model = self._decode(data, StepBudget(self._step_limit))
        except ParseError as exc:
            return self._failed(str(exc))
        except Exception as exc:
            return self._failed(str(exc) or type(exc).__name__)
        Log.info(
            f"{self.FORMAT} parsed",
            pages=model.metadata.pages,
            words=model.metadata.word_count,
            sections=len(model.structure.sections),
        )
        return model

    def _check_container(self, data: bytes) -> None:
        if len(data) > self._max_bytes:
            raise ParseError(
                f"Input data too large: {len(data)} bytes (max {self._max_bytes})"
            )
        if len(data) < len(self.SIGNATURE) or not data.startswith(self.SIGNATURE):
            raise ParseError(f"Invalid {self.FORMAT} signature")

    def _failed(self, reason: str) -> DocumentModel:
        message = f"{self.FORMAT} parsing failed: {reason}"
        Log.error(message)
        return DocumentModel.failure(message, kind=ParseError.kind)

    @abstractmethod
    def _decode(self, data: bytes, budget: StepBudget) -> DocumentModel:
        """Extract text, metadata and structure from a buffer that passed the container check.

        Raises:
            ParseError: when the document is corrupt or exceeds the budget.
        """
