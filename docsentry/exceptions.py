from typing import ClassVar


class DocSentryError(Exception):
    """Base exception for every classified failure in the pipeline."""

    kind: ClassVar[str] = "DocSentryError"
    retryable: ClassVar[bool] = False


class InvalidInputError(DocSentryError):
    """Raised when an attachment or provider configuration is missing or malformed."""

    kind = "InvalidInputError"


class ParseError(DocSentryError):
    """Raised when a binary document is empty, corrupt or too complex to decode."""

    kind = "ParseError"


class NetworkError(DocSentryError):
    """Raised when a fetch or provider connection fails at the transport level."""

    kind = "NetworkError"
    retryable = True


class StageTimeoutError(NetworkError):
    """Raised when a fetch or provider call exceeds its time budget."""

    kind = "TimeoutError"


class ProviderError(DocSentryError):
    """Raised when the LLM endpoint answers with a non-2xx status."""

    kind = "ProviderError"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def retryable(self) -> bool:  # type: ignore[override]
        if self.status_code is None:
            return False
        return self.status_code == 429 or self.status_code >= 500


class ValidationError(DocSentryError):
    """Raised when a provider payload does not match the analysis result schema."""

    kind = "ValidationError"


class CancelledAnalysisError(DocSentryError):
    """Raised inside an analysis call that was aborted by its caller."""

    kind = "CancelledError"
