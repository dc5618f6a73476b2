import pytest

from docsentry.exceptions import (
    CancelledAnalysisError,
    DocSentryError,
    InvalidInputError,
    NetworkError,
    ParseError,
    ProviderError,
    StageTimeoutError,
    ValidationError,
)


class TestErrorKinds:
    @pytest.mark.parametrize(
        ("error", "kind", "retryable"),
        [
            (InvalidInputError("x"), "InvalidInputError", False),
            (ParseError("x"), "ParseError", False),
            (NetworkError("x"), "NetworkError", True),
            (StageTimeoutError("x"), "TimeoutError", True),
            (ValidationError("x"), "ValidationError", False),
            (CancelledAnalysisError("x"), "CancelledError", False),
        ],
    )
    def test_kind_and_retryable(self, error: DocSentryError, kind: str, retryable: bool) -> None:
        assert error.kind == kind
        assert error.retryable is retryable

    @pytest.mark.parametrize(
        ("status", "retryable"),
        [(429, True), (500, True), (503, True), (400, False), (401, False), (404, False), (None, False)],
    )
    def test_provider_error_retryable_by_status(self, status: int | None, retryable: bool) -> None:
        error = ProviderError("x", status_code=status)
        assert error.retryable is retryable
        assert error.status_code == status

    def test_timeout_is_network_error(self) -> None:
        assert isinstance(StageTimeoutError("x"), NetworkError)
