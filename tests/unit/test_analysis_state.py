import pytest

from docsentry.analysis.models import RequestState
from docsentry.analysis.state import AnalysisCall, IllegalTransitionError
from docsentry.exceptions import ProviderError, ValidationError


class TestAnalysisCall:
    def test_happy_path(self) -> None:
        call = AnalysisCall(request_id=1, max_attempts=3)
        call.transition(RequestState.SENDING)
        call.transition(RequestState.SUCCEEDED)
        assert call.attempts == 1
        assert call.history == [
            RequestState.PENDING,
            RequestState.SENDING,
            RequestState.SUCCEEDED,
        ]

    def test_retry_cycle_counts_attempts(self) -> None:
        call = AnalysisCall(request_id=1, max_attempts=3)
        call.transition(RequestState.SENDING)
        call.transition(RequestState.RETRYING)
        call.transition(RequestState.SENDING)
        assert call.attempts == 2
        assert call.state is RequestState.SENDING

    def test_cannot_exceed_max_attempts(self) -> None:
        call = AnalysisCall(request_id=1, max_attempts=1)
        call.transition(RequestState.SENDING)
        call.transition(RequestState.RETRYING)
        with pytest.raises(IllegalTransitionError):
            call.transition(RequestState.SENDING)

    @pytest.mark.parametrize(
        "terminal", [RequestState.SUCCEEDED, RequestState.FAILED, RequestState.CANCELLED]
    )
    def test_terminal_states_are_final(self, terminal: RequestState) -> None:
        call = AnalysisCall(request_id=1, max_attempts=3)
        call.transition(RequestState.SENDING)
        call.transition(terminal)
        assert call.state.is_terminal
        with pytest.raises(IllegalTransitionError):
            call.transition(RequestState.SENDING)

    def test_pending_cannot_succeed(self) -> None:
        with pytest.raises(IllegalTransitionError, match="PENDING -> SUCCEEDED"):
            AnalysisCall(request_id=1, max_attempts=3).transition(RequestState.SUCCEEDED)

    def test_fail_records_error(self) -> None:
        call = AnalysisCall(request_id=1, max_attempts=3)
        error = ValidationError("bad")
        call.fail(error)
        assert call.state is RequestState.FAILED
        assert call.last_error is error


class TestCanRetry:
    def test_retryable_error_with_attempts_left(self) -> None:
        call = AnalysisCall(request_id=1, max_attempts=3)
        call.transition(RequestState.SENDING)
        call.last_error = ProviderError("busy", status_code=503)
        assert call.can_retry is True

    def test_terminal_provider_error(self) -> None:
        call = AnalysisCall(request_id=1, max_attempts=3)
        call.transition(RequestState.SENDING)
        call.last_error = ProviderError("forbidden", status_code=403)
        assert call.can_retry is False

    def test_rate_limit_is_retryable(self) -> None:
        assert ProviderError("slow down", status_code=429).retryable is True

    def test_validation_error_is_never_retried(self) -> None:
        call = AnalysisCall(request_id=1, max_attempts=3)
        call.transition(RequestState.SENDING)
        call.last_error = ValidationError("bad json")
        assert call.can_retry is False
