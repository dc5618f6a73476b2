"""Lifecycle of one analysis call.

PENDING -> SENDING -> (RETRYING <-> SENDING)* -> SUCCEEDED | FAILED | CANCELLED
"""

from dataclasses import dataclass, field

from docsentry.analysis.models import RequestState
from docsentry.exceptions import DocSentryError

_ALLOWED: dict[RequestState, frozenset[RequestState]] = {
    RequestState.PENDING: frozenset(
        {RequestState.SENDING, RequestState.FAILED, RequestState.CANCELLED}
    ),
    RequestState.SENDING: frozenset(
        {
            RequestState.RETRYING,
            RequestState.SUCCEEDED,
            RequestState.FAILED,
            RequestState.CANCELLED,
        }
    ),
    RequestState.RETRYING: frozenset(
        {RequestState.SENDING, RequestState.FAILED, RequestState.CANCELLED}
    ),
    RequestState.SUCCEEDED: frozenset(),
    RequestState.FAILED: frozenset(),
    RequestState.CANCELLED: frozenset(),
}


class IllegalTransitionError(RuntimeError):
    def __init__(self, current: RequestState, target: RequestState) -> None:
        super().__init__(f"Illegal transition {current.value} -> {target.value}")
        self.current = current
        self.target = target


@dataclass
class AnalysisCall:
    request_id: int
    max_attempts: int
    state: RequestState = RequestState.PENDING
    attempts: int = 0
    last_error: DocSentryError | None = None
    history: list[RequestState] = field(default_factory=lambda: [RequestState.PENDING])

    def transition(self, target: RequestState) -> None:
        """Move to ``target``; entering SENDING counts one attempt.

        Raises:
            IllegalTransitionError: if ``target`` is not reachable from the current state.
        """
        if target not in _ALLOWED[self.state]:
            raise IllegalTransitionError(self.state, target)
        if target is RequestState.SENDING:
            if self.attempts >= self.max_attempts:
                raise IllegalTransitionError(self.state, target)
            self.attempts += 1
        self.state = target
        self.history.append(target)

    def fail(self, error: DocSentryError) -> None:
        self.last_error = error
        self.transition(RequestState.FAILED)

    @property
    def can_retry(self) -> bool:
        return (
            self.last_error is not None
            and self.last_error.retryable
            and self.attempts < self.max_attempts
        )
