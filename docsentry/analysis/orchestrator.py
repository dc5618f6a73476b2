"""Drives one security analysis against the configured LLM provider."""

import asyncio
import itertools
from collections.abc import Awaitable, Callable

import httpx

from docsentry.analysis.models import (
    AnalysisError,
    AnalysisRequest,
    AnalysisResult,
    ConnectionCheck,
    ProviderConfig,
    RequestState,
)
from docsentry.analysis.normalizer import ResultNormalizer
from docsentry.analysis.prompt_builder import Prompt, PromptBuilder
from docsentry.analysis.provider_base import BaseProviderHandler
from docsentry.analysis.provider_factory import ProviderFactory
from docsentry.analysis.state import AnalysisCall
from docsentry.documents.models import DocumentModel
from docsentry.exceptions import (
    CancelledAnalysisError,
    DocSentryError,
    NetworkError,
    ProviderError,
    StageTimeoutError,
    ValidationError,
)
from docsentry.knowledge.base import KnowledgeBase, KnowledgeEntry
from docsentry.knowledge.keywords import extract_keywords
from docsentry.logging.logger import Log

MAX_KNOWLEDGE_KEYWORDS = 20
MAX_GUIDANCE_ENTRIES = 10

Outcome = AnalysisResult | AnalysisError


class AnalysisHandle:
    """A submitted analysis; await ``result()`` or abort with ``cancel()``."""

    def __init__(
        self,
        call: AnalysisCall,
        slot: str | None,
        task: "asyncio.Task[Outcome]",
        on_cancelled: Callable[[AnalysisCall, str | None], AnalysisError],
    ) -> None:
        self.call = call
        self.slot = slot
        self._task = task
        self._on_cancelled = on_cancelled
        self._cancelled_outcome: AnalysisError | None = None
        task.add_done_callback(self._settle)

    @property
    def request_id(self) -> int:
        return self.call.request_id

    @property
    def state(self) -> RequestState:
        return self.call.state

    def cancel(self) -> bool:
        return self._task.cancel()

    def done(self) -> bool:
        return self._task.done()

    async def result(self) -> Outcome:
        try:
            return await self._task
        except asyncio.CancelledError:
            if not self._task.cancelled():
                raise
            self._settle(self._task)
            assert self._cancelled_outcome is not None
            return self._cancelled_outcome

    def _settle(self, task: "asyncio.Task[Outcome]") -> None:
        # A task cancelled before its body ran never reaches _run's handler.
        if task.cancelled() and self._cancelled_outcome is None:
            self._cancelled_outcome = self._on_cancelled(self.call, self.slot)


class AnalysisOrchestrator:
    """Builds the prompt, calls the provider with retries and normalizes the reply.

    Each slot tracks its latest request id; submitting to a busy slot cancels
    the previous call and only the latest call's outcome is published.
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient | None = None,
        normalizer: ResultNormalizer | None = None,
        prompt_builder: PromptBuilder | None = None,
        knowledge_base: KnowledgeBase | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._client = http_client
        self._normalizer = normalizer or ResultNormalizer()
        self._prompt_builder = prompt_builder or PromptBuilder()
        self._knowledge_base = knowledge_base
        self._sleep = sleep
        self._ids = itertools.count(1)
        self._latest: dict[str, int] = {}
        self._inflight: dict[str, AnalysisHandle] = {}
        self._results: dict[str, Outcome] = {}

    def submit(
        self,
        request: AnalysisRequest,
        config: ProviderConfig,
        slot: str | None = "default",
    ) -> AnalysisHandle:
        """Schedule an analysis on the running loop.

        A previous in-flight call on the same slot is cancelled. ``slot=None``
        runs the call without slot bookkeeping.
        """
        call = AnalysisCall(request_id=next(self._ids), max_attempts=config.max_attempts)
        if slot is not None:
            previous = self._inflight.get(slot)
            if previous is not None and not previous.done():
                Log.info(
                    "Cancelling superseded analysis",
                    slot=slot,
                    request_id=previous.request_id,
                )
                previous.cancel()
            self._latest[slot] = call.request_id
        task = asyncio.ensure_future(self._run(call, request, config, slot))
        handle = AnalysisHandle(call, slot, task, self._cancelled)
        if slot is not None:
            self._inflight[slot] = handle
        return handle

    async def analyze(
        self,
        request: AnalysisRequest,
        config: ProviderConfig,
        slot: str | None = None,
    ) -> Outcome:
        return await self.submit(request, config, slot=slot).result()

    def latest_result(self, slot: str = "default") -> Outcome | None:
        return self._results.get(slot)

    async def test_connection(self, config: ProviderConfig) -> ConnectionCheck:
        """Send one short prompt without retries and report what came back."""
        handler = ProviderFactory.create(config.provider)
        try:
            handler.check_credentials(config)
            reply = await self._send_once(handler, config, PromptBuilder.connection_test())
        except DocSentryError as exc:
            Log.warning("Connection test failed", provider=config.provider.value, error=str(exc))
            return ConnectionCheck(success=False, detail=f"{exc.kind}: {exc}")
        Log.info("Connection test succeeded", provider=config.provider.value)
        return ConnectionCheck(success=True, detail=reply.strip())

    async def _run(
        self,
        call: AnalysisCall,
        request: AnalysisRequest,
        config: ProviderConfig,
        slot: str | None,
    ) -> Outcome:
        handler = ProviderFactory.create(config.provider)
        try:
            handler.check_credentials(config)
            prompt = self._prompt_builder.build(
                request,
                structure_hints=handler.SUPPORTS_STRUCTURE_HINTS,
                guidance=await self._gather_guidance(request.content),
            )
            Log.debug(f"Analysis prompt:\n{prompt.user}")
            raw = await self._send_with_retry(call, handler, config, prompt)
            result = self._normalizer.normalize(raw)
        except asyncio.CancelledError:
            return self._cancelled(call, slot)
        except DocSentryError as exc:
            call.fail(exc)
            Log.error(
                "Analysis failed",
                request_id=call.request_id,
                kind=exc.kind,
                attempts=call.attempts,
                error=str(exc),
            )
            return self._publish(slot, call, self._error(call, exc))

        call.transition(RequestState.SUCCEEDED)
        Log.info("Analysis complete", request_id=call.request_id, attempts=call.attempts)
        return self._publish(slot, call, result)

    async def _send_with_retry(
        self,
        call: AnalysisCall,
        handler: BaseProviderHandler,
        config: ProviderConfig,
        prompt: Prompt,
    ) -> str:
        while True:
            call.transition(RequestState.SENDING)
            try:
                return await self._send_once(handler, config, prompt)
            except DocSentryError as exc:
                call.last_error = exc
                if not call.can_retry:
                    raise
                delay = min(
                    config.backoff_seconds * 2 ** (call.attempts - 1),
                    config.max_backoff_seconds,
                )
                Log.warning(
                    "Provider call failed, retrying",
                    request_id=call.request_id,
                    attempt=call.attempts,
                    delay=delay,
                    error=str(exc),
                )
                call.transition(RequestState.RETRYING)
                await self._sleep(delay)

    async def _send_once(
        self,
        handler: BaseProviderHandler,
        config: ProviderConfig,
        prompt: Prompt,
    ) -> str:
        if self._client is not None:
            return await self._post(self._client, handler, config, prompt)
        async with httpx.AsyncClient() as client:
            return await self._post(client, handler, config, prompt)

    @staticmethod
    async def _post(
        client: httpx.AsyncClient,
        handler: BaseProviderHandler,
        config: ProviderConfig,
        prompt: Prompt,
    ) -> str:
        built = handler.build_request(config, system_prompt=prompt.system, user_prompt=prompt.user)
        try:
            response = await client.post(
                built.url,
                headers=built.headers,
                json=built.body,
                timeout=config.timeout_seconds,
            )
        except httpx.TimeoutException as exc:
            raise StageTimeoutError(
                f"Provider call timed out after {config.timeout_seconds}s"
            ) from exc
        except (httpx.RequestError, httpx.InvalidURL) as exc:
            raise NetworkError(f"Unable to reach provider at {built.url}: {exc}") from exc

        if not response.is_success:
            raise ProviderError(
                f"HTTP {response.status_code}: {handler.error_message(response)}",
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise ValidationError("Provider response is not valid JSON") from exc

        text = handler.parse_response(payload)
        Log.debug(f"Provider raw response:\n{text}")
        return text

    async def _gather_guidance(self, document: DocumentModel) -> list[KnowledgeEntry]:
        if self._knowledge_base is None or not document.text:
            return []
        entries: list[KnowledgeEntry] = []
        try:
            for keyword in extract_keywords(document.text, limit=MAX_KNOWLEDGE_KEYWORDS):
                for entry in await self._knowledge_base.query(keyword):
                    if entry not in entries:
                        entries.append(entry)
                    if len(entries) >= MAX_GUIDANCE_ENTRIES:
                        return entries
        except Exception as exc:
            Log.warning("Knowledge base lookup failed, continuing without guidance", error=str(exc))
            return []
        return entries

    def _cancelled(self, call: AnalysisCall, slot: str | None) -> AnalysisError:
        if not call.state.is_terminal:
            call.last_error = CancelledAnalysisError("Analysis cancelled")
            call.transition(RequestState.CANCELLED)
        Log.info("Analysis cancelled", request_id=call.request_id, attempts=call.attempts)
        error = AnalysisError(
            kind=CancelledAnalysisError.kind,
            message="Analysis cancelled",
            state=call.state,
            request_id=call.request_id,
            attempts=call.attempts,
        )
        return self._publish(slot, call, error)

    @staticmethod
    def _error(call: AnalysisCall, exc: DocSentryError) -> AnalysisError:
        return AnalysisError(
            kind=exc.kind,
            message=str(exc),
            state=call.state,
            request_id=call.request_id,
            attempts=call.attempts,
            status_code=getattr(exc, "status_code", None),
        )

    def _publish(self, slot: str | None, call: AnalysisCall, outcome: Outcome) -> Outcome:
        if slot is None:
            return outcome
        if self._latest.get(slot) != call.request_id:
            Log.debug("Discarding stale analysis outcome", slot=slot, request_id=call.request_id)
            return outcome
        self._results[slot] = outcome
        current = self._inflight.get(slot)
        if current is not None and current.request_id == call.request_id:
            del self._inflight[slot]
        return outcome
