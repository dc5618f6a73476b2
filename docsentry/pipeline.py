from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx

from docsentry.analysis.models import (
    AnalysisError,
    AnalysisRequest,
    AnalysisResult,
    ConnectionCheck,
    ProviderConfig,
)
from docsentry.analysis.orchestrator import AnalysisOrchestrator
from docsentry.config.settings import Settings
from docsentry.documents.factory import DocumentParserFactory
from docsentry.documents.fetcher import AttachmentFetcher
from docsentry.documents.models import AttachmentDescriptor, DocumentModel
from docsentry.documents.selector import ParseOptions, SourceSelector
from docsentry.exceptions import DocSentryError
from docsentry.knowledge.base import KnowledgeBase
from docsentry.knowledge.json_store import JsonKnowledgeBase
from docsentry.logging.logger import Log
from docsentry.platform.threat_platform import ThreatPlatformClient


@dataclass(frozen=True)
class PipelineOutcome:
    document: DocumentModel
    analysis: AnalysisResult | AnalysisError | None = None
    published: Any | None = None

    @property
    def success(self) -> bool:
        return isinstance(self.analysis, AnalysisResult)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": self.success,
            "document": {
                key: value
                for key, value in self.document.to_dict().items()
                if key not in ("text", "structure")
            },
        }
        if isinstance(self.analysis, AnalysisResult):
            payload["result"] = self.analysis.to_dict()
        elif isinstance(self.analysis, AnalysisError):
            payload["error"] = self.analysis.to_dict()
        else:
            payload["error"] = {"kind": self.document.error_kind, "message": self.document.error}
        if self.published is not None:
            payload["published"] = self.published
        return payload


class SecurityAnalysisPipeline:
    """One request end to end: parse -> analyze -> publish."""

    def __init__(
        self,
        selector: SourceSelector,
        orchestrator: AnalysisOrchestrator,
        publisher: ThreatPlatformClient,
        config: ProviderConfig,
    ) -> None:
        self._selector = selector
        self._orchestrator = orchestrator
        self._publisher = publisher
        self._config = config

    async def run(
        self,
        attachment: AttachmentDescriptor | Mapping[str, Any] | None = None,
        options: ParseOptions | Mapping[str, Any] | None = None,
        prompt: str = "",
    ) -> PipelineOutcome:
        document = await self._selector.parse_document(attachment, options)
        if not document.success:
            Log.error("Document unusable, skipping analysis", error=document.error)
            return PipelineOutcome(document=document)
        if document.warning:
            Log.warning(document.warning)

        request = AnalysisRequest(
            content=document,
            prompt=prompt,
            source_type=document.source.type if document.source else None,
        )
        analysis = await self._orchestrator.analyze(request, self._config)
        if not isinstance(analysis, AnalysisResult):
            return PipelineOutcome(document=document, analysis=analysis)

        published = await self._publisher.publish(analysis, self._config.threat_platform)
        return PipelineOutcome(document=document, analysis=analysis, published=published)

    async def test_connection(self) -> ConnectionCheck:
        return await self._orchestrator.test_connection(self._config)


def build_pipeline(
    settings: Settings,
    http_client: httpx.AsyncClient | None = None,
) -> SecurityAnalysisPipeline:
    """Build a pipeline with all adapters selected by settings."""
    selector = SourceSelector(
        fetcher=AttachmentFetcher(
            http_client,
            timeout_seconds=settings.fetch_timeout_seconds,
            max_bytes=settings.max_document_bytes,
        ),
        pdf_parser=DocumentParserFactory.create_pdf_parser(settings),
        docx_parser=DocumentParserFactory.create_docx_parser(settings),
    )
    orchestrator = AnalysisOrchestrator(
        http_client=http_client,
        knowledge_base=_load_knowledge_base(settings.knowledge_base_path),
    )
    return SecurityAnalysisPipeline(
        selector=selector,
        orchestrator=orchestrator,
        publisher=ThreatPlatformClient(http_client),
        config=settings.provider_config(),
    )


def _load_knowledge_base(path: str) -> KnowledgeBase | None:
    if not path.strip():
        return None
    try:
        return JsonKnowledgeBase(Path(path))
    except DocSentryError as exc:
        Log.warning("Knowledge base unavailable, prompts will not be enriched", error=str(exc))
        return None
