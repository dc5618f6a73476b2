from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from docsentry.analysis.models import AnalysisRequest
from docsentry.analysis.prompt_loader import load_prompt
from docsentry.documents.models import DocumentModel
from docsentry.knowledge.base import KnowledgeEntry

_MAX_SECTION_TITLES = 30


@dataclass(frozen=True)
class Prompt:
    system: str
    user: str


class PromptBuilder:
    """Renders the analysis prompt for one request."""

    def __init__(self, *, template_path: Path | None = None) -> None:
        self._template = load_prompt("analysis_prompt.txt", template_path)
        self._system_prompt = load_prompt("system_prompt.txt").strip()
        self._default_instructions = load_prompt("default_instructions.txt").strip()

    def build(
        self,
        request: AnalysisRequest,
        *,
        structure_hints: bool,
        guidance: Sequence[KnowledgeEntry] = (),
    ) -> Prompt:
        user = self._template.format(
            instructions=request.prompt.strip() or self._default_instructions,
            structure=_structure_block(request.content) if structure_hints else "",
            guidance=_guidance_block(guidance),
            document_text=request.content.text,
        )
        return Prompt(system=self._system_prompt, user=user)

    @staticmethod
    def connection_test() -> Prompt:
        return Prompt(system="", user=load_prompt("connection_test_prompt.txt").strip())


def _structure_block(document: DocumentModel) -> str:
    meta = document.metadata
    structure = document.structure
    lines = ["", "Document structure:"]
    if meta.title:
        lines.append(f"- Title: {meta.title}")
    if meta.pages is not None:
        lines.append(f"- Pages: {meta.pages}")
    titles = [s.title for s in structure.sections if s.title][:_MAX_SECTION_TITLES]
    if titles:
        lines.append(f"- Sections: {'; '.join(titles)}")
    lines.append(f"- Tables: {len(structure.tables)}")
    lines.append(f"- Images: {len(structure.images)}")
    return "\n".join(lines) + "\n"


def _guidance_block(entries: Sequence[KnowledgeEntry]) -> str:
    if not entries:
        return ""
    lines = ["", "Security guidance from the knowledge base:"]
    lines.extend(f"- [{e.topic}] {e.guidance}" for e in entries)
    return "\n".join(lines) + "\n"
