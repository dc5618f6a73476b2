from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class KnowledgeEntry:
    topic: str
    guidance: str


class KnowledgeBase(ABC):
    """Read-only keyword lookup used to enrich analysis prompts."""

    @abstractmethod
    async def query(self, keyword: str) -> list[KnowledgeEntry]:
        """Return the entries matching one keyword, empty when nothing matches."""
