"""Knowledge base backed by a local JSON file.

The file maps a scenario name to its guidance, given either as one string, a
list of strings, or a list of ``{"topic", "guidance"}`` objects::

    {
      "User login": ["Lock the account after repeated failures"],
      "File upload": [{"topic": "Upload", "guidance": "Validate the file type"}]
    }

Each scenario is indexed under its full lower-cased name and under every
keyword of that name.
"""

import json
from pathlib import Path
from typing import Any

from docsentry.exceptions import InvalidInputError
from docsentry.knowledge.base import KnowledgeBase, KnowledgeEntry
from docsentry.knowledge.keywords import extract_keywords
from docsentry.logging.logger import Log

MAX_KNOWLEDGE_BASE_BYTES = 10 * 1024 * 1024


class JsonKnowledgeBase(KnowledgeBase):
    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._index: dict[str, list[KnowledgeEntry]] = {}
        self._load()

    async def query(self, keyword: str) -> list[KnowledgeEntry]:
        return list(self._index.get(keyword.strip().lower(), ()))

    @property
    def size(self) -> int:
        return len(self._index)

    def _load(self) -> None:
        try:
            if self._path.stat().st_size > MAX_KNOWLEDGE_BASE_BYTES:
                raise InvalidInputError(
                    f"Knowledge base too large: {self._path} (maximum 10MB)"
                )
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise InvalidInputError(f"Failed to read knowledge base {self._path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise InvalidInputError(f"Knowledge base {self._path} is not valid JSON: {exc}") from exc

        if not isinstance(data, dict):
            raise InvalidInputError("Knowledge base must be a JSON object")

        for scenario, raw in data.items():
            entries = _build_entries(str(scenario), raw)
            if not entries:
                continue
            for key in {str(scenario).strip().lower(), *extract_keywords(str(scenario))}:
                bucket = self._index.setdefault(key, [])
                bucket.extend(e for e in entries if e not in bucket)

        Log.info("Knowledge base loaded", path=str(self._path), keys=len(self._index))


def _build_entries(scenario: str, raw: Any) -> list[KnowledgeEntry]:
    items = raw if isinstance(raw, list) else [raw]
    entries: list[KnowledgeEntry] = []
    for item in items:
        if isinstance(item, str) and item.strip():
            entries.append(KnowledgeEntry(topic=scenario, guidance=item.strip()))
        elif isinstance(item, dict) and isinstance(item.get("guidance"), str):
            topic = item.get("topic") if isinstance(item.get("topic"), str) else scenario
            entries.append(KnowledgeEntry(topic=topic, guidance=item["guidance"].strip()))
        else:
            Log.warning("Skipping malformed knowledge base entry", scenario=scenario)
    return entries
