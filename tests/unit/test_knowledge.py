import json
from pathlib import Path

import pytest

from docsentry.exceptions import InvalidInputError
from docsentry.knowledge.base import KnowledgeEntry
from docsentry.knowledge.json_store import JsonKnowledgeBase
from docsentry.knowledge.keywords import extract_keywords


class TestExtractKeywords:
    def test_filters_short_and_stop_words(self) -> None:
        assert extract_keywords("The user MUST log in to the portal") == ["user", "log", "portal"]

    def test_splits_on_punctuation(self) -> None:
        assert extract_keywords("file-upload (avatar); size_limit!") == [
            "file",
            "upload",
            "avatar",
            "size",
            "limit",
        ]

    def test_deduplicates_preserving_order(self) -> None:
        assert extract_keywords("token token TOKEN refresh") == ["token", "refresh"]

    def test_limit(self) -> None:
        assert extract_keywords("alpha beta gamma delta", limit=2) == ["alpha", "beta"]

    def test_empty(self) -> None:
        assert extract_keywords("") == []


def _write(tmp_path: Path, data: object) -> Path:
    path = tmp_path / "kb.json"
    path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
    return path


class TestJsonKnowledgeBase:
    @pytest.mark.asyncio
    async def test_query_by_scenario_keyword(self, tmp_path: Path) -> None:
        kb = JsonKnowledgeBase(_write(tmp_path, {"User login": ["Lock the account after failures"]}))
        assert await kb.query("login") == [
            KnowledgeEntry(topic="User login", guidance="Lock the account after failures")
        ]
        assert await kb.query("LOGIN") == await kb.query("login")

    @pytest.mark.asyncio
    async def test_query_by_full_name(self, tmp_path: Path) -> None:
        kb = JsonKnowledgeBase(_write(tmp_path, {"File upload": "Validate the file type"}))
        entries = await kb.query("file upload")
        assert entries[0].guidance == "Validate the file type"

    @pytest.mark.asyncio
    async def test_object_entries(self, tmp_path: Path) -> None:
        kb = JsonKnowledgeBase(
            _write(tmp_path, {"Payment": [{"topic": "PCI", "guidance": "Never log card numbers"}]})
        )
        assert await kb.query("payment") == [
            KnowledgeEntry(topic="PCI", guidance="Never log card numbers")
        ]

    @pytest.mark.asyncio
    async def test_unknown_keyword(self, tmp_path: Path) -> None:
        kb = JsonKnowledgeBase(_write(tmp_path, {"Payment": ["x"]}))
        assert await kb.query("weather") == []

    def test_skips_malformed_entries(self, tmp_path: Path) -> None:
        kb = JsonKnowledgeBase(_write(tmp_path, {"Broken": [42], "Search": ["Escape input"]}))
        assert kb.size > 0

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(InvalidInputError, match="Failed to read"):
            JsonKnowledgeBase(tmp_path / "absent.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "kb.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(InvalidInputError, match="not valid JSON"):
            JsonKnowledgeBase(path)

    def test_top_level_must_be_object(self, tmp_path: Path) -> None:
        with pytest.raises(InvalidInputError, match="JSON object"):
            JsonKnowledgeBase(_write(tmp_path, ["a", "b"]))
