from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from docsentry.analysis.models import AnalysisResult, ConnectionCheck
from docsentry.documents.models import AttachmentDescriptor, DocumentModel
from docsentry.main import create_parser, main
from docsentry.pipeline import PipelineOutcome


def _pipeline(outcome: PipelineOutcome) -> MagicMock:
    pipeline = MagicMock()
    pipeline.run = AsyncMock(return_value=outcome)
    pipeline.test_connection = AsyncMock(return_value=ConnectionCheck(success=True, detail="OK"))
    return pipeline


class TestCreateParser:
    def test_defaults(self) -> None:
        args = create_parser().parse_args(["--url", "https://x/a.pdf"])
        assert args.type == ""
        assert args.no_webpage_fallback is False
        assert args.test_connection is False


class TestMain:
    def test_requires_an_input(self) -> None:
        with pytest.raises(SystemExit):
            main([])

    def test_runs_analysis_and_prints_json(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        page = tmp_path / "page.txt"
        page.write_text("page body", encoding="utf-8")
        outcome = PipelineOutcome(
            document=DocumentModel.webpage("page body", "w"),
            analysis=AnalysisResult(summary="ok"),
        )
        pipeline = _pipeline(outcome)
        with (
            patch("docsentry.main.build_pipeline", return_value=pipeline),
            patch("docsentry.main.Log"),
        ):
            code = main(["--url", "https://x/a.pdf", "--fallback-file", str(page)])

        assert code == 0
        assert '"summary": "ok"' in capsys.readouterr().out
        attachment, options = pipeline.run.call_args.args
        assert attachment == AttachmentDescriptor(url="https://x/a.pdf")
        assert options.fallback_content == "page body"
        assert options.enable_webpage_fallback is True

    def test_failure_exit_code(self) -> None:
        outcome = PipelineOutcome(document=DocumentModel.failure("bad", kind="ParseError"))
        with (
            patch("docsentry.main.build_pipeline", return_value=_pipeline(outcome)),
            patch("docsentry.main.Log"),
        ):
            assert main(["--url", "https://x/a.pdf"]) == 1

    def test_connection_check(self, capsys: pytest.CaptureFixture[str]) -> None:
        outcome = PipelineOutcome(document=DocumentModel.failure("unused"))
        pipeline = _pipeline(outcome)
        with (
            patch("docsentry.main.build_pipeline", return_value=pipeline),
            patch("docsentry.main.Log"),
        ):
            assert main(["--test-connection"]) == 0
        assert '"detail": "OK"' in capsys.readouterr().out
        pipeline.run.assert_not_called()
