import argparse
import asyncio
import json
import sys
from pathlib import Path

from docsentry.config.settings import Settings
from docsentry.documents.models import AttachmentDescriptor
from docsentry.documents.selector import ParseOptions
from docsentry.logging.logger import Log
from docsentry.pipeline import SecurityAnalysisPipeline, build_pipeline


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docsentry",
        description="Analyze a requirements document for security risks with an LLM.",
    )
    parser.add_argument("--url", help="Attachment URL (PDF, DOCX or DOC)")
    parser.add_argument("--type", default="", help="Attachment type; inferred from the URL when omitted")
    parser.add_argument("--name", default="", help="Attachment display name")
    parser.add_argument(
        "--fallback-file",
        type=Path,
        help="Text file with the page content used when there is no usable attachment",
    )
    parser.add_argument(
        "--no-webpage-fallback",
        action="store_true",
        help="Fail instead of analyzing the page text when the attachment cannot be parsed",
    )
    parser.add_argument("--prompt", default="", help="Custom analysis instructions")
    parser.add_argument(
        "--test-connection",
        action="store_true",
        help="Only check that the configured LLM provider answers",
    )
    return parser


async def run(args: argparse.Namespace, pipeline: SecurityAnalysisPipeline) -> int:
    if args.test_connection:
        check = await pipeline.test_connection()
        print(json.dumps({"success": check.success, "detail": check.detail}, ensure_ascii=False))
        return 0 if check.success else 1

    fallback = args.fallback_file.read_text(encoding="utf-8") if args.fallback_file else None
    attachment = (
        AttachmentDescriptor(url=args.url, type=args.type, name=args.name) if args.url else None
    )
    options = ParseOptions(
        fallback_content=fallback,
        enable_webpage_fallback=not args.no_webpage_fallback,
    )
    outcome = await pipeline.run(attachment, options, prompt=args.prompt)
    print(json.dumps(outcome.to_dict(), ensure_ascii=False, indent=2))
    return 0 if outcome.success else 1


def main(argv: list[str] | None = None) -> int:
    """Entry point: parse args -> load settings -> build pipeline -> run one analysis."""
    args = create_parser().parse_args(argv)
    if not args.url and not args.fallback_file and not args.test_connection:
        create_parser().error("one of --url, --fallback-file or --test-connection is required")

    settings = Settings()
    Log.configure(settings.log_level)
    pipeline = build_pipeline(settings)
    return asyncio.run(run(args, pipeline))


if __name__ == "__main__":
    sys.exit(main())
