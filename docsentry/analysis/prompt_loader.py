from pathlib import Path

from docsentry.exceptions import DocSentryError

_DEFAULT_PROMPT_DIR = Path(__file__).parent / "prompts"


def load_prompt(name: str, path: Path | None = None) -> str:
    """Load a bundled prompt file.

    Args:
        name: File name under the bundled ``prompts`` directory.
        path: Explicit file to read instead of the bundled one.

    Returns:
        The raw file content; templates keep their placeholders.

    Raises:
        DocSentryError: if the file cannot be read.
    """
    if path is None:
        path = _DEFAULT_PROMPT_DIR / name
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DocSentryError(f"Failed to load prompt {path.name}: {exc}") from exc
