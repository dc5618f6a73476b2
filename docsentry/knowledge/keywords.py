import re

_SPLIT_RE = re.compile(r"""[\s\-_()\[\]{}.,;:!?'"]+""")

STOP_WORDS = frozenset({
    "the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by",
    "from", "up", "about", "into", "through", "during", "before", "after", "above",
    "below", "between", "among", "is", "are", "was", "were", "be", "been", "being",
    "have", "has", "had", "do", "does", "did", "will", "would", "could", "should",
    "may", "might", "must", "can", "this", "that", "these", "those", "a", "an",
})


def extract_keywords(text: str, limit: int | None = None) -> list[str]:
    """Lower-cased distinct words longer than two characters, in first-seen order."""
    if not text:
        return []
    seen: dict[str, None] = {}
    for word in _SPLIT_RE.split(text.lower()):
        if len(word) > 2 and word not in STOP_WORDS:
            seen.setdefault(word, None)
            if limit is not None and len(seen) >= limit:
                break
    return list(seen)
