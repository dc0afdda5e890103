"""
Answering-machine detection.

Detection is a plain keyword test: a transcript is flagged when it contains
any phrase from a versioned keyword list.  The list lives in
``data/keywords.json`` (grouped by language) so it can be extended without
touching this module; set ``KEYWORDS_PATH`` to use a different file.
"""

import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

DEFAULT_KEYWORDS_PATH = Path(__file__).parent / "data" / "keywords.json"


def load_keywords(path: Optional[str] = None) -> Tuple[str, ...]:
    """Load the keyword list from ``path``, ``KEYWORDS_PATH`` or the bundled file."""
    return _load_keywords(path or os.environ.get("KEYWORDS_PATH") or str(DEFAULT_KEYWORDS_PATH))


@lru_cache(maxsize=None)
def _load_keywords(path: str) -> Tuple[str, ...]:
    """Read and lower-case the keyword list at ``path``.

    The file holds ``{"version": n, "keywords": {"<lang>": [...], ...}}``.
    Keywords keep file order, languages keep key order; duplicates are dropped.
    """
    source = Path(path)
    with open(source, "r", encoding="utf-8") as f:
        data = json.load(f)
    groups = data.get("keywords", {})
    if not isinstance(groups, dict):
        raise ValueError(f"Keyword file {source} must map languages to lists")
    keywords = []
    for phrases in groups.values():
        for phrase in phrases:
            phrase = str(phrase).strip().lower()
            if phrase and phrase not in keywords:
                keywords.append(phrase)
    logger.debug("Loaded %d keywords (version %s) from %s", len(keywords), data.get("version"), source)
    return tuple(keywords)


def matched_keyword(transcript: Any, keywords: Optional[Sequence[str]] = None) -> Optional[str]:
    """Return the first keyword found in ``transcript``, or ``None``."""
    if not transcript or not isinstance(transcript, str):
        return None
    if keywords is None:
        keywords = load_keywords()
    text = transcript.lower()
    for keyword in keywords:
        if keyword.lower() in text:
            return keyword
    return None


def classify(transcript: Any, keywords: Optional[Sequence[str]] = None) -> bool:
    """Return ``True`` if ``transcript`` looks like an answering-machine greeting.

    ``None``, non-string and empty input all classify as ``False``.
    """
    return matched_keyword(transcript, keywords) is not None
