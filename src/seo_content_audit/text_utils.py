# -*- coding: utf-8 -*-
"""
Text sanitization and normalization helpers.

Handles:
- Sanitizing extracted page text (whitespace, control characters, length cap)
- Normalized content keys used for exact-duplicate grouping
- URL normalization so one page is never counted twice
- Word, key-phrase and structural tokenization for similarity metrics
"""

import math
import re
from typing import Iterable, List, Optional
from urllib.parse import urlparse

# Maximum stored length of any content item
MAX_CONTENT_LENGTH = 500

_WHITESPACE_RE = re.compile(r"\s+")
# Anything outside printable ASCII and the non-control Unicode ranges
_NON_PRINTABLE_RE = re.compile(r"[^\x20-\x7E\u00A0-\U0010FFFF]")
_NON_WORD_RE = re.compile(r"[^\w\s]")
_ALNUM_RE = re.compile(r"[a-zA-Z0-9]")

_DEFAULT_PORTS = {"http": 80, "https": 443}


def sanitize_content(text: str) -> str:
    """
    Clean extracted text for safe processing.

    Collapses whitespace (tabs and line breaks included), strips
    non-printable characters and caps the result at MAX_CONTENT_LENGTH.
    Applying it twice gives the same result as applying it once.

    Args:
        text: Raw text from the page record.

    Returns:
        Sanitized text, or "" for non-string input.
    """
    if not isinstance(text, str) or not text:
        return ""

    result = _WHITESPACE_RE.sub(" ", text)
    result = _NON_PRINTABLE_RE.sub("", result)
    # Removing characters can leave adjacent spaces behind
    result = _WHITESPACE_RE.sub(" ", result).strip()

    return result[:MAX_CONTENT_LENGTH].rstrip()


def normalize_content(text: str) -> str:
    """
    Build the comparison key for exact-duplicate detection.

    Lowercases, drops punctuation (Unicode letters and digits are kept),
    collapses whitespace and trims. Idempotent.
    """
    if not text:
        return ""
    result = _NON_WORD_RE.sub("", text.lower())
    return _WHITESPACE_RE.sub(" ", result).strip()


def light_normalize(text: str) -> str:
    """Cheap key used by the sampler: lowercase, trim, collapse whitespace."""
    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", text.lower().strip())


def normalize_url(url: str) -> str:
    """
    Normalize a URL to identify the page it points at.

    Keeps scheme, host and path. Strips a leading ``www.``, default ports,
    trailing slashes, query and fragment.

    Args:
        url: URL as reported by the crawler.

    Returns:
        Normalized URL string ("" for empty input).
    """
    if not url:
        return ""

    raw = url.strip()
    parsed = urlparse(raw)

    if not parsed.scheme or not parsed.netloc:
        # Relative or scheme-less URLs: best effort on the raw string
        return raw.split("#", 1)[0].rstrip("/").lower()

    scheme = parsed.scheme.lower()
    host = (parsed.hostname or "").lower()
    if host.startswith("www."):
        host = host[4:]

    try:
        port: Optional[int] = parsed.port
    except ValueError:
        port = None
    netloc = host
    if port is not None and port != _DEFAULT_PORTS.get(scheme):
        netloc = f"{host}:{port}"

    path = parsed.path.rstrip("/")

    return f"{scheme}://{netloc}{path}"


def dedupe_urls(urls: Iterable[str]) -> List[str]:
    """
    Remove URLs that normalize to an already-seen page.

    The first spelling of each page is kept, in input order.
    """
    seen: set[str] = set()
    result: List[str] = []
    for url in urls:
        key = normalize_url(url)
        if key in seen:
            continue
        seen.add(key)
        result.append(url)
    return result


def significant_words(text: str) -> List[str]:
    """Lowercased whitespace-split words longer than two characters."""
    return [w for w in text.lower().split() if len(w) > 2]


def extract_key_phrases(text: str) -> List[str]:
    """Word bigrams and trigrams built from the significant words."""
    words = significant_words(text)
    phrases: List[str] = []

    for i in range(len(words) - 1):
        phrases.append(f"{words[i]} {words[i + 1]}")
        if i < len(words) - 2:
            phrases.append(f"{words[i]} {words[i + 1]} {words[i + 2]}")

    return phrases


def structural_pattern(text: str) -> str:
    """Replace ASCII letters and digits with X, keeping punctuation layout."""
    return _WHITESPACE_RE.sub(" ", _ALNUM_RE.sub("X", text))


def round_score(value: float) -> int:
    """Round halves up, so 72.5 scores 73 rather than 72."""
    return int(math.floor(value + 0.5))
