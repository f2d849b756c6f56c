"""
Content and URL fingerprinting for exact deduplication.

Normalization rules:
- Content: strip leading/trailing whitespace, lower-case
- URL, in this order: lower-case, drop one trailing slash, drop query string
  and fragment, drop a trailing index file (index.html, index.htm, index.php).
  A slash before the query survives: ``/page/?x=1`` becomes ``/page/``

The fingerprint (normalized content + canonical URL) is the key for exact
duplicate grouping and for document store existence lookups.
"""

import hashlib
import re
from typing import Optional

_QUERY_OR_FRAGMENT = re.compile(r"[?#].*$", re.DOTALL)
_TRAILING_SLASH = re.compile(r"/$")
_INDEX_FILE = re.compile(r"/index\.(html?|php)$")

SUPPORTED_ALGORITHMS = ("sha256", "md5")


def normalize_content(content: str) -> str:
    return content.strip().lower()


def canonicalize_url(url: str) -> str:
    """
    Canonicalize a URL so equivalent addresses share one form.

    Args:
        url: Raw URL as observed by the crawler

    Returns:
        Canonical URL string (empty for an empty URL)
    """
    if not url:
        return ""
    normalized = url.lower()
    normalized = _TRAILING_SLASH.sub("", normalized)
    normalized = _QUERY_OR_FRAGMENT.sub("", normalized)
    normalized = _INDEX_FILE.sub("", normalized)
    return normalized


class ContentHasher:
    """Pure, deterministic digests for documents and URLs."""

    def __init__(self, algorithm: str = "sha256") -> None:
        if algorithm not in SUPPORTED_ALGORITHMS:
            raise ValueError(f"Unsupported hash algorithm: {algorithm}")
        self.algorithm = algorithm

    def _digest(self, value: str) -> str:
        return hashlib.new(self.algorithm, value.encode("utf-8")).hexdigest()

    def content_hash(self, content: str) -> str:
        return self._digest(normalize_content(content))

    def url_hash(self, url: Optional[str]) -> str:
        if not url:
            return ""
        return self._digest(canonicalize_url(url))

    def fingerprint(self, content: str, url: Optional[str] = None) -> str:
        """Digest of normalized content followed by the canonical URL, if any."""
        return self._digest(normalize_content(content) + canonicalize_url(url or ""))
