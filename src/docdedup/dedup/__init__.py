"""
Multi-signal document deduplication for ingestion pipelines.

Three ordered passes per batch:
1. Exact: fingerprint of normalized content + canonical URL
2. URL: web documents reachable at an equivalent URL with different content
3. Near: weighted Jaccard / cosine / Levenshtein similarity

Each duplicate cluster keeps one canonical document chosen by source
priority, then by a priority x length x recency score.
"""

from .canonical import CanonicalSelector
from .deduplicator import ContentDeduplicator, DeduplicationRequest, check_document_exists, deduplicate_documents
from .existence import ExistenceChecker
from .grouping import GroupingEngine, GroupingOutcome
from .hasher import ContentHasher, canonicalize_url, normalize_content
from .similarity import SimilarityEngine

__all__ = [
    "CanonicalSelector",
    "ContentDeduplicator",
    "ContentHasher",
    "DeduplicationRequest",
    "ExistenceChecker",
    "GroupingEngine",
    "GroupingOutcome",
    "SimilarityEngine",
    "canonicalize_url",
    "check_document_exists",
    "deduplicate_documents",
    "normalize_content",
]
