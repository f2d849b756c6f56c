"""
Core data structures and contracts for the docdedup pipeline.

Documents arrive from ingestion collaborators (repository scanners, web
crawlers, local filesystem scans), flow once through the deduplication
pipeline and leave as canonical, duplicate or skipped records. Nothing in
this module performs I/O; the only boundary to the outside world is
``DocumentStoreProtocol``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Protocol

# ============================================================================
# Enums and Constants
# ============================================================================


class DocumentSource(Enum):
    """Origin systems, listed from most to least authoritative."""

    REPOSITORY = "repository"
    WEB = "web"
    LOCAL = "local"


class DuplicateReason(Enum):
    """Why a set of documents was collapsed into one group."""

    EXACT_HASH = "exact_hash"
    URL_SIMILARITY = "url_similarity"
    CONTENT_SIMILARITY = "content_similarity"

    @property
    def confidence(self) -> float:
        return _REASON_CONFIDENCE[self]


_REASON_CONFIDENCE: Dict[DuplicateReason, float] = {
    DuplicateReason.EXACT_HASH: 1.0,
    DuplicateReason.URL_SIMILARITY: 0.85,
    DuplicateReason.CONTENT_SIMILARITY: 0.9,
}

NEUTRAL_PRIORITY = 1.0

# ============================================================================
# Documents
# ============================================================================


@dataclass(frozen=True)
class ExistingDocumentRef:
    """Reference to a document already persisted in the document store."""

    id: str
    source: Optional[DocumentSource] = None
    filepath: str = ""
    last_modified: Optional[datetime] = None


@dataclass(frozen=True)
class DocumentMetadata:
    """Optional per-document metadata supplied by the producing collaborator."""

    url: Optional[str] = None
    size: Optional[int] = None
    last_modified: Optional[datetime] = None
    checksum: Optional[str] = None
    existing: Optional[ExistingDocumentRef] = None
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Document:
    """A unit of ingestible content."""

    id: str
    content: str
    source: DocumentSource
    filepath: str = ""
    priority: Optional[float] = NEUTRAL_PRIORITY
    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)

    @property
    def url(self) -> Optional[str]:
        return self.metadata.url

    @property
    def content_length(self) -> int:
        """Length of the trimmed content body."""
        return len(self.content.strip())

    @property
    def effective_priority(self) -> float:
        if self.priority is None:
            return NEUTRAL_PRIORITY
        return self.priority

    @property
    def last_modified_ms(self) -> int:
        """Last-modified time in epoch milliseconds, 0 when unknown or before 1970."""
        ts = self.metadata.last_modified
        if ts is None:
            return 0
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        # Negative epochs would turn the canonical tie-break score negative
        return max(0, int(ts.timestamp() * 1000))

    def with_metadata(self, **changes: Any) -> Document:
        """Return a copy of this document with updated metadata fields."""
        return replace(self, metadata=replace(self.metadata, **changes))


# ============================================================================
# Results
# ============================================================================


@dataclass(frozen=True)
class ContentSimilarity:
    """Breakdown of the three similarity measures and their weighted blend."""

    jaccard: float
    cosine: float
    levenshtein: float
    combined: float


@dataclass
class DuplicateGroup:
    """One cluster of equivalent documents, resolved to a canonical member."""

    canonical_document: Document
    duplicates: List[Document]
    reason: DuplicateReason
    confidence: float

    @property
    def members(self) -> List[Document]:
        return [self.canonical_document, *self.duplicates]


@dataclass
class DeduplicationResult:
    """Outcome of running the pipeline over one or more batches."""

    processed: int = 0
    duplicates_found: int = 0
    duplicate_groups: List[DuplicateGroup] = field(default_factory=list)
    canonical_documents: List[Document] = field(default_factory=list)
    skipped_documents: List[Document] = field(default_factory=list)
    processing_time_ms: float = 0.0

    @classmethod
    def merge(cls, results: Iterable[DeduplicationResult]) -> DeduplicationResult:
        """Concatenate per-batch results; counters and timings are summed."""
        merged = cls()
        for result in results:
            merged.processed += result.processed
            merged.duplicates_found += result.duplicates_found
            merged.duplicate_groups.extend(result.duplicate_groups)
            merged.canonical_documents.extend(result.canonical_documents)
            merged.skipped_documents.extend(result.skipped_documents)
            merged.processing_time_ms += result.processing_time_ms
        return merged

    def to_dict(self) -> Dict[str, Any]:
        """Summary suitable for structured logging or API responses."""
        reasons: Dict[str, int] = {}
        for group in self.duplicate_groups:
            reasons[group.reason.value] = reasons.get(group.reason.value, 0) + 1
        return {
            "processed": self.processed,
            "duplicates_found": self.duplicates_found,
            "groups": len(self.duplicate_groups),
            "groups_by_reason": reasons,
            "canonical": len(self.canonical_documents),
            "skipped": len(self.skipped_documents),
            "processing_time_ms": round(self.processing_time_ms, 3),
        }


# ============================================================================
# Collaborator Protocols
# ============================================================================


class DocumentStoreProtocol(Protocol):
    """Read boundary of the external document store."""

    async def find_by_checksum(self, checksum: str) -> Optional[ExistingDocumentRef]:
        """Return at most one stored document whose checksum equals ``checksum``."""
        ...


__all__ = [
    "DocumentSource",
    "DuplicateReason",
    "NEUTRAL_PRIORITY",
    "ExistingDocumentRef",
    "DocumentMetadata",
    "Document",
    "ContentSimilarity",
    "DuplicateGroup",
    "DeduplicationResult",
    "DocumentStoreProtocol",
]
