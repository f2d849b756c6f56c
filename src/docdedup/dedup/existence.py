"""
Advisory lookup of documents already present in the document store.

A lookup failure never propagates: the document is reported as not found so
the caller re-processes it rather than silently dropping input.
"""

from typing import List, Optional, Sequence

import structlog

from ..observability import metrics
from ..protocols import Document, DocumentStoreProtocol
from .hasher import ContentHasher

logger = structlog.get_logger(__name__)


class ExistenceChecker:
    """Matches document fingerprints against the store's checksum field."""

    def __init__(
        self,
        store: DocumentStoreProtocol,
        hasher: Optional[ContentHasher] = None,
        preserve_metadata: bool = True,
    ) -> None:
        self.store = store
        self.hasher = hasher or ContentHasher()
        self.preserve_metadata = preserve_metadata

    async def check_existing(self, document: Document) -> Optional[Document]:
        """
        Check whether ``document`` is already persisted.

        Args:
            document: Document to look up

        Returns:
            Copy of the document annotated with its checksum and the stored
            reference, or None when absent or when the lookup failed
        """
        checksum = self.hasher.fingerprint(document.content, document.url)

        try:
            existing = await self.store.find_by_checksum(checksum)
        except Exception as e:
            logger.warning(
                "Existence check failed, treating document as new",
                document_id=document.id,
                checksum=checksum,
                error=str(e),
            )
            metrics.increment("existence_checks", labels={"outcome": "error"})
            return None

        if existing is None:
            metrics.increment("existence_checks", labels={"outcome": "miss"})
            return None

        metrics.increment("existence_checks", labels={"outcome": "hit"})
        logger.debug("Document already stored", document_id=document.id, existing_id=existing.id)

        last_modified = document.metadata.last_modified
        if self.preserve_metadata and last_modified is None:
            last_modified = existing.last_modified

        return document.with_metadata(checksum=checksum, existing=existing, last_modified=last_modified)

    async def check_many(self, documents: Sequence[Document]) -> List[Optional[Document]]:
        """Check documents one after another, preserving input order."""
        results: List[Optional[Document]] = []
        for document in documents:
            results.append(await self.check_existing(document))
        return results
