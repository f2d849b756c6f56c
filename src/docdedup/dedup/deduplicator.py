"""
Batch deduplication orchestrator.

Splits large inputs into contiguous batches of ``batch_size``, groups each
batch independently and merges the results. Duplicates that straddle a
batch boundary are not detected; each batch's canonical set is independent
of every other batch.

The deduplicator is constructed with an explicit configuration and holds no
state besides it, so two calls on the same instance never interact.
"""

import time
import uuid
from typing import Any, Dict, List, Optional, Sequence, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field, InstanceOf

from ..config.config import DeduplicationConfig
from ..observability import metrics
from ..protocols import DeduplicationResult, Document, DocumentStoreProtocol
from .canonical import CanonicalSelector
from .existence import ExistenceChecker
from .grouping import GroupingEngine
from .hasher import ContentHasher
from .similarity import SimilarityEngine

logger = structlog.get_logger(__name__)

ConfigLike = Union[DeduplicationConfig, Dict[str, Any], None]


class DeduplicationRequest(BaseModel):
    """Validated request envelope for a deduplication run."""

    model_config = ConfigDict(extra="forbid")

    documents: List[InstanceOf[Document]] = Field(min_length=1)
    config: Optional[DeduplicationConfig] = None
    force_reprocessing: bool = False


class ContentDeduplicator:
    """
    Multi-signal document deduplication over bounded batches.

    Components:
    - ContentHasher for fingerprints and URL digests
    - SimilarityEngine for near-duplicate scoring
    - CanonicalSelector for source-priority winner selection
    - GroupingEngine running the three passes per batch
    - ExistenceChecker (optional) against the document store
    """

    def __init__(self, config: ConfigLike = None, store: Optional[DocumentStoreProtocol] = None) -> None:
        """
        Initialize the deduplicator.

        Args:
            config: DeduplicationConfig or a mapping of overrides on the defaults
            store: Optional document store used for existence checks

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        if not isinstance(config, DeduplicationConfig):
            config = DeduplicationConfig.build(config)
        self.config = config
        self.store = store

        self.hasher = ContentHasher(config.hash_algorithm)
        self.similarity = SimilarityEngine()
        self.selector = CanonicalSelector(config.source_winners)
        self.grouping = GroupingEngine(config, self.hasher, self.similarity, self.selector)
        self.existence = (
            ExistenceChecker(store, self.hasher, preserve_metadata=config.preserve_metadata)
            if store is not None
            else None
        )

        logger.info(
            "Initialized ContentDeduplicator",
            hash_algorithm=config.hash_algorithm,
            content_threshold=config.content_threshold,
            similarity_threshold=config.similarity_threshold,
            source_winners=[source.value for source in config.source_winners],
            batch_size=config.batch_size,
        )

    def deduplicate(self, documents: Sequence[Document]) -> DeduplicationResult:
        """
        Run the three grouping passes over a single batch.

        Args:
            documents: Ordered documents, at most one batch worth

        Returns:
            DeduplicationResult for this batch
        """
        start_time = time.perf_counter()

        outcome = self.grouping.group(documents)

        elapsed = time.perf_counter() - start_time
        result = DeduplicationResult(
            processed=len(documents),
            duplicates_found=outcome.duplicates_found,
            duplicate_groups=outcome.groups,
            canonical_documents=outcome.canonical,
            skipped_documents=outcome.skipped,
            processing_time_ms=elapsed * 1000,
        )

        metrics.increment("documents_processed", len(documents))
        metrics.observe("batch_latency_seconds", elapsed)
        if outcome.skipped:
            metrics.increment("documents_skipped", len(outcome.skipped), labels={"cause": "below_threshold"})
        for group in outcome.groups:
            metrics.increment("duplicates_found", len(group.duplicates), labels={"reason": group.reason.value})

        logger.debug("Batch deduplicated", **result.to_dict())
        return result

    def batch_deduplicate(self, documents: Sequence[Document]) -> DeduplicationResult:
        """
        Deduplicate any number of documents in contiguous batches.

        Args:
            documents: Ordered input documents

        Returns:
            Merged DeduplicationResult across all batches
        """
        batch_size = self.config.batch_size
        if len(documents) <= batch_size:
            return self.deduplicate(documents)

        with structlog.contextvars.bound_contextvars(run_id=uuid.uuid4().hex[:12]):
            results = []
            for number, offset in enumerate(range(0, len(documents), batch_size), start=1):
                batch = documents[offset : offset + batch_size]
                with structlog.contextvars.bound_contextvars(batch=number):
                    logger.debug("Processing batch", offset=offset, size=len(batch))
                    results.append(self.deduplicate(batch))

            merged = DeduplicationResult.merge(results)
            logger.info("Batch deduplication complete", batches=len(results), **merged.to_dict())
        return merged

    async def check_existing(self, document: Document) -> Optional[Document]:
        """Look ``document`` up in the configured store; None without a store."""
        if self.existence is None:
            return None
        return await self.existence.check_existing(document)

    async def handle_request(self, request: DeduplicationRequest) -> DeduplicationResult:
        """
        Serve a validated request.

        A request-level config builds a dedicated deduplicator for this call.
        Unless ``force_reprocessing`` is set, documents already present in the
        store are reported as skipped before grouping.
        """
        if request.config is not None and request.config != self.config:
            delegate = ContentDeduplicator(request.config, store=self.store)
            return await delegate.handle_request(request.model_copy(update={"config": None}))

        documents: List[Document] = list(request.documents)
        already_stored: List[Document] = []
        lookup_seconds = 0.0

        if self.existence is not None and not request.force_reprocessing:
            start_time = time.perf_counter()
            pending: List[Document] = []
            for document, match in zip(documents, await self.existence.check_many(documents)):
                if match is None:
                    pending.append(document)
                else:
                    already_stored.append(match)
            documents = pending
            lookup_seconds = time.perf_counter() - start_time

            if already_stored:
                metrics.increment("documents_processed", len(already_stored))
                metrics.increment("documents_skipped", len(already_stored), labels={"cause": "already_stored"})
                logger.info("Skipping documents already in store", count=len(already_stored))

        result = self.batch_deduplicate(documents)
        # Stored documents count as processed and their lookups as processing time
        result.processed += len(already_stored)
        result.processing_time_ms += lookup_seconds * 1000
        result.skipped_documents.extend(already_stored)
        return result


def deduplicate_documents(documents: Sequence[Document], config: ConfigLike = None) -> DeduplicationResult:
    """Convenience wrapper: build a deduplicator for ``config`` and run it once."""
    return ContentDeduplicator(config).batch_deduplicate(documents)


async def check_document_exists(
    document: Document, store: DocumentStoreProtocol, config: ConfigLike = None
) -> Optional[Document]:
    """Convenience wrapper: look one document up in ``store`` under ``config``."""
    return await ContentDeduplicator(config, store=store).check_existing(document)
