"""
Three-pass duplicate grouping over a single batch.

Passes run in order and never overlap; a document claimed by one pass is
not revisited by later passes:
1. Exact: bucket by fingerprint (normalized content + canonical URL)
2. URL: web documents with an equivalent URL but different content
3. Near: pairwise combined similarity at or above the threshold

Documents at or below the content threshold are skipped up front and take
part in no pass. Every cluster is resolved to a canonical document as soon
as it is formed.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set

import structlog

from ..config.config import DeduplicationConfig
from ..protocols import Document, DocumentSource, DuplicateGroup, DuplicateReason
from .canonical import CanonicalSelector
from .hasher import ContentHasher
from .similarity import SimilarityEngine

logger = structlog.get_logger(__name__)


@dataclass
class GroupingOutcome:
    """Partition of one batch: groups, untouched canonical documents and skips."""

    groups: List[DuplicateGroup] = field(default_factory=list)
    canonical: List[Document] = field(default_factory=list)
    skipped: List[Document] = field(default_factory=list)

    @property
    def duplicates_found(self) -> int:
        return sum(len(group.duplicates) for group in self.groups)


class _BatchState:
    """Per-call bookkeeping; positions index into the batch."""

    def __init__(self, documents: Sequence[Document], content_threshold: int) -> None:
        self.documents = documents
        self.skipped: Set[int] = {
            idx for idx, doc in enumerate(documents) if doc.content_length <= content_threshold
        }
        self.claimed: Set[int] = set()
        self.duplicates: Set[int] = set()
        self.groups: List[DuplicateGroup] = []

    def available(self) -> List[int]:
        return [idx for idx in range(len(self.documents)) if idx not in self.skipped and idx not in self.claimed]


class GroupingEngine:
    """Runs the exact, URL and near-duplicate passes over one batch."""

    def __init__(
        self,
        config: DeduplicationConfig,
        hasher: Optional[ContentHasher] = None,
        similarity: Optional[SimilarityEngine] = None,
        selector: Optional[CanonicalSelector] = None,
    ) -> None:
        self.config = config
        self.hasher = hasher or ContentHasher(config.hash_algorithm)
        self.similarity = similarity or SimilarityEngine()
        self.selector = selector or CanonicalSelector(config.source_winners)

    def group(self, documents: Sequence[Document]) -> GroupingOutcome:
        """
        Partition a batch into duplicate groups, canonical and skipped documents.

        Args:
            documents: Ordered batch of documents

        Returns:
            GroupingOutcome whose three partitions cover every input exactly once
        """
        state = _BatchState(documents, self.config.content_threshold)

        self._exact_hash_pass(state)
        self._url_pass(state)
        self._near_duplicate_pass(state)

        return GroupingOutcome(
            groups=state.groups,
            canonical=[
                doc
                for idx, doc in enumerate(documents)
                if idx not in state.skipped and idx not in state.duplicates
            ],
            skipped=[documents[idx] for idx in sorted(state.skipped)],
        )

    def _emit(self, state: _BatchState, members: List[int], reason: DuplicateReason) -> None:
        cluster = [state.documents[idx] for idx in members]
        winner = self.selector.select_index(cluster)
        state.groups.append(
            DuplicateGroup(
                canonical_document=cluster[winner],
                duplicates=[doc for position, doc in enumerate(cluster) if position != winner],
                reason=reason,
                confidence=reason.confidence,
            )
        )
        state.duplicates.update(idx for position, idx in enumerate(members) if position != winner)
        state.claimed.update(members)

    def _exact_hash_pass(self, state: _BatchState) -> None:
        buckets: Dict[str, List[int]] = {}
        for idx in state.available():
            doc = state.documents[idx]
            buckets.setdefault(self.hasher.fingerprint(doc.content, doc.url), []).append(idx)

        emitted = 0
        for members in buckets.values():
            if len(members) > 1:
                self._emit(state, members, DuplicateReason.EXACT_HASH)
                emitted += 1

        logger.debug("Exact hash pass complete", buckets=len(buckets), groups=emitted)

    def _url_pass(self, state: _BatchState) -> None:
        buckets: Dict[str, List[int]] = {}
        for idx in state.available():
            doc = state.documents[idx]
            if doc.source is not DocumentSource.WEB or not doc.url:
                continue
            buckets.setdefault(self.hasher.url_hash(doc.url), []).append(idx)

        emitted = 0
        for members in buckets.values():
            if len(members) < 2:
                continue
            content_hashes = {self.hasher.content_hash(state.documents[idx].content) for idx in members}
            # Identical content at an equivalent URL belongs to the exact pass
            if len(content_hashes) < 2:
                continue
            self._emit(state, members, DuplicateReason.URL_SIMILARITY)
            emitted += 1

        logger.debug("URL similarity pass complete", buckets=len(buckets), groups=emitted)

    def _near_duplicate_pass(self, state: _BatchState) -> None:
        remaining = state.available()
        threshold = self.config.similarity_threshold
        seen: Set[int] = set()
        comparisons = 0
        emitted = 0

        for position, i in enumerate(remaining):
            if i in seen:
                continue
            seen.add(i)
            members = [i]
            content = state.documents[i].content

            for j in remaining[position + 1 :]:
                if j in seen:
                    continue
                comparisons += 1
                if self.similarity.combined(content, state.documents[j].content) >= threshold:
                    members.append(j)
                    seen.add(j)

            if len(members) > 1:
                self._emit(state, members, DuplicateReason.CONTENT_SIMILARITY)
                emitted += 1

        logger.debug(
            "Near duplicate pass complete",
            candidates=len(remaining),
            comparisons=comparisons,
            groups=emitted,
        )
