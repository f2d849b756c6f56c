"""
Canonical document selection for duplicate clusters.

Ordering:
1. Position of the document's source in ``source_winners`` (earlier wins,
   unlisted sources rank last)
2. Descending composite score: priority x trimmed content length x last-modified
   epoch millis (undated documents score 0)
3. Input order for anything still tied
"""

from typing import List, Sequence, Tuple

from ..protocols import Document, DocumentSource


class CanonicalSelector:
    """Deterministically picks one representative per cluster."""

    def __init__(self, source_winners: Sequence[DocumentSource]) -> None:
        self._source_rank = {source: position for position, source in enumerate(source_winners)}
        self._unlisted_rank = len(self._source_rank)

    def source_rank(self, document: Document) -> int:
        return self._source_rank.get(document.source, self._unlisted_rank)

    @staticmethod
    def tie_break_score(document: Document) -> float:
        return document.effective_priority * document.content_length * document.last_modified_ms

    def rank_key(self, document: Document) -> Tuple[int, float]:
        return (self.source_rank(document), -self.tie_break_score(document))

    def select_index(self, cluster: Sequence[Document]) -> int:
        """Position of the canonical document within ``cluster``."""
        if not cluster:
            raise ValueError("Cannot select a canonical document from an empty cluster")
        # min() returns the first of equal keys, so remaining ties resolve to input order
        return min(range(len(cluster)), key=lambda position: self.rank_key(cluster[position]))

    def select(self, cluster: Sequence[Document]) -> Tuple[Document, List[Document]]:
        """
        Select the canonical document of a non-empty cluster.

        Returns:
            Tuple of (canonical, remaining members in input order)

        Raises:
            ValueError: If the cluster is empty
        """
        winner = self.select_index(cluster)
        duplicates = [doc for position, doc in enumerate(cluster) if position != winner]
        return cluster[winner], duplicates
