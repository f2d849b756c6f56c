"""
Test configuration for docdedup.

Provides document factories, configuration fixtures and a temporary
SQLite document store shared by the unit and integration suites.
"""

# Standard library imports
import itertools
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncGenerator, Callable, Dict, Optional

# Third-party imports
import pytest
import pytest_asyncio

# Local imports
from docdedup.config import DeduplicationConfig
from docdedup.protocols import Document, DocumentMetadata, DocumentSource
from docdedup.storage import SQLiteDocumentStore

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests across modules")


# Filler appended to short phrases so they clear the default content threshold
PADDING = (
    " This paragraph documents the ingestion behaviour of the knowledge store and"
    " exists only to push the body past the minimum content length."
)

DEFAULT_TIMESTAMP = datetime(2023, 1, 1, tzinfo=timezone.utc)


# ============================================================================
# Document Fixtures
# ============================================================================


@pytest.fixture
def make_document() -> Callable[..., Document]:
    """Factory producing documents with unique ids and sensible defaults."""
    counter = itertools.count(1)

    def _make(
        content: str,
        source: DocumentSource = DocumentSource.REPOSITORY,
        *,
        doc_id: Optional[str] = None,
        url: Optional[str] = None,
        priority: Optional[float] = 1.0,
        last_modified: Optional[datetime] = DEFAULT_TIMESTAMP,
        filepath: Optional[str] = None,
    ) -> Document:
        n = next(counter)
        return Document(
            id=doc_id or f"doc-{n}",
            content=content,
            source=source,
            filepath=filepath or f"/test/{source.value}/file-{n}.md",
            priority=priority,
            metadata=DocumentMetadata(url=url, size=len(content), last_modified=last_modified),
        )

    return _make


# ============================================================================
# Text Fixtures
# ============================================================================


@pytest.fixture
def padded() -> Callable[[str], str]:
    """Append filler so a short phrase clears the default content threshold."""

    def _padded(text: str) -> str:
        return text + PADDING

    return _padded


@pytest.fixture
def vocab_text() -> Callable[..., str]:
    """
    Build a body of ``count`` distinct words sharing ``prefix``.

    Bodies built from different prefixes share no words; ``replace`` maps a
    word position to a substitute word for near-duplicate variants.
    """

    def _vocab_text(prefix: str, count: int = 20, replace: Optional[Dict[int, str]] = None) -> str:
        words = [f"{prefix}{i}" for i in range(count)]
        for position, word in (replace or {}).items():
            words[position] = word
        return " ".join(words)

    return _vocab_text


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def default_config() -> DeduplicationConfig:
    return DeduplicationConfig()


@pytest.fixture
def lenient_config() -> DeduplicationConfig:
    """Configuration that groups moderately similar documents."""
    return DeduplicationConfig(similarity_threshold=0.5)


# ============================================================================
# Storage Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def document_store(tmp_path: Path) -> AsyncGenerator[SQLiteDocumentStore, None]:
    """Provide a temporary SQLite document store."""
    store = SQLiteDocumentStore(tmp_path / "documents.db")
    yield store
    await store.close()
