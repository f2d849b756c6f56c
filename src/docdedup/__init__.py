"""
docdedup - Deduplication stage for multi-origin document ingestion.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .config import Config, ConfigurationError, DeduplicationConfig, load_config
from .dedup import ContentDeduplicator, DeduplicationRequest, check_document_exists, deduplicate_documents
from .protocols import (
    DeduplicationResult,
    Document,
    DocumentMetadata,
    DocumentSource,
    DuplicateGroup,
    DuplicateReason,
)

__all__ = [
    "__version__",
    "Config",
    "ConfigurationError",
    "DeduplicationConfig",
    "load_config",
    "ContentDeduplicator",
    "DeduplicationRequest",
    "deduplicate_documents",
    "check_document_exists",
    "DeduplicationResult",
    "Document",
    "DocumentMetadata",
    "DocumentSource",
    "DuplicateGroup",
    "DuplicateReason",
]
