"""
Unit tests for existence checks against the document store.
"""

from datetime import datetime, timezone

import pytest
from docdedup.dedup.existence import ExistenceChecker
from docdedup.dedup.hasher import ContentHasher
from docdedup.observability.metrics import METRICS
from docdedup.protocols import DocumentSource, ExistingDocumentRef

from tests.helpers.metric_delta import metric_delta


class FailingStore:
    """Store whose lookups always raise."""

    def __init__(self):
        self.calls = 0

    async def find_by_checksum(self, checksum):
        self.calls += 1
        raise ConnectionError("store unavailable")


class StaticStore:
    """Store that returns one fixed reference for any checksum."""

    def __init__(self, ref):
        self.ref = ref
        self.checksums = []

    async def find_by_checksum(self, checksum):
        self.checksums.append(checksum)
        return self.ref


@pytest.mark.unit
class TestExistenceChecker:
    """Test lookups, annotation and fail-open behaviour."""

    @pytest.mark.asyncio
    async def test_hit_annotates_document(self, make_document, padded, document_store):
        doc = make_document(padded("stored body"), DocumentSource.WEB, url="https://example.com/a/")
        checksum = ContentHasher().fingerprint(doc.content, doc.url)
        await document_store.add_document(doc, checksum)

        with metric_delta(METRICS["existence_checks"], 1, outcome="hit"):
            match = await ExistenceChecker(document_store).check_existing(doc)

        assert match is not None
        assert match.id == doc.id
        assert match.content == doc.content
        assert match.metadata.checksum == checksum
        assert match.metadata.existing.id == doc.id
        assert match.metadata.existing.source is DocumentSource.WEB
        assert match.metadata.url == doc.url
        assert doc.metadata.checksum is None

    @pytest.mark.asyncio
    async def test_hit_uses_canonical_url(self, make_document, padded, document_store):
        stored = make_document(padded("mirrored"), DocumentSource.WEB, url="https://example.com/page")
        await document_store.add_document(stored, ContentHasher().fingerprint(stored.content, stored.url))
        incoming = make_document(padded("mirrored"), DocumentSource.WEB, url="https://EXAMPLE.com/Page#top")

        match = await ExistenceChecker(document_store).check_existing(incoming)

        assert match is not None
        assert match.metadata.existing.id == stored.id

    @pytest.mark.asyncio
    async def test_miss_returns_none(self, make_document, padded, document_store):
        with metric_delta(METRICS["existence_checks"], 1, outcome="miss"):
            result = await ExistenceChecker(document_store).check_existing(make_document(padded("fresh")))

        assert result is None

    @pytest.mark.asyncio
    async def test_store_failure_is_treated_as_absent(self, make_document, padded):
        store = FailingStore()

        with metric_delta(METRICS["existence_checks"], 1, outcome="error"):
            result = await ExistenceChecker(store).check_existing(make_document(padded("anything")))

        assert result is None
        assert store.calls == 1

    @pytest.mark.asyncio
    async def test_lookup_uses_configured_algorithm(self, make_document):
        store = StaticStore(None)
        doc = make_document("body text", url="https://example.com/x")

        await ExistenceChecker(store, ContentHasher("md5")).check_existing(doc)

        assert store.checksums == [ContentHasher("md5").fingerprint(doc.content, doc.url)]
        assert len(store.checksums[0]) == 32

    @pytest.mark.asyncio
    async def test_preserve_metadata_fills_missing_timestamp(self, make_document):
        stored_at = datetime(2021, 6, 1, tzinfo=timezone.utc)
        store = StaticStore(ExistingDocumentRef(id="stored-1", last_modified=stored_at))
        doc = make_document("body text", last_modified=None)

        match = await ExistenceChecker(store).check_existing(doc)

        assert match.metadata.last_modified == stored_at

    @pytest.mark.asyncio
    async def test_preserve_metadata_keeps_own_timestamp(self, make_document):
        stored_at = datetime(2021, 6, 1, tzinfo=timezone.utc)
        store = StaticStore(ExistingDocumentRef(id="stored-1", last_modified=stored_at))
        doc = make_document("body text")

        match = await ExistenceChecker(store).check_existing(doc)

        assert match.metadata.last_modified == doc.metadata.last_modified

    @pytest.mark.asyncio
    async def test_metadata_not_preserved_when_disabled(self, make_document):
        stored_at = datetime(2021, 6, 1, tzinfo=timezone.utc)
        store = StaticStore(ExistingDocumentRef(id="stored-1", last_modified=stored_at))
        doc = make_document("body text", last_modified=None)

        match = await ExistenceChecker(store, preserve_metadata=False).check_existing(doc)

        assert match.metadata.last_modified is None
        assert match.metadata.existing.id == "stored-1"

    @pytest.mark.asyncio
    async def test_check_many_preserves_order(self, make_document, padded, document_store):
        docs = [make_document(padded(f"body {i}")) for i in range(3)]
        await document_store.add_document(docs[1], ContentHasher().fingerprint(docs[1].content))

        results = await ExistenceChecker(document_store).check_many(docs)

        assert results[0] is None
        assert results[1].id == docs[1].id
        assert results[2] is None
