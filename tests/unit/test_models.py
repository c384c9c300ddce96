"""Tests for Outline API models."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from conftest import make_collection, make_document, page_payload
from outline_exporter.models.outline_models import (
    EPOCH_ZERO,
    Collection,
    Document,
    DocumentsPage,
    User,
    UsersPage,
)
from outline_exporter.models.scrape_models import FetchResult, ScrapeSnapshot


class TestDocument:
    """Test Document decoding."""

    def test_document_from_api_payload(self):
        """Test camelCase fields map onto the model."""
        document = Document.model_validate(
            make_document("d1", "c1", views=7, revision=3, text="abc")
        )

        assert document.id == "d1"
        assert document.collection_id == "c1"
        assert document.views == 7
        assert document.revision == 3
        assert document.created_at.tzinfo is not None

    def test_null_timestamps_decode_to_epoch_zero(self):
        """Test that null archivedAt/deletedAt do not fail decoding."""
        document = Document.model_validate(make_document("d1", "c1"))

        assert document.archived_at == EPOCH_ZERO
        assert document.deleted_at == EPOCH_ZERO

    def test_missing_fields_use_defaults(self):
        """Test a minimal payload decodes with neutral defaults."""
        document = Document.model_validate({"id": "d1"})

        assert document.text == ""
        assert document.views == 0
        assert document.revision == 0
        assert document.collection_id == ""
        assert document.created_at == EPOCH_ZERO

    def test_null_counts_and_strings_use_defaults(self):
        """Test explicit nulls for non-timestamp fields fall back to defaults."""
        document = Document.model_validate(
            {"id": "d1", "views": None, "text": None, "collectionId": None}
        )

        assert document.views == 0
        assert document.text == ""
        assert document.collection_id == ""

    def test_missing_id_is_rejected(self):
        """Test that an entity without an id fails validation."""
        with pytest.raises(ValidationError):
            Document.model_validate({"title": "no id"})

        with pytest.raises(ValidationError):
            Document.model_validate({"id": None})

    def test_size_bytes_counts_utf8_bytes(self):
        """Test that multi-byte characters count by encoded length."""
        document = Document.model_validate({"id": "d1", "text": "héllo €"})

        assert document.size_bytes == len("héllo €".encode("utf-8"))
        assert document.size_bytes > len("héllo €")

    def test_naive_timestamps_assumed_utc(self):
        """Test that timestamps without offset are treated as UTC."""
        document = Document.model_validate(
            {"id": "d1", "createdAt": "2024-01-01T00:00:00"}
        )

        assert document.created_at == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_dedup_key(self):
        document = Document.model_validate(make_document("d1", "c1"))
        assert document.dedup_key == ("d1", "c1")


class TestCollectionAndUser:
    """Test Collection and User decoding."""

    def test_collection_ignores_unknown_fields(self):
        payload = make_collection("c1", name="Engineering")
        payload["permission"] = "read_write"

        collection = Collection.model_validate(payload)

        assert collection.name == "Engineering"
        assert not hasattr(collection, "permission")

    def test_user_last_active(self):
        user = User.model_validate(
            {"id": "u1", "name": "Ada", "lastActiveAt": "2024-05-01T10:00:00.000Z"}
        )

        assert user.last_active_at == datetime(2024, 5, 1, 10, tzinfo=timezone.utc)
        assert user.created_at == EPOCH_ZERO


class TestPage:
    """Test generic page decoding."""

    def test_page_from_json(self):
        page = DocumentsPage.model_validate(
            page_payload([make_document("d1", "c1")], limit=25, next_path="/next")
        )

        assert len(page.data) == 1
        assert isinstance(page.data[0], Document)
        assert page.pagination.limit == 25
        assert page.pagination.next_path == "/next"

    def test_page_null_data_and_missing_pagination(self):
        page = UsersPage.model_validate_json('{"data": null}')

        assert page.data == []
        assert page.pagination.next_path == ""


class TestScrapeModels:
    """Test scrape bookkeeping models."""

    def test_fetch_result_ok(self):
        assert FetchResult().ok
        assert not FetchResult(error=RuntimeError("boom")).ok

    def test_snapshot_defaults(self):
        snapshot = ScrapeSnapshot()

        assert snapshot.success is True
        assert snapshot.error_count == 0
        assert snapshot.documents == []
