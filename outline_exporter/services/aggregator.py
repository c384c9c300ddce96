"""Snapshot aggregation: joins fetched entities and turns them into metrics."""

from collections import Counter
from datetime import datetime, timezone
from typing import Iterable, List, Sequence

import logfire
from prometheus_client.core import GaugeMetricFamily, Metric

from outline_exporter.constants import METRIC_PREFIX
from outline_exporter.models.outline_models import Collection, Document, User
from outline_exporter.models.scrape_models import ScrapeSnapshot

COLLECTION_LABELS = ["collection_id", "collection_name"]
DOCUMENT_LABELS = ["document_id", "collection_id"]


def _name(suffix: str) -> str:
    return f"{METRIC_PREFIX}_{suffix}"


def deduplicate_documents(documents: Sequence[Document]) -> List[Document]:
    """
    Collapse documents sharing (id, collection id) to their first occurrence.

    Order of first appearance is preserved. Duplicates are logged as a
    warning, they are not an error.
    """
    unique: dict[tuple[str, str], Document] = {}
    for document in documents:
        unique.setdefault(document.dedup_key, document)

    deduplicated = list(unique.values())
    duplicate_count = len(documents) - len(deduplicated)
    if duplicate_count:
        logfire.warn(
            "Duplicate documents removed",
            duplicate_count=duplicate_count,
            raw_count=len(documents),
            unique_count=len(deduplicated),
        )
    return deduplicated


def count_documents_per_collection(
    collections: Iterable[Collection], documents: Iterable[Document]
) -> dict[str, int]:
    """Number of documents per fetched collection, zero when none match."""
    tally = Counter(document.collection_id for document in documents)
    return {collection.id: tally.get(collection.id, 0) for collection in collections}


def age_seconds(timestamp: datetime, now: datetime) -> float:
    """Seconds elapsed since timestamp; negative under clock skew."""
    return (now - timestamp).total_seconds()


def build_snapshot(
    collections: Sequence[Collection],
    documents: Sequence[Document],
    users: Sequence[User],
) -> ScrapeSnapshot:
    """Assemble a cycle snapshot with de-duplicated documents."""
    return ScrapeSnapshot(
        collections=list(collections),
        documents=deduplicate_documents(documents),
        users=list(users),
    )


def collection_metrics(
    collections: Sequence[Collection],
    documents: Sequence[Document],
    now: datetime,
) -> List[Metric]:
    """Collection totals, per-collection document counts and ages."""
    total = GaugeMetricFamily(
        _name("collections_total"), "Total number of collections"
    )
    total.add_metric([], len(collections))

    counts = GaugeMetricFamily(
        _name("collection_documents_count"),
        "Number of documents in a collection",
        labels=COLLECTION_LABELS,
    )
    ages = GaugeMetricFamily(
        _name("collection_age_seconds"),
        "Age of collection in seconds",
        labels=COLLECTION_LABELS,
    )

    per_collection = count_documents_per_collection(collections, documents)
    for collection in collections:
        labels = [collection.id, collection.name]
        counts.add_metric(labels, per_collection[collection.id])
        ages.add_metric(labels, age_seconds(collection.created_at, now))

    return [total, counts, ages]


def document_metrics(documents: Sequence[Document], now: datetime) -> List[Metric]:
    """Document totals and per-document revisions, views, ages and sizes."""
    total = GaugeMetricFamily(_name("documents_total"), "Total number of documents")
    total.add_metric([], len(documents))

    revisions = GaugeMetricFamily(
        _name("document_revisions"),
        "Number of revisions for a document",
        labels=DOCUMENT_LABELS,
    )
    views = GaugeMetricFamily(
        _name("document_views"),
        "Number of views for a document",
        labels=DOCUMENT_LABELS,
    )
    ages = GaugeMetricFamily(
        _name("document_age_seconds"),
        "Age of document in seconds",
        labels=DOCUMENT_LABELS,
    )
    sizes = GaugeMetricFamily(
        _name("document_size_bytes"),
        "Size of document text in bytes",
        labels=DOCUMENT_LABELS,
    )
    update_ages = GaugeMetricFamily(
        _name("document_update_age_seconds"),
        "Time since last document update in seconds",
        labels=DOCUMENT_LABELS,
    )

    for document in documents:
        labels = [document.id, document.collection_id]
        revisions.add_metric(labels, document.revision)
        views.add_metric(labels, document.views)
        ages.add_metric(labels, age_seconds(document.created_at, now))
        sizes.add_metric(labels, document.size_bytes)
        update_ages.add_metric(labels, age_seconds(document.updated_at, now))

    return [total, revisions, views, ages, sizes, update_ages]


def user_metrics(users: Sequence[User]) -> List[Metric]:
    """User totals. Per-user series are not exported."""
    total = GaugeMetricFamily(_name("users_total"), "Total number of users")
    total.add_metric([], len(users))
    return [total]


def snapshot_metrics(
    snapshot: ScrapeSnapshot, now: datetime | None = None
) -> List[Metric]:
    """
    Build the entity metric families for one scrape.

    A family group is only emitted when its entity list is non-empty.

    Args:
        snapshot: Snapshot with de-duplicated documents
        now: Reference time for ages (defaults to the current UTC time)

    Returns:
        Metric families ready for a prometheus_client collector
    """
    now = now or datetime.now(timezone.utc)
    families: List[Metric] = []

    if snapshot.collections:
        families.extend(collection_metrics(snapshot.collections, snapshot.documents, now))
    else:
        logfire.info("No collections data to export")

    if snapshot.documents:
        families.extend(document_metrics(snapshot.documents, now))
    else:
        logfire.info("No documents data to export")

    if snapshot.users:
        families.extend(user_metrics(snapshot.users))
    else:
        logfire.info("No users data to export")

    return families
