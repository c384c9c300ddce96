"""Models for scrape results: per-kind fetch results and the cycle snapshot."""

from dataclasses import dataclass, field
from typing import Generic, List, TypeVar

from outline_exporter.models.outline_models import Collection, Document, User

T = TypeVar("T")


@dataclass
class FetchResult(Generic[T]):
    """Items gathered by one pagination run and the error that stopped it."""

    items: List[T] = field(default_factory=list)
    pages: int = 0
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ScrapeSnapshot:
    """Entities and bookkeeping for a single scrape cycle."""

    collections: List[Collection] = field(default_factory=list)
    documents: List[Document] = field(default_factory=list)
    users: List[User] = field(default_factory=list)
    success: bool = True
    error_count: int = 0
    duration_seconds: float = 0.0
