"""Scrape orchestration: one Outline scrape per metrics pull."""

import threading
import time
from typing import Callable, Iterator, List

import logfire
from prometheus_client import CollectorRegistry, Gauge, generate_latest
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric
from prometheus_client.registry import Collector

from outline_exporter.config import Settings
from outline_exporter.constants import METRIC_PREFIX
from outline_exporter.models.scrape_models import ScrapeSnapshot
from outline_exporter.services.aggregator import build_snapshot, snapshot_metrics
from outline_exporter.services.outline_client import OutlineClient
from outline_exporter.services.timing import OperationTimer


class OutlineCollector:
    """Run scrape cycles against Outline and produce metric families.

    The collector owns the process-lifetime metrics (error counter and
    duration gauge). Everything else is rebuilt from scratch on every
    scrape, so overlapping scrapes share no other state.
    """

    def __init__(
        self,
        settings: Settings,
        client_factory: Callable[[], OutlineClient] | None = None,
    ):
        """
        Initialize collector.

        Args:
            settings: Application settings
            client_factory: Builds the OutlineClient for a cycle (tests inject one)
        """
        self.settings = settings
        self._client_factory = client_factory or (lambda: OutlineClient(settings))

        # Exported as a CounterMetricFamily, without a _created sample
        self._scrape_errors = 0
        self._errors_lock = threading.Lock()

        # registry=None: exported explicitly at the end of each scrape
        self.scrape_duration_seconds = Gauge(
            f"{METRIC_PREFIX}_scrape_duration_seconds",
            "Duration of the scrape",
            registry=None,
        )

    @property
    def scrape_errors_total(self) -> int:
        """Scrape errors counted since the collector was created."""
        with self._errors_lock:
            return self._scrape_errors

    def _record_error(self) -> None:
        with self._errors_lock:
            self._scrape_errors += 1

    async def scrape(self) -> tuple[ScrapeSnapshot, List[Metric]]:
        """
        Run one full scrape cycle.

        Collections, documents and users are fetched one after the other.
        A failed kind counts one error and contributes whatever items it
        gathered before failing; the other kinds are still fetched.

        Returns:
            The cycle snapshot and every metric family to expose
        """
        start_time = time.monotonic()
        success = True
        error_count = 0

        async with self._client_factory() as client:
            fetchers = (
                ("collections", client.fetch_all_collections),
                ("documents", client.fetch_all_documents),
                ("users", client.fetch_all_users),
            )
            results = {}
            for kind, fetch in fetchers:
                timer = OperationTimer(f"fetch_{kind}", kind=kind).start()
                result = await fetch()
                if result.ok:
                    timer.success(item_count=len(result.items), pages=result.pages)
                else:
                    timer.error(result.error, items_recovered=len(result.items))
                    self._record_error()
                    error_count += 1
                    success = False
                results[kind] = result.items

        snapshot = build_snapshot(
            results["collections"], results["documents"], results["users"]
        )
        snapshot.success = success
        snapshot.error_count = error_count

        families: List[Metric] = [
            GaugeMetricFamily(
                f"{METRIC_PREFIX}_up",
                "Was the last Outline scrape successful",
                value=1 if success else 0,
            )
        ]
        if success:
            families.append(
                GaugeMetricFamily(
                    f"{METRIC_PREFIX}_scrape_success_timestamp",
                    "Timestamp of the last successful scrape",
                    value=int(time.time()),
                )
            )

        families.extend(snapshot_metrics(snapshot))

        snapshot.duration_seconds = time.monotonic() - start_time
        self.scrape_duration_seconds.set(snapshot.duration_seconds)
        families.extend(self.scrape_duration_seconds.collect())
        families.append(
            CounterMetricFamily(
                f"{METRIC_PREFIX}_scrape_errors",
                "Total number of scrape errors",
                value=self.scrape_errors_total,
            )
        )

        logfire.info(
            "Scrape completed",
            success=success,
            error_count=error_count,
            collections=len(snapshot.collections),
            documents=len(snapshot.documents),
            users=len(snapshot.users),
            duration_seconds=snapshot.duration_seconds,
        )
        return snapshot, families


class SnapshotCollector(Collector):
    """prometheus_client collector serving pre-built metric families."""

    def __init__(self, families: List[Metric]):
        self._families = families

    def collect(self) -> Iterator[Metric]:
        return iter(self._families)


def render_metrics(families: List[Metric]) -> bytes:
    """Render metric families in the Prometheus text exposition format."""
    registry = CollectorRegistry(auto_describe=False)
    registry.register(SnapshotCollector(families))
    return generate_latest(registry)
