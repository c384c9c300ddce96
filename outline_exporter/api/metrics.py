"""Prometheus metrics endpoint.

Every GET runs one scrape cycle against Outline and returns the result
in the Prometheus text exposition format.
"""

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST

from outline_exporter.services.collector import OutlineCollector, render_metrics


async def metrics(request: Request) -> Response:
    """Scrape Outline and expose the resulting metrics."""
    collector: OutlineCollector = request.app.state.collector
    _, families = await collector.scrape()
    return Response(content=render_metrics(families), media_type=CONTENT_TYPE_LATEST)


def build_metrics_router(metrics_path: str) -> APIRouter:
    """Router serving metrics on the configured path."""
    router = APIRouter()
    router.add_api_route(
        metrics_path,
        metrics,
        methods=["GET"],
        include_in_schema=False,
    )
    return router
