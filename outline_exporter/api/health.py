"""Health check endpoint."""

from fastapi import APIRouter

router = APIRouter()


@router.get("/health")
def health():
    """Liveness probe; does not contact Outline."""
    return {"status": "ok"}
