"""
Health check endpoint.

Unauthenticated. Used by the load balancer and deploy checks.
"""

from fastapi import APIRouter

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    return {"status": "ok"}
