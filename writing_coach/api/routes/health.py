from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(request: Request) -> dict:
    """Liveness check used by load balancers and monitoring.

    Returns:
        dict: ``status`` is always "ok"; ``persistence`` reports whether the
            record store is available or degraded to a no-op.
    """
    services = getattr(request.app.state, "services", None)
    store_ok = bool(services and services.store.available)
    return {"status": "ok", "persistence": "available" if store_ok else "degraded"}
