# spangraph/app/routes_health.py

from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health(request: Request):
    """
    Liveness check.

    - also reports which span graph modules are attached
    """
    runtime = getattr(request.app.state, "runtime", None)
    return {
        "status": "ok",
        "service": "spangraph",
        "gold_attached": bool(runtime and runtime.gold_module.attached),
        "pred_modules": sorted(runtime.pred_modules) if runtime else [],
    }
