from __future__ import annotations

from fastapi import APIRouter

from ..services.system import host_summary

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok", "detail": host_summary()}
