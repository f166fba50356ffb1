from __future__ import annotations

from fastapi import APIRouter

from field_timesheets.modules.exports.api import router as exports_router
from field_timesheets.modules.timesheets.api import router as timesheets_router

router = APIRouter()

router.include_router(timesheets_router, prefix="/api")
router.include_router(exports_router, prefix="/api")


@router.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}
