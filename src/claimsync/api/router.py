from __future__ import annotations

from fastapi import APIRouter

from claimsync.modules.endpoint.api import router as endpoint_router
from claimsync.modules.submissions.api import router as submissions_router

router = APIRouter()

router.include_router(endpoint_router)
router.include_router(submissions_router)


@router.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}
