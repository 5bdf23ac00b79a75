from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from claimsync.api.deps import get_context, get_raw_body
from claimsync.core.context import ClaimsContext
from claimsync.modules.endpoint.service import dispatch, status_payload

router = APIRouter(tags=["endpoint"])


@router.get("/")
def status_endpoint() -> dict[str, Any]:
    return status_payload()


@router.post("/")
def dispatch_endpoint(
    body: bytes = Depends(get_raw_body),
    ctx: ClaimsContext = Depends(get_context),
) -> dict[str, Any]:
    return dispatch(ctx, body)
