from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from claimsync.api.deps import get_context, get_raw_body
from claimsync.core.context import ClaimsContext
from claimsync.modules.endpoint.service import handle_form_submit

router = APIRouter(tags=["submissions"])


@router.post("/hooks/form-submit")
def form_submit_endpoint(
    body: bytes = Depends(get_raw_body),
    ctx: ClaimsContext = Depends(get_context),
) -> dict[str, Any]:
    return handle_form_submit(ctx, body)
