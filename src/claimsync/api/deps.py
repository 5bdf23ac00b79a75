from __future__ import annotations

from fastapi import Request

from claimsync.core.context import ClaimsContext


def get_context(request: Request) -> ClaimsContext:
    return request.app.state.claims_context


async def get_raw_body(request: Request) -> bytes:
    # Parsed by the handlers so malformed JSON still gets a 200 failure payload.
    return await request.body()
