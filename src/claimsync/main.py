from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from claimsync.api.router import router as api_router
from claimsync.bootstrap import bootstrap
from claimsync.core.config import VERSION, Settings, settings as default_settings
from claimsync.core.context import ClaimsContext
from claimsync.core.logging import RequestContextMiddleware


def create_app(
    settings: Settings | None = None, *, context: ClaimsContext | None = None
) -> FastAPI:
    ctx = context or ClaimsContext(settings or default_settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        bootstrap(ctx)
        yield
        ctx.close()

    app = FastAPI(title="Claimsync", version=VERSION, lifespan=lifespan)
    app.state.claims_context = ctx
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ctx.settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )
    app.include_router(api_router)
    return app


app = create_app()
