import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rewriter.application import RewriteJobService, configure_reference_store, configure_rewrite_jobs
from rewriter.infrastructure import AnthropicRewriteService, build_reference_store, configure_rewrite_service
from rewriter.infrastructure.anthropic import DEFAULT_MAX_TOKENS, DEFAULT_MODEL
from rewriter.logging import configure_logging, get_logger
from rewriter.routes import documents, references, rewrite
from rewriter.workers.rewrite_client import RemoteRewriteClient

logger = get_logger(__name__)


def create_app() -> FastAPI:
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    api_key = os.getenv("ANTHROPIC_API_KEY")
    service: AnthropicRewriteService | None = None
    if api_key:
        service = AnthropicRewriteService(
            api_key,
            api_base=os.getenv("ANTHROPIC_API_BASE") or "https://api.anthropic.com",
            max_tokens=int(os.getenv("ANTHROPIC_MAX_TOKENS") or DEFAULT_MAX_TOKENS),
        )
        configure_rewrite_service(service)
    else:
        configure_rewrite_service(None)
        logger.warning("ANTHROPIC_API_KEY is not set; rewrite jobs will be rejected")

    model = os.getenv("ANTHROPIC_MODEL") or DEFAULT_MODEL
    configure_rewrite_jobs(RewriteJobService(RemoteRewriteClient(), default_model=model))
    store = build_reference_store()
    configure_reference_store(store)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        yield
        if service is not None:
            await service.aclose()
        store.close()
        logger.info("released rewrite service and reference store clients")

    app = FastAPI(title="Document Rewriter API", version="0.1.0", lifespan=lifespan)

    origins_env = os.getenv("API_CORS_ORIGINS", "")
    origins = [origin.strip() for origin in origins_env.split(",") if origin.strip()]
    if not origins:
        origins = ["http://localhost:3000", "http://127.0.0.1:3000"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(references.router, prefix="/api")
    app.include_router(documents.router, prefix="/api")
    app.include_router(rewrite.router, prefix="/api")

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Provide a lightweight landing page for container checks."""
        return JSONResponse(
            {
                "message": "Document Rewriter API",
                "docs": "/docs",
                "references": "/api/references",
            }
        )

    return app


app = create_app()
