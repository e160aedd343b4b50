"""Creative Design — FastAPI Application.

This module defines the application factory, all REST API routes, and the
``main()`` CLI function that launches the uvicorn server.

Architecture
------------
- **Services** (rate limiter, orchestrator, design repository, draft cache)
  are constructed once per application in the lifespan handler from the
  config passed to :func:`create_app` and stored on ``app.state``.  There
  are no module-level service singletons, so every test builds a fresh app.
- **One rate limiter** guards the generation backend for every caller of
  the application.
- **Errors** raised as :class:`DesignError` are turned into JSON bodies
  ``{kind, message, retryable, details}`` by a single exception handler.

Endpoints
---------
========  ====================================  ================================
Method    Path                                  Purpose
========  ====================================  ================================
GET       ``/api/config``                       Styles, aspect ratios, limits
POST      ``/api/designs/generate``             Generate and store a design
GET       ``/api/designs``                      All designs, oldest first
GET       ``/api/designs/{id}``                 Single design
PUT       ``/api/designs/{id}``                 Replace a design
DELETE    ``/api/designs/{id}``                 Delete a design
DELETE    ``/api/designs``                      Delete every design
GET       ``/api/artifacts/{id}/designs``       Designs of one artifact
GET       ``/api/stats``                        Design counts
GET       ``/api/drafts/{artifact_id}``         Restore the draft
PUT       ``/api/drafts/{artifact_id}``         Save draft fields
DELETE    ``/api/drafts/{artifact_id}``         Discard the draft
GET       ``/api/rate-limit``                   Limiter status
POST      ``/api/rate-limit/reset``             Administrative limiter reset
========  ====================================  ================================

Usage
-----
CLI (installed entry point)::

    creative-design

Direct invocation::

    python -m creative_design.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from creative_design import __version__
from creative_design.api.models import DraftUpdateRequest, GenerateDesignRequest, RateLimitStatus
from creative_design.core.config import CreativeDesignConfig
from creative_design.core.design_repository import DesignRepository
from creative_design.core.draft_cache import DraftStateCache, JsonFileKeyValueStore
from creative_design.core.errors import DesignError, DesignErrorType
from creative_design.core.generation_client import EchoGenerationClient, GenerationClient
from creative_design.core.models import STYLE_DESCRIPTIONS, GeneratedDesign
from creative_design.core.orchestrator import GenerationOrchestrator
from creative_design.core.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# DesignError kind -> HTTP status.
# ---------------------------------------------------------------------------
_STATUS_BY_KIND: dict[DesignErrorType, int] = {
    DesignErrorType.INVALID_PROMPT: 400,
    DesignErrorType.SCREENSHOT_FAILED: 400,
    DesignErrorType.AUTHENTICATION_ERROR: 401,
    DesignErrorType.CONTENT_POLICY_ERROR: 422,
    DesignErrorType.RATE_LIMIT_EXCEEDED: 429,
    DesignErrorType.QUOTA_EXCEEDED: 429,
    DesignErrorType.STORAGE_ERROR: 500,
    DesignErrorType.API_ERROR: 502,
    DesignErrorType.NETWORK_ERROR: 502,
    DesignErrorType.TIMEOUT_ERROR: 504,
}


@dataclass
class Services:
    """Explicit service instances shared by every request of one app."""

    config: CreativeDesignConfig
    rate_limiter: RateLimiter
    orchestrator: GenerationOrchestrator
    repository: DesignRepository
    drafts: DraftStateCache


def build_services(
    cfg: CreativeDesignConfig,
    generation_client: GenerationClient | None = None,
) -> Services:
    """Construct the service graph from configuration.

    Args:
        cfg: Application configuration.
        generation_client: Image backend.  Defaults to the echo backend.

    Returns:
        Wired services.
    """
    rate_limiter = RateLimiter(cfg.rate_limit_config())
    orchestrator = GenerationOrchestrator(
        cfg,
        rate_limiter,
        generation_client or EchoGenerationClient(),
    )
    repository = DesignRepository(cfg.designs_db_path)
    drafts = DraftStateCache(
        JsonFileKeyValueStore(cfg.drafts_dir),
        storage_key=cfg.draft_storage_key,
        expiration_hours=cfg.draft_expiration_hours,
        max_storage_bytes=cfg.draft_max_storage_bytes,
    )
    return Services(
        config=cfg,
        rate_limiter=rate_limiter,
        orchestrator=orchestrator,
        repository=repository,
        drafts=drafts,
    )


def _services(request: Request) -> Services:
    return request.app.state.services


def create_app(
    cfg: CreativeDesignConfig | None = None,
    generation_client: GenerationClient | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        cfg: Configuration; a fresh :class:`CreativeDesignConfig` is loaded
            from the environment when omitted.
        generation_client: Image backend injected into the orchestrator.

    Returns:
        The application.  Services are created when its lifespan starts.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # --- Startup -------------------------------------------------------
        app.state.services = build_services(cfg or CreativeDesignConfig(), generation_client)
        logger.info("Creative design services initialised.")

        yield  # Application runs here.

        # --- Shutdown ------------------------------------------------------
        logger.info("Creative design services stopped.")

    app = FastAPI(
        title="Creative Design Studio",
        description="AI creative design generation for 3D gallery artifacts.",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(DesignError)
    async def design_error_handler(request: Request, exc: DesignError) -> JSONResponse:
        status = _STATUS_BY_KIND.get(exc.kind, 500)
        headers = None
        if exc.kind == DesignErrorType.RATE_LIMIT_EXCEEDED and exc.details:
            wait_seconds = max(1, -(-int(exc.details.get("wait_time_ms", 0)) // 1000))
            headers = {"Retry-After": str(wait_seconds)}
        return JSONResponse(status_code=status, content=exc.to_dict(), headers=headers)

    _register_routes(app)
    return app


def _register_routes(app: FastAPI) -> None:
    """Attach every route to ``app``."""

    @app.get("/api/config")
    async def get_config(request: Request) -> dict:
        """Return the options and limits the design panel needs."""
        cfg = _services(request).config
        return {
            "version": __version__,
            "styles": [
                {"id": style.value, "description": description}
                for style, description in STYLE_DESCRIPTIONS.items()
            ],
            "default_style": cfg.default_style.value,
            "aspect_ratios": cfg.aspect_ratios,
            "default_aspect_ratio": cfg.default_aspect_ratio,
            "prompt_min_length": cfg.prompt_min_length,
            "prompt_max_length": cfg.prompt_max_length,
            "max_reference_image_bytes": cfg.max_reference_image_bytes,
            "supported_image_formats": cfg.supported_image_formats,
        }

    @app.post("/api/designs/generate")
    async def generate_design(req: GenerateDesignRequest, request: Request) -> dict:
        """Generate a design, store it, and discard the submitted draft.

        Raises:
            DesignError: Any generation or storage failure.
        """
        services = _services(request)
        design = await services.orchestrator.generate(
            req.request, req.artifact_id, req.artifact_title
        )
        await services.repository.save(design)
        if services.drafts.load(req.artifact_id) is not None:
            services.drafts.clear()
        return design.model_dump(mode="json")

    @app.get("/api/designs")
    async def list_designs(request: Request) -> dict:
        designs = await _services(request).repository.get_all()
        return {"total": len(designs), "designs": [d.model_dump(mode="json") for d in designs]}

    @app.get("/api/designs/{design_id}")
    async def get_design(design_id: str, request: Request) -> dict:
        design = await _services(request).repository.get(design_id)
        if design is None:
            raise HTTPException(status_code=404, detail="Design not found")
        return design.model_dump(mode="json")

    @app.put("/api/designs/{design_id}")
    async def update_design(design_id: str, design: GeneratedDesign, request: Request) -> dict:
        """Replace the stored design with ``design``."""
        if design.id != design_id:
            raise HTTPException(status_code=400, detail="Design id does not match the URL")
        await _services(request).repository.update(design)
        return design.model_dump(mode="json")

    @app.delete("/api/designs/{design_id}")
    async def delete_design(design_id: str, request: Request) -> dict:
        deleted = await _services(request).repository.delete(design_id)
        if not deleted:
            raise HTTPException(status_code=404, detail="Design not found")
        return {"success": True, "deleted": design_id}

    @app.delete("/api/designs")
    async def clear_designs(request: Request) -> dict:
        await _services(request).repository.clear()
        return {"success": True}

    @app.get("/api/artifacts/{artifact_id}/designs")
    async def list_artifact_designs(artifact_id: str, request: Request) -> dict:
        designs = await _services(request).repository.get_by_owner(artifact_id)
        return {
            "artifact_id": artifact_id,
            "total": len(designs),
            "designs": [d.model_dump(mode="json") for d in designs],
        }

    @app.get("/api/stats")
    async def get_stats(request: Request) -> dict:
        """Return the design total and a per-artifact breakdown."""
        designs = await _services(request).repository.get_all()

        artifact_counts: dict[str, int] = {}
        for design in designs:
            owner = design.owner_artifact_id
            artifact_counts[owner] = artifact_counts.get(owner, 0) + 1

        return {"total_designs": len(designs), "artifact_counts": artifact_counts}

    @app.get("/api/drafts/{artifact_id}")
    async def get_draft(artifact_id: str, request: Request) -> dict:
        draft = _services(request).drafts.load(artifact_id)
        return {"draft": draft.model_dump(mode="json") if draft else None}

    @app.put("/api/drafts/{artifact_id}")
    async def save_draft(artifact_id: str, body: DraftUpdateRequest, request: Request) -> dict:
        draft = _services(request).drafts.save(
            artifact_id,
            screenshot=body.screenshot,
            prompt=body.prompt,
            style=body.style,
            aspect_ratio=body.aspect_ratio,
        )
        return {"draft": draft.model_dump(mode="json")}

    @app.delete("/api/drafts/{artifact_id}")
    async def delete_draft(artifact_id: str, request: Request) -> dict:
        _services(request).drafts.clear()
        return {"success": True}

    @app.get("/api/rate-limit", response_model=RateLimitStatus)
    async def get_rate_limit(request: Request) -> RateLimitStatus:
        limiter = _services(request).rate_limiter
        return RateLimitStatus(
            remaining=limiter.remaining(),
            max_requests=limiter.config.max_requests,
            window_ms=limiter.config.window_ms,
            time_until_reset_ms=limiter.time_until_reset(),
        )

    @app.post("/api/rate-limit/reset")
    async def reset_rate_limit(request: Request) -> dict:
        _services(request).rate_limiter.reset()
        return {"success": True}


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from ``CREATIVE_DESIGN_*`` environment
    variables.  Defaults to ``0.0.0.0:7861``.

    This function is registered as the ``creative-design`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    from creative_design.core.config import config

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    uvicorn.run(
        create_app(config),
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
