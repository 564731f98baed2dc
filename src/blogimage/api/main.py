"""Blog Image Generator - FastAPI Application.

This module defines the HTTP shell around the materialization pipeline: the
FastAPI ``app`` instance, its routes, and the ``main()`` CLI function that
launches the uvicorn server. All real work happens in
:class:`~blogimage.core.materializer.ImageMaterializer`; the routes only
validate input and translate outcomes into HTTP responses.

Endpoints
---------
========  ======================  =========================================
Method    Path                    Purpose
========  ======================  =========================================
GET       ``/api/health``         Liveness and version
GET       ``/api/formats``        Platform presets (optional ``category``)
GET       ``/api/providers``      Registered providers and their state
POST      ``/api/generate``       Generate, tag and save one image
========  ======================  =========================================

Status Codes for ``POST /api/generate``
---------------------------------------
- 200: image generated and saved
- 400: invalid input (also 422 for schema validation failures)
- 502: upstream provider failed or returned no image
- 503: provider not configured
- 500: image generated but could not be saved

Usage
-----
CLI (installed entry point)::

    blog-image-server

Direct invocation::

    python -m blogimage.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse

from blogimage import __version__
from blogimage.api.models import GenerateImageRequest
from blogimage.core.config import BlogImageConfig, config
from blogimage.core.errors import ErrorKind
from blogimage.core.materializer import ImageMaterializer
from blogimage.core.presets import list_presets
from blogimage.providers import ProviderRegistry, build_default_registry

logger = logging.getLogger(__name__)

FORMAT_CATEGORIES = ("blog", "social", "video", "generic")

_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.NOT_CONFIGURED: 503,
    ErrorKind.PROVIDER_FAILURE: 502,
    ErrorKind.EMPTY_IMAGE_DATA: 502,
    ErrorKind.WRITE_FAILURE: 500,
}


def create_app(
    app_config: BlogImageConfig | None = None,
    registry: ProviderRegistry | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        app_config: Configuration snapshot. Defaults to the global ``config``.
        registry: Provider registry. Defaults to
            :func:`~blogimage.providers.build_default_registry`.

    Returns:
        A configured FastAPI instance.
    """
    app_config = app_config or config
    registry = registry or build_default_registry(app_config)

    # -----------------------------------------------------------------------
    # Application lifecycle.
    # -----------------------------------------------------------------------

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configured = registry.list_configured()
        if configured:
            logger.info(f"Configured providers: {', '.join(configured)}")
        else:
            logger.warning("No providers configured. Set GOOGLE_API_KEY.")
        yield
        logger.info("Blog Image API shut down.")

    app = FastAPI(
        title="Blog Image Generator",
        description="Generate blog and social media images with embedded provenance metadata.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = app_config
    app.state.registry = registry
    app.state.materializer = ImageMaterializer(registry, app_config)

    # -----------------------------------------------------------------------
    # Routes.
    # -----------------------------------------------------------------------

    @app.get("/api/health")
    async def health() -> dict:
        """Return service liveness and version."""
        return {"status": "ok", "version": __version__}

    @app.get("/api/formats")
    async def get_formats(category: str | None = None) -> dict:
        """List the available platform presets.

        Args:
            category: Optional filter (``blog``, ``social``, ``video`` or
                ``generic``).

        Returns:
            Dictionary with a ``formats`` list; each entry is the preset plus
            its ``key``.

        Raises:
            HTTPException: 400 for an unknown category.
        """
        if category is not None and category not in FORMAT_CATEGORIES:
            raise HTTPException(
                status_code=400,
                detail=f"Unknown category: {category}. Available: {', '.join(FORMAT_CATEGORIES)}",
            )
        return {
            "formats": [
                {"key": key, **preset.model_dump()} for key, preset in list_presets(category)
            ]
        }

    @app.get("/api/providers")
    async def get_providers() -> dict:
        """List registered providers with their configuration state."""
        providers = []
        for name in registry.list_available():
            provider = registry.create(name)
            max_width, max_height = provider.get_max_resolution()
            providers.append(
                {
                    "name": name,
                    "configured": provider.is_configured(),
                    "aspect_ratios": provider.get_supported_aspect_ratios(),
                    "max_resolution": {"width": max_width, "height": max_height},
                }
            )
        return {"providers": providers}

    @app.post("/api/generate")
    async def generate_image(req: GenerateImageRequest) -> JSONResponse:
        """Generate an image, embed provenance metadata and save it.

        Args:
            req: Validated :class:`GenerateImageRequest` payload.

        Returns:
            The :class:`~blogimage.core.models.GenerationResult` as JSON, with
            an HTTP status reflecting the outcome.
        """
        materializer: ImageMaterializer = app.state.materializer
        outcome = await materializer.materialize(req.to_generation_request())
        result = outcome.to_result()

        status_code = 200
        if not result.success and result.error_kind is not None:
            status_code = _STATUS_BY_KIND.get(result.error_kind, 500)
            logger.warning(f"Generation failed ({result.error_kind.value}): {result.error}")

        return JSONResponse(status_code=status_code, content=result.model_dump(mode="json"))

    return app


app = create_app()


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host and port from :data:`~blogimage.core.config.config`
    (``BLOGIMAGE_SERVER_HOST`` and ``BLOGIMAGE_SERVER_PORT``). Defaults to
    ``127.0.0.1:8000``.
    """
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    uvicorn.run(
        "blogimage.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
