"""
SuperAgent Model Service - FastAPI application.

`create_app(service)` builds an app around an explicitly owned
ModelService. Running this module starts a service with the provider
described by the environment (see superagent.config):

    python -m superagent.app.main
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from superagent import __version__
from superagent.app.api import models_router
from superagent.app.api.schemas import HealthResponse
from superagent.app.dependencies import get_model_service
from superagent.errors import ProviderError, ProviderErrorKind
from superagent.providers import Provider
from superagent.service import ModelService

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[ProviderErrorKind, int] = {
    ProviderErrorKind.NOT_FOUND: 404,
    ProviderErrorKind.REMOTE_REJECTED: 502,
    ProviderErrorKind.UNHEALTHY: 503,
    ProviderErrorKind.TIMEOUT: 504,
}


async def provider_error_handler(request: Request, exc: ProviderError) -> JSONResponse:
    """Render a ProviderError as {"error": {"type", "message", "model"}}."""
    status_code = ERROR_STATUS.get(exc.kind, 502)
    logger.warning(f"[api] {request.method} {request.url.path} -> {status_code}: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "type": exc.kind.value,
                "message": exc.args[0],
                "model": exc.provider or None,
            }
        },
    )


def create_app(
    service: ModelService,
    *,
    providers: Sequence[Provider] = (),
    start_models: bool = False,
    debug: bool = False,
) -> FastAPI:
    """
    Build the model service application.

    Args:
        service: Registry the routes operate on (stored on app.state)
        providers: Providers registered on startup
        start_models: Start and probe every registered model on startup
        debug: FastAPI debug mode

    Returns:
        FastAPI application. Every provider is stopped on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting SuperAgent model service...")
        for provider in providers:
            await service.register_provider(provider)

        if start_models:
            for model in await service.model_ids():
                try:
                    await service.start_model(model)
                except Exception as e:
                    logger.error(f"Failed to start model '{model}': {e}", exc_info=True)
                    raise

        yield

        logger.info("Shutting down SuperAgent model service...")
        try:
            await service.stop_all()
            logger.info("Model service shut down successfully")
        except Exception as e:
            logger.error(f"Error during shutdown: {e}", exc_info=True)

    app = FastAPI(
        title="SuperAgent",
        description="Local model service - routes chat completions to registered providers",
        version=__version__,
        lifespan=lifespan,
        debug=debug,
    )
    app.state.model_service = service
    app.add_exception_handler(ProviderError, provider_error_handler)
    app.include_router(models_router)

    @app.get("/", tags=["root"])
    async def root() -> dict[str, str]:
        return {
            "service": "superagent",
            "version": __version__,
            "status": "running",
        }

    @app.get("/health", tags=["health"])
    async def health_check(request: Request) -> HealthResponse:
        """Service status and model counts."""
        summary = await get_model_service(request).health_summary()
        status = "healthy" if summary["running"] == summary["models"] else "degraded"
        return HealthResponse(status=status, models=summary["models"], running=summary["running"])

    return app


def main() -> None:
    import uvicorn

    from superagent.config import build_provider, get_settings

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    service = ModelService(chat_timeout_seconds=settings.provider_timeout_seconds)
    app = create_app(
        service,
        providers=[build_provider(settings)],
        start_models=True,
        debug=settings.debug,
    )
    uvicorn.run(app, host=settings.server_host, port=settings.server_port)


if __name__ == "__main__":
    main()
