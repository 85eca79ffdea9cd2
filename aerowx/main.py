import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from aerowx.api.routes.aerodromes import router as aerodromes_router
from aerowx.api.routes.calc import router as calc_router
from aerowx.api.routes.weather import router as weather_router
from aerowx.core.config import settings
from aerowx.core.errors import AviationWeatherError, http_status_for
from aerowx.core.logging import configure_logging

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    configure_logging(settings.log_level)
    app = FastAPI(title=settings.app_name)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.exception_handler(AviationWeatherError)
    async def aviation_weather_error(request: Request, exc: AviationWeatherError):
        status = http_status_for(exc)
        if status >= 500:
            logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status, content={"detail": str(exc), "error": type(exc).__name__})

    @app.exception_handler(FileNotFoundError)
    async def dataset_missing(request: Request, exc: FileNotFoundError):
        logger.error("Aerodrome dataset unavailable: %s", exc)
        return JSONResponse(status_code=503, content={"detail": str(exc), "error": "DatasetError"})

    @app.get("/healthz")
    async def healthz():
        return {"ok": True}

    app.include_router(weather_router, prefix="/api", tags=["weather"])
    app.include_router(aerodromes_router, prefix="/api", tags=["aerodromes"])
    app.include_router(calc_router, prefix="/api", tags=["calculations"])

    return app


app = create_app()
