"""FastAPI application serving the captcha solver."""

import logging
import os
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from numcaptcha.config import LOG_FORMAT, Settings, parse_log_level
from numcaptcha.engines.base import BaseOCREngine
from numcaptcha.engines.lifecycle import EngineHandle
from numcaptcha.errors import OcrEngineFailure
from numcaptcha.web.routes import router

log = logging.getLogger(__name__)


def _exit_process(error: OcrEngineFailure) -> None:
    # The service cannot answer any request without OCR.
    log.critical("OCR engine failed to initialize, exiting: %s", error)
    logging.shutdown()
    os._exit(1)


def _tesseract_factory(settings: Settings) -> Callable[[], BaseOCREngine]:
    def factory() -> BaseOCREngine:
        from numcaptcha.engines.tesseract_engine import TesseractDigitEngine

        return TesseractDigitEngine(
            tessdata_dir=settings.tessdata_dir, lang=settings.tesseract_lang
        )

    return factory


def create_app(
    settings: Optional[Settings] = None,
    engine_factory: Optional[Callable[[], BaseOCREngine]] = None,
    on_engine_failure: Optional[Callable[[OcrEngineFailure], None]] = _exit_process,
) -> FastAPI:
    """
    Build the service.

    The OCR engine is created on a background thread when the app starts;
    /solve-captcha answers 503 until it is ready.

    Raises:
        RuntimeError: If no APP_PASSWORD is configured or the log level is unknown.
    """
    settings = settings or Settings.from_env()
    if not settings.app_password:
        raise RuntimeError("FATAL: APP_PASSWORD environment variable is not set.")

    logging.basicConfig(level=parse_log_level(settings.log_level), format=LOG_FORMAT)

    handle = EngineHandle(
        engine_factory or _tesseract_factory(settings),
        on_failure=on_engine_failure,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        handle.start()
        yield

    app = FastAPI(title="Numeric Captcha Solver", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine_handle = handle

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)

    return app

# Run with: uvicorn numcaptcha.web.app:create_app --factory --host 0.0.0.0 --port 8080
