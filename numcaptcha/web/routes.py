"""Captcha service routes: /health, /verify-password, /solve-captcha."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from numcaptcha.api import CaptchaSolver
from numcaptcha.errors import CaptchaError, OcrUnavailable
from numcaptcha.web.auth import password_matches, require_password

log = logging.getLogger(__name__)

router = APIRouter()

PROCESSING_FAILED = "Failed to process the CAPTCHA image on the server."


class PasswordRequest(BaseModel):
    password: Optional[str] = None


class SolveRequest(BaseModel):
    imageUrl: Optional[str] = None


@router.get("/health")
def health(request: Request):
    handle = request.app.state.engine_handle
    return {"status": "ok", "ocr": handle.state.value}


@router.post("/verify-password")
def verify_password(body: PasswordRequest, request: Request):
    if password_matches(request, body.password):
        log.info("Password verified successfully.")
        return {"success": True, "message": "Password is correct."}
    log.warning("Invalid password attempt.")
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"success": False, "error": "Invalid password."},
    )


@router.post("/solve-captcha", dependencies=[Depends(require_password)])
def solve_captcha(body: SolveRequest, request: Request):
    handle = request.app.state.engine_handle
    settings = request.app.state.settings

    try:
        engine = handle.get()
    except OcrUnavailable as e:
        return JSONResponse(status_code=e.status_code, content={"error": str(e)})
    except CaptchaError as e:
        log.error("OCR engine unusable [%s]: %s", e.category, e)
        return JSONResponse(
            status_code=e.status_code,
            content={"error": PROCESSING_FAILED, "category": e.category},
        )

    if not body.imageUrl:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "imageUrl is required in the request body."},
        )

    solver = CaptchaSolver(
        engine=engine,
        fetch_timeout=settings.fetch_timeout,
        max_image_bytes=settings.max_image_bytes,
    )
    try:
        result = solver.solve(body.imageUrl)
    except CaptchaError as e:
        log.warning("Error during CAPTCHA processing [%s]: %s", e.category, e)
        return JSONResponse(
            status_code=e.status_code,
            content={"error": PROCESSING_FAILED, "category": e.category},
        )
    except Exception:
        log.exception("Unexpected error during CAPTCHA processing")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": PROCESSING_FAILED, "category": "InternalError"},
        )

    return {"text": result.text}
