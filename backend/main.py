from __future__ import annotations

import logging
from typing import Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from opentelemetry.trace import get_tracer
from slowapi.errors import RateLimitExceeded

from org_signup.utils.telemetry import setup_logging, setup_telemetry

from .api import signup
from .services import bind_settings, init_services, reset_settings

logger = logging.getLogger(__name__)

app = FastAPI(title="Organization Sign-up")
app.state.limiter = signup.limiter
tracer = get_tracer(__name__)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(status_code=429, content={"detail": "Rate limit exceeded"})


@app.on_event("startup")
async def startup() -> None:
    if getattr(app.state, "services", None) is None:
        app.state.services = await init_services()

    settings = app.state.services.settings
    setup_logging(settings)
    if settings.TRACE_TO_CONSOLE:
        setup_telemetry(settings)


@app.get("/")
async def root() -> Dict[str, str]:
    return {"message": "Organization Sign-up API"}


@app.middleware("http")
async def trace_middleware(request: Request, call_next):
    services = getattr(app.state, "services", None)
    token = bind_settings(services.settings) if services is not None else None
    with tracer.start_as_current_span("http.request") as span:
        span.set_attribute("http.method", request.method)
        span.set_attribute("http.route", request.url.path)
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("%s %s failed", request.method, request.url.path)
            raise
        finally:
            if token is not None:
                reset_settings(token)
        span.set_attribute("http.status_code", response.status_code)

    logger.debug("%s %s -> %s", request.method, request.url.path, response.status_code)
    return response


app.include_router(signup.router)
