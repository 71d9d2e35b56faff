from __future__ import annotations

import logging
from pathlib import Path

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates
from slowapi import Limiter
from slowapi.util import get_remote_address

from org_signup.models.organization import ProvisioningFailure

from ..services import SignupServices, current_settings

logger = logging.getLogger(__name__)

router = APIRouter()
limiter = Limiter(key_func=get_remote_address)
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parents[1] / "templates"))


def _signup_rate_limit() -> str:
    return current_settings().SIGNUP_RATE_LIMIT


def _get_services(request: Request) -> SignupServices:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=500, detail="Service container not initialised")
    return services


@router.get("/org-signup", response_class=HTMLResponse)
async def signup_form(request: Request) -> HTMLResponse:
    services = _get_services(request)
    return templates.TemplateResponse(
        request,
        "org_signup.html",
        {"base_domain": services.settings.BASE_DOMAIN},
    )


@router.post("/org-signup")
@limiter.limit(_signup_rate_limit)
async def submit_signup(request: Request) -> Response:
    services = _get_services(request)
    form = await request.form()
    fields = {key: value for key, value in form.items() if isinstance(value, str)}

    outcome = await services.workflow.run(fields)
    if isinstance(outcome, ProvisioningFailure):
        logger.info("Sign-up rejected at %s with status %s", outcome.step.value, outcome.status_code)
        return JSONResponse(outcome.to_error_body(), status_code=outcome.status_code)

    return RedirectResponse(
        f"{services.settings.REDIRECT_SCHEME}://{outcome.redirect_target}",
        status_code=303,
    )
