from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates

from .config import get_settings
from .conversations import conversation_partners, list_inbox, merge_conversation
from .errors import InvalidNumberFormat, ProviderUnavailable
from .logging_utils import RequestLoggingMiddleware, setup_logging
from .twilio_client import ProviderClient, build_provider_client

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: missing credentials raise ConfigurationMissing and abort startup
    settings = get_settings()
    setup_logging(settings.log_level)
    app.state.provider = build_provider_client(settings)
    logger.info("Provider client ready", extra={"local": app.state.provider.local_number})
    yield


app = FastAPI(title="sms-inbox", version="0.1.0", lifespan=lifespan)
app.add_middleware(RequestLoggingMiddleware)

# Project root:
# - In local dev: inferred from the src/ layout.
# - Elsewhere: set PROJECT_ROOT to the directory holding templates/.
BASE_DIR = Path(os.getenv("PROJECT_ROOT", Path(__file__).resolve().parents[2]))
templates = Jinja2Templates(directory=BASE_DIR / "templates")


# --- Provider dependency ---


def get_provider(request: Request) -> ProviderClient:
    return request.app.state.provider


# --- Error pages ---


@app.exception_handler(InvalidNumberFormat)
async def invalid_number_handler(request: Request, exc: InvalidNumberFormat) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "error.html",
        {"title": "Invalid phone number", "detail": str(exc)},
        status_code=400,
    )


@app.exception_handler(ProviderUnavailable)
async def provider_unavailable_handler(
    request: Request, exc: ProviderUnavailable
) -> HTMLResponse:
    logger.error("Provider unavailable: %s", exc.reason, extra={"code": exc.code})
    return templates.TemplateResponse(
        request,
        "error.html",
        {"title": "Messages are unavailable right now", "detail": exc.reason},
        status_code=502,
    )


# --- Routes ---


@app.get("/health")
def health() -> JSONResponse:
    return JSONResponse({"status": "ok"})


@app.get("/", response_class=HTMLResponse)
def inbox(request: Request, provider: ProviderClient = Depends(get_provider)) -> HTMLResponse:
    """Messages received by the local number."""
    messages = list_inbox(provider, provider.local_number)
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "local_number": provider.local_number,
            "messages": messages,
            "partners": conversation_partners(messages, provider.local_number),
        },
    )


@app.get("/conversations/{remote_number}", response_class=HTMLResponse)
def conversation(
    request: Request,
    remote_number: str,
    provider: ProviderClient = Depends(get_provider),
) -> HTMLResponse:
    """Both directions of the exchange with `remote_number`, oldest first."""
    messages = merge_conversation(provider, provider.local_number, remote_number)
    return templates.TemplateResponse(
        request,
        "conversations/show.html",
        {
            "local_number": provider.local_number,
            "remote_number": remote_number,
            "messages": messages,
        },
    )
