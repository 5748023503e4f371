"""
Mail Relay API
FastAPI application that relays posted emails through an SMTP server.
"""

import asyncio
import logging
import os

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from mailrelay.config import load_email_settings
from mailrelay.routers import email
from mailrelay.services.transport import create_transport

# Configure logging to output to console
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"

app = FastAPI(
    title="Mail Relay API",
    description="Relays emails with optional base64 attachments through an SMTP server",
    version=API_VERSION,
)


@app.exception_handler(RequestValidationError)
async def malformed_body_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Answer malformed request bodies with 400 instead of FastAPI's default 422."""
    logger.warning(f"Malformed request to {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content={"detail": "Malformed request body"})


# Include routers
app.include_router(email.router, prefix="/FluentEmail", tags=["email"])


@app.on_event("startup")
async def log_startup_url() -> None:
    """
    Log the URL the API is served at.

    The port is taken from ``HOST_PORT`` so Docker-mapped ports are reported
    correctly. Defaults to 8000.
    """
    host_port = os.getenv("HOST_PORT", "8000")
    logger.info(
        "Mail Relay API running at http://localhost:%s (send endpoint: /FluentEmail/send)",
        host_port,
    )


@app.get("/")
async def root():
    return {"message": "Mail Relay API", "version": API_VERSION}


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/health/smtp")
async def health_smtp():
    """
    Check that the configured mail transport is reachable.

    Opens (and immediately closes) an authenticated SMTP session. Returns 503
    when settings are incomplete or the server cannot be reached.
    """
    try:
        settings = load_email_settings()
    except ValueError as exc:
        logger.error(f"SMTP health check failed: {exc}")
        raise HTTPException(status_code=503, detail=f"Mail settings incomplete: {exc}")

    transport = create_transport(settings)
    if not await asyncio.to_thread(transport.check_connection):
        raise HTTPException(status_code=503, detail="SMTP server unreachable")

    return {"status": "ok", "smtp": "reachable"}
