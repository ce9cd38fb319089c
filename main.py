# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
On-Call Phone Lookup Service
============================
Answers "what number reaches whoever is on call for team X right now" with a
single plain-text phone number, for a telephony system to dial.

team key → roster rotation → on-call participant → profile email →
phone directory → normalized number.

Port: 3100
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from oncall_phone.controllers import lookup_controller, rotation_controller, system_controller
from oncall_phone.core.config import settings
from oncall_phone.core.dependencies import close_services, init_services
from oncall_phone.core.logging import get_logger
from oncall_phone.middleware import MetricsMiddleware, RequestIDMiddleware

logger = get_logger("main")


# ── Lifespan ──────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(application: FastAPI):
    """Validate configuration and build shared clients; release them on shutdown."""
    logger.info("Starting %s v%s", settings.SERVICE_NAME, settings.SERVICE_VERSION)
    logger.info("Configuration: %s", settings.summary())
    missing = settings.missing_settings()
    if missing:
        logger.warning(
            "Missing required environment variables: %s. "
            "Lookups depending on them will fail until they are set.",
            ", ".join(missing),
        )
    for warning in settings.config_warnings():
        logger.warning(warning)

    init_services(settings)
    yield
    await close_services()
    logger.info("HTTP client closed and directory pool disposed, shutting down")


# ── FastAPI App ───────────────────────────────────────────────────────────
app = FastAPI(
    title="On-Call Phone Lookup",
    description="Resolves the current on-call engineer's phone number per team.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestIDMiddleware)


# ── Global exception handler ─────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    req_id = getattr(request.state, "request_id", None)
    logger.exception("Unhandled exception", extra={"request_id": req_id})
    return JSONResponse(
        status_code=500,
        content={"status": "error", "message": "Internal server error", "error_id": req_id},
    )


app.include_router(system_controller.router)
app.include_router(rotation_controller.router)
app.include_router(lookup_controller.router)


# ── Entrypoint ────────────────────────────────────────────────────────────
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.SERVICE_PORT, log_level="info")
