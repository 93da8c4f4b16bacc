"""
Pebbles - Voice Form Filling Backend

Fills structured forms from natural speech:
    - POST /analyze-form: field values from one utterance (Gemini, pattern fallback)
    - POST /chat: short spoken reply per conversation step (Gemini, templates)
    - WS /ws/conversation/{form_id}: full voice conversation (Vosk in, ElevenLabs out)

Run:
    python main.py
    # or
    uvicorn main:app --reload
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from config.settings import settings
from core.dependencies import get_initialized_services, get_service_status
from core.schemas import HealthResponse
from routers import chat_router, extraction_router, forms_router, voice_router
from utils.exceptions import PebblesError
from utils.logging import get_logger, setup_logging
from utils.rate_limit import limiter, rate_limit_exceeded_handler

setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Report configuration on startup; services are created on first use."""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION} (debug={settings.DEBUG})")
    if not settings.GOOGLE_API_KEY:
        logger.warning("No GOOGLE_API_KEY: pattern extraction and reply templates only")
    if not settings.ELEVENLABS_API_KEY:
        logger.warning("No ELEVENLABS_API_KEY: conversations run without audio replies")
    yield
    logger.info(f"{settings.APP_NAME} stopped")


app = FastAPI(
    title=settings.APP_NAME,
    description="Fill forms by talking: extraction, spoken dialogue and live voice sessions",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)
app.state.limiter = limiter

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Error Responses
# =============================================================================

async def pebbles_error_handler(request: Request, exc: PebblesError) -> JSONResponse:
    """Render any PebblesError as {"error", "message", "details"}."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(f"{request.method} {request.url.path}: {exc.message}", extra={"details": exc.details})
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.add_exception_handler(PebblesError, pebbles_error_handler)
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


# =============================================================================
# Routes
# =============================================================================

for router in (forms_router, extraction_router, chat_router, voice_router):
    app.include_router(router)


@app.get("/", tags=["Health"], response_model=HealthResponse)
async def root():
    return HealthResponse(status="healthy", app=settings.APP_NAME, version=settings.APP_VERSION)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Component health.

    "degraded" while the completion circuit is open: extraction and replies
    still work through their deterministic fallbacks.
    """
    components = get_service_status()
    degraded = components["completion_circuit"]["state"] == "open"
    return {
        "status": "degraded" if degraded else "healthy",
        "components": components,
        "services_loaded": get_initialized_services(),
        "version": settings.APP_VERSION,
    }


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info",
    )
