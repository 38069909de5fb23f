from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from plexify.agents.base import utc_timestamp
from plexify.agents.registry import AgentRegistry
from plexify.api.routes import agents, export, podcast, system_status, tts
from plexify.config import settings
from plexify.errors import PlexifyError
from plexify.llm.executor import AnthropicExecutor
from plexify.llm.gateway import build_gateway
from plexify.models.schemas import HealthResponse
from plexify.services import logger as log_service  # noqa: F401  configures loguru sinks
from plexify.services.documents import DocumentStore
from plexify.services.elevenlabs import ElevenLabsClient
from plexify.services.podcast_script import PodcastScriptService
from plexify.services.prompt_store import default_store
from plexify.services.tts import AudioBriefingService


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    executor = AnthropicExecutor(cfg=settings)
    app.state.document_store = DocumentStore(settings, cache={})
    app.state.agent_registry = AgentRegistry(executor, cfg=settings, prompts=default_store)
    app.state.gateway = build_gateway(executor, settings)
    app.state.audio_briefing = AudioBriefingService(settings)
    app.state.podcast_script = PodcastScriptService(executor, cfg=settings, prompts=default_store)
    app.state.elevenlabs = ElevenLabsClient(settings)
    logger.info(f"Plexify API starting ({settings.app_env}, agents={app.state.agent_registry.ids()})")
    yield
    # Shutdown


app = FastAPI(
    title="Plexify",
    description="LLM gateway and structured-output agents for BID operations",
    version=settings.app_version,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_body(request: Request, message: str) -> dict:
    if request.url.path.startswith("/api/podcast"):
        return {"success": False, "error": message}
    return {"error": message}


@app.exception_handler(PlexifyError)
async def plexify_error_handler(request: Request, exc: PlexifyError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=_error_body(request, exc.message))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request body") if errors else "Invalid request body"
    return JSONResponse(status_code=400, content=_error_body(request, message))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=500, content=_error_body(request, str(exc) or "Internal server error"))


# Routes
app.include_router(agents.router)
app.include_router(tts.router)
app.include_router(podcast.router)
app.include_router(export.router)
app.include_router(system_status.router)


@app.get("/api/health")
async def health():
    return HealthResponse(
        status="ok",
        timestamp=utc_timestamp(),
        version=settings.app_version,
        environment=settings.app_env,
    )


def run() -> None:
    uvicorn.run("plexify.main:app", host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
