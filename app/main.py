from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from dotenv import load_dotenv
load_dotenv()

from app.api.routes import router as api_router
from app.nlu import config
from app.observability.logs import log_event


@asynccontextmanager
async def lifespan(app: FastAPI):
    log_event(
        "service_start",
        timezone=config.TASKS_TIMEZONE or "server-local",
        languages=config.TASKS_LANGUAGES,
        max_transcript_chars=config.MAX_TRANSCRIPT_CHARS,
    )
    yield
    log_event("service_stop")


app = FastAPI(
    title="Voice Task Segmenter",
    version="0.1.0",
    description="Turns a dictated transcript into reminder tasks, one per spoken date/time.",
    lifespan=lifespan,
)

# the recording UI is served from another origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health():
    return {"status": "ok", "timezone": config.TASKS_TIMEZONE or "server-local"}


@app.get("/metrics")
def metrics():
    data = generate_latest()  # default registry
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)


app.include_router(api_router, prefix="/api")
