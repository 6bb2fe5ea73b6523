"""
Home services FastAPI application.

Serves the dashboard page built from the service cards in the config
directory, the static assets, and a server-sent event stream that tells open
pages to reload whenever a card is created or modified.
"""

import logging
import time
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, StreamingResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from .catalog import read_services_async
from .config import config
from .errors import HomeServicesError
from .events import SSE_HEADERS, event_stream
from .watcher import config_watcher

# Configure logging
log_formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

# Console handler
console_handler = logging.StreamHandler()
console_handler.setFormatter(log_formatter)
handlers: list[logging.Handler] = [console_handler]

# Rotating file handler, optional since systemd sends stdout to syslog
if config.log_file:
    config.log_file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        config.log_file,
        maxBytes=config.log_max_bytes,
        backupCount=config.log_backup_count,
    )
    file_handler.setFormatter(log_formatter)
    handlers.append(file_handler)

logging.basicConfig(level=config.log_level, handlers=handlers)
logging.getLogger("home_services").setLevel(config.app_log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    logger.info(f"Starting home services, config directory {config.cfg_dir.resolve()}")
    config_watcher.start()

    yield

    logger.info("Shutting down home services...")
    config_watcher.stop()


app = FastAPI(
    title="Home Services",
    description="Live dashboard of the services on a home network",
    version="0.1.0",
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)

templates = Jinja2Templates(directory=str(config.templates_dir))

if config.assets_dir.exists():
    app.mount("/assets", StaticFiles(directory=str(config.assets_dir)), name="assets")
else:
    logger.warning(f"Assets directory {config.assets_dir} does not exist, /assets disabled")


@app.middleware("http")
async def trace_requests(request: Request, call_next):
    """Log every request with its status and duration."""
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.debug(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)")
    return response


@app.exception_handler(HomeServicesError)
async def home_services_error_handler(request: Request, exc: HomeServicesError):
    """Render the error page."""
    logger.warning(f"Generating error html:\n{exc.message}\n{exc.context}")
    return templates.TemplateResponse(
        request,
        "error.html",
        {"context": exc.context, "error": exc.message},
        status_code=500,
    )


# Dashboard
async def render_index(request: Request) -> HTMLResponse:
    catalog = await read_services_async(config.cfg_dir)
    return templates.TemplateResponse(
        request,
        "index.html",
        {"services": catalog.services},
    )


@app.get("/", response_class=HTMLResponse)
async def index(request: Request):
    """Render the dashboard."""
    return await render_index(request)


@app.get("/index.html", response_class=HTMLResponse)
async def index_html(request: Request):
    """Render the dashboard."""
    return await render_index(request)


# Change notifications
@app.get("/sse")
async def sse():
    """
    Stream change notifications for the config directory.

    Returns Server-Sent Events (SSE) stream: one `update` per created or
    modified file, a comment line every keep-alive interval otherwise.
    """
    logger.debug("GET: /sse")
    subscription = config_watcher.open(config.cfg_dir)

    async def stream():
        try:
            async for frame in event_stream(subscription.queue, config.sse_keepalive):
                yield frame
        finally:
            subscription.close()

    logger.debug("Completing sse handshake")
    return StreamingResponse(
        stream(),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


# API
@app.get("/api/services")
async def list_services():
    """List all service cards."""
    catalog = await read_services_async(config.cfg_dir)
    return [service.to_dict() for service in catalog.services]


# Anything else is the dashboard
@app.get("/{path:path}", response_class=HTMLResponse, include_in_schema=False)
async def fallback(request: Request, path: str):
    """Render the dashboard for unknown paths."""
    return await render_index(request)
