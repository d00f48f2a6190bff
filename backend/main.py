"""
Waitlist landing API
Main FastAPI application
"""
import html
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
import uvicorn

from config import app_config, waitlist_config
from logging_config import setup_logging
from models import CountResponse, SignupResponse
from signup import RETRY_MESSAGE, SignupValidationError, submit_signup
from storage import LocalFileStorage, StorageWriteError
from waitlist import WaitlistStore

logger = logging.getLogger(__name__)


def build_store() -> WaitlistStore:
    """Create the store from environment configuration"""
    settings = waitlist_config()
    storage = LocalFileStorage(settings["data_dir"])
    return WaitlistStore(storage, key=settings["storage_key"])


def create_app(store: Optional[WaitlistStore] = None, configure_logging: bool = True) -> FastAPI:
    settings = app_config()
    if configure_logging:
        setup_logging(settings["log_level"])

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # One store per process, loaded once at startup
        app.state.waitlist = store if store is not None else build_store()
        app.state.waitlist.load()
        yield
        logger.info(f"Shutting down with {app.state.waitlist.count()} waitlist entries")
        app.state.waitlist = None

    app = FastAPI(
        title=settings["title"],
        description="Landing page with a waitlist signup",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.title = settings["title"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings["cors_origins"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_api_route("/", root, methods=["GET"], response_class=HTMLResponse)
    app.add_api_route("/health", health, methods=["GET"])
    app.add_api_route("/api/waitlist/count", waitlist_count, methods=["GET"], response_model=CountResponse)
    app.add_api_route("/api/waitlist", waitlist_signup, methods=["POST"])
    return app


def get_store(request: Request) -> WaitlistStore:
    return request.app.state.waitlist


async def root(request: Request):
    """Serve the landing page"""
    title = html.escape(request.app.state.title)
    count = get_store(request).count()
    return HTMLResponse(
        content=(
            f"<!doctype html><html><head><title>{title}</title>"
            "<meta charset='utf-8'></head><body>"
            f"<h1>{title}</h1>"
            f"<p>{count} people already in line</p>"
            "<form method='post' action='/api/waitlist'>"
            "<input name='name' placeholder='Name' required>"
            "<input name='email' type='email' placeholder='Email' required>"
            "<input name='company' placeholder='Company (optional)'>"
            "<input name='role' placeholder='Role (optional)'>"
            "<button type='submit'>Join the waitlist</button>"
            "</form></body></html>"
        )
    )


async def health(request: Request):
    """Health check endpoint"""
    return {"status": "ok", "message": f"{request.app.state.title} API is running"}


async def waitlist_count(request: Request):
    return CountResponse(count=get_store(request).count())


async def waitlist_signup(request: Request):
    """Capture waitlist signups from the landing form or JSON clients."""
    content_type = request.headers.get("content-type", "")
    fields = {}

    if "application/json" in content_type:
        try:
            payload = await request.json()
        except ValueError:
            raise HTTPException(status_code=400, detail="Request body is not valid JSON.")
        if isinstance(payload, dict):
            fields = payload
    else:
        form = await request.form()
        fields = dict(form)

    def field(key: str) -> Optional[str]:
        value = fields.get(key)
        return None if value is None else str(value)

    store = get_store(request)
    try:
        outcome = submit_signup(
            store,
            name=field("name"),
            email=field("email"),
            company=field("company"),
            role=field("role"),
        )
    except SignupValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorageWriteError as e:
        logger.error(f"Waitlist signup not saved: {e}")
        raise HTTPException(status_code=503, detail=RETRY_MESSAGE)

    if "text/html" in request.headers.get("accept", ""):
        title = html.escape(request.app.state.title)
        return HTMLResponse(
            content=(
                f"<!doctype html><html><head><title>{title}</title>"
                "<meta charset='utf-8'></head><body>"
                f"<h1>{html.escape(outcome.message)}</h1>"
                "<p>We will email you when early access is ready.</p>"
                f"<a href='/'>Back to {title}</a>"
                "</body></html>"
            ),
            status_code=200,
        )

    return SignupResponse(added=outcome.added, message=outcome.message, count=store.count())


app = create_app()


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
