# ---- Resolve & inject ALL secrets BEFORE importing modules that read env ----
from model_reviews.secrets import get_secret

import logging
from pathlib import Path
from urllib.parse import urlencode

import gradio as gr
from fastapi import FastAPI, HTTPException
from fastapi.responses import FileResponse, RedirectResponse
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from model_reviews.catalog import NotFound, load_human_feedback, load_model
from model_reviews.db import readonly_session_scope
from model_reviews.login_logic import add_login_snippet_route, register_oauth_provider
from model_reviews.mount_gradio_app import mount_gradio_app
from model_reviews.pages.human_feedback.app_human_feedback import make_human_feedback_app
from model_reviews.pages.model_display.app_model_display import make_model_display_app
from model_reviews.pages.models_list.app_models_list import make_models_list_app
from model_reviews.pages.ui_login import make_login_page

logger = logging.getLogger(__name__)

app = FastAPI()
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")


@app.get("/_routes")
def _routes():
    return [getattr(r, "path", str(r)) for r in app.router.routes]


# OAuth client config (env first, then Secret Manager)
GOOGLE_CLIENT_ID = get_secret("GOOGLE_CLIENT_ID", default="")
GOOGLE_CLIENT_SECRET = get_secret("GOOGLE_CLIENT_SECRET", default="")
if not GOOGLE_CLIENT_ID:
    logger.warning("GOOGLE_CLIENT_ID is not set; sign-in will fail until it is configured")

register_oauth_provider(
    name="google",
    icon="google",
    server_metadata_url="https://accounts.google.com/.well-known/openid-configuration",
    client_id=GOOGLE_CLIENT_ID,
    client_secret=GOOGLE_CLIENT_SECRET,
    client_kwargs={
        "scope": "openid email profile",
        "timeout": 30,
    },
)
add_login_snippet_route(app, provider_name="google")

# --- Static assets
FAVICON_FILE = Path(__file__).resolve().parent / "images" / "favicon.png"


@app.get("/favicon.ico")
async def favicon() -> FileResponse:
    if FAVICON_FILE.exists():
        return FileResponse(FAVICON_FILE)
    raise HTTPException(status_code=404)


# --- Pretty URLs: resolve the record, then hand off to the Gradio page
@app.get("/models/{author_slug}/{model_slug}")
def model_pretty_url(author_slug: str, model_slug: str) -> RedirectResponse:
    author_slug = author_slug.strip()
    model_slug = model_slug.strip()
    try:
        with readonly_session_scope() as session:
            load_model(session, model_slug, author_slug)
    except NotFound:
        raise HTTPException(status_code=404, detail="Model not found")
    query = urlencode({"author": author_slug, "model": model_slug})
    return RedirectResponse(url=f"/model-display/?{query}", status_code=307)


@app.get("/human-feedback/{feedback_id}")
def human_feedback_pretty_url(feedback_id: str) -> RedirectResponse:
    try:
        with readonly_session_scope() as session:
            feedback = load_human_feedback(session, feedback_id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Human feedback sample not found")
    query = urlencode({"id": feedback.id})
    return RedirectResponse(url=f"/human-feedback-display/?{query}", status_code=307)


@app.get("/human-feedback")
@app.get("/human-feedback/")
async def human_feedback_index_redirect() -> RedirectResponse:
    return RedirectResponse(url="/human-feedback-display/")


# --- Pages
models_app = make_models_list_app()
model_display_app = make_model_display_app()
human_feedback_app = make_human_feedback_app()
login_page = make_login_page()

session_secret = get_secret("SESSION_SECRET", default="dev-session-secret")
mount_gradio_app(app, models_app, "/app", secret_key=session_secret)
mount_gradio_app(app, model_display_app, "/model-display", secret_key=session_secret)
mount_gradio_app(app, human_feedback_app, "/human-feedback-display", secret_key=session_secret)


gr.mount_gradio_app(app, login_page, "/")
