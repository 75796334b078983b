import logging

import gradio as gr
from starlette.middleware.sessions import SessionMiddleware

from model_reviews.login_logic import add_login_routes
from model_reviews.secrets import get_secret

logger = logging.getLogger(__name__)

_SESSION_FLAG = "_model_reviews_session_middleware"


def install_session_middleware(app, secret_key: str | None = None) -> None:
    """Add SessionMiddleware once; every mounted page shares the same cookie."""
    if getattr(app.state, _SESSION_FLAG, False):
        return
    setattr(app.state, _SESSION_FLAG, True)
    secret = secret_key or get_secret("SESSION_SECRET", default="dev-session-secret")
    app.add_middleware(SessionMiddleware, secret_key=secret, same_site="lax")


def mount_gradio_app(app, blocks: gr.Blocks, path: str, *, secret_key: str | None = None, **kwargs):
    """
    Mount a Blocks page under ``path`` with session support and the login routes.
    Pages are public; the session only decides what a visitor may submit.
    """
    install_session_middleware(app, secret_key)
    add_login_routes(app)
    logger.info("Mounting gradio page %s (%s)", path, blocks.title)
    return gr.mount_gradio_app(app, blocks, path, **kwargs)
