from typing import Any, Dict, List, Optional

import logging
import os
from urllib.parse import quote, urlencode, urlsplit, urlunsplit

from authlib.integrations.starlette_client import OAuth
from fastapi.responses import HTMLResponse
from starlette.requests import Request
from starlette.requests import Request as StarletteRequest
from starlette.responses import RedirectResponse

oauth = OAuth()
logger = logging.getLogger(__name__)
login_providers: List[Dict[str, Any]] = []
_DEFAULT_REDIRECT_PATH = "/app/"
_SESSION_USER_KEY = "user"
_REDIRECT_SESSION_KEY = "post_login_redirect"
_ALLOWED_REDIRECT_HOSTS: tuple[str, ...] = tuple(
    host.strip().lower()
    for host in os.getenv("LOGIN_ALLOWED_REDIRECT_HOSTS", "").split(",")
    if host.strip()
)
_SESSION_USER_FIELDS = ("sub", "email", "name", "picture")
_LOGIN_BUTTON_TEMPLATE = """
<div class="login-wrapper">
  <a class="login-btn" href="{login_url}">Sign in with Google</a>
</div>
""".strip()


def register_oauth_provider(*args, **kwargs):
    login_providers.append(kwargs)
    return oauth.register(*args, **kwargs)


def get_user(request: Any) -> Optional[dict]:
    """
    Return the signed-in user stored in the session, or None.
    Accepts a Starlette request or a gr.Request wrapping one.
    """
    session = _session_of(getattr(request, "request", None)) or _session_of(request)
    if not session:
        return None
    user = session.get(_SESSION_USER_KEY)
    return user if isinstance(user, dict) and user else None


def _session_of(candidate: Any) -> Optional[dict]:
    if isinstance(candidate, StarletteRequest):
        # Request.session asserts when SessionMiddleware is not installed.
        return candidate.scope.get("session")
    session = getattr(candidate, "session", None)
    return session if isinstance(session, dict) else None


def _session_user_from_userinfo(userinfo: Dict[str, Any]) -> Dict[str, Any]:
    user = {key: str(userinfo.get(key) or "").strip() for key in _SESSION_USER_FIELDS}
    user["email"] = user["email"].lower()
    if not (user["email"] or user["sub"]):
        raise ValueError("Unable to determine user identifier from login response")
    user["name"] = user["name"] or user["email"].split("@", 1)[0] or user["sub"]
    return user


def add_login_routes(app) -> None:
    """Register /logout and the OAuth start/callback routes once per app."""
    state_flag = "_model_reviews_login_routes_registered"
    if getattr(app.state, state_flag, False):
        return
    setattr(app.state, state_flag, True)

    @app.get("/logout")
    async def logout(request: Request):
        request.session.pop(_SESSION_USER_KEY, None)
        return RedirectResponse("/app/")

    for provider in login_providers:
        name = provider["name"]
        start_route_name = f"auth_start_{name}"
        cb_route_name = f"auth_callback_{name}"

        @app.get(f"/auth/{name}", name=start_route_name)
        async def auth_start(
            request: Request,
            redirect_to: Optional[str] = None,
            _name=name,
            _cb=cb_route_name,
        ):
            _update_login_redirect_target(request, redirect_to)
            if get_user(request):
                return RedirectResponse(_resolve_login_redirect_target(request))
            client = oauth.create_client(_name)
            return await client.authorize_redirect(request, request.url_for(_cb))

        @app.get(f"/auth/{name}/callback", name=cb_route_name)
        async def auth_callback(request: Request, _name=name):
            client = oauth.create_client(_name)
            token = await client.authorize_access_token(request)
            userinfo = token.get("userinfo") or await client.parse_id_token(request, token)
            user = _session_user_from_userinfo(dict(userinfo))
            request.session[_SESSION_USER_KEY] = user
            logger.info("Signed in user=%s provider=%s", user["email"] or user["sub"], _name)
            return RedirectResponse(_resolve_login_redirect_target(request))


def add_login_snippet_route(app, provider_name: str = "google") -> None:
    """
    Register /login, which renders a sign-in button that returns to ``redirect_to``.
    """
    state_flag = "_model_reviews_login_snippet_registered"
    if getattr(app.state, state_flag, False):
        return
    setattr(app.state, state_flag, True)

    @app.get("/login", response_class=HTMLResponse)
    async def login_snippet(request: Request, redirect_to: Optional[str] = None):
        login_url = build_login_url(provider_name, redirect_to)
        return HTMLResponse(_LOGIN_BUTTON_TEMPLATE.format(login_url=login_url))


def build_login_url(provider_name: str = "google", redirect_to: Optional[str] = None) -> str:
    base = f"/auth/{provider_name}"
    target = (redirect_to or "").strip()
    if not target:
        return base
    return f"{base}?{urlencode({'redirect_to': target}, quote_via=quote, safe='/:')}"


def _update_login_redirect_target(request: Request, candidate: Optional[str]) -> None:
    target = _sanitize_redirect_target(candidate, request) or _DEFAULT_REDIRECT_PATH
    request.session[_REDIRECT_SESSION_KEY] = target


def _resolve_login_redirect_target(request: Request) -> str:
    target = request.session.pop(_REDIRECT_SESSION_KEY, None)
    return _sanitize_redirect_target(target, request) or _DEFAULT_REDIRECT_PATH


def _sanitize_redirect_target(candidate: Optional[str], request: Optional[Request]) -> Optional[str]:
    """
    Allow relative paths or whitelisted hosts; block protocol-relative / malformed URLs.
    """
    target = (candidate or "").strip()
    if not target or target.startswith("//"):
        return None
    if target.startswith("/"):
        return target

    parsed = urlsplit(target)
    if parsed.scheme not in {"https", "http"}:
        return None
    host = (parsed.hostname or "").lower()
    if not host:
        return None

    if _ALLOWED_REDIRECT_HOSTS:
        allowed_hosts = _ALLOWED_REDIRECT_HOSTS
    else:
        request_host = (request.url.hostname or "").lower() if request else ""
        allowed_hosts = (request_host,) if request_host else ()
    if host not in allowed_hosts:
        return None
    return urlunsplit(parsed)
