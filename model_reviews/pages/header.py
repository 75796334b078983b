from __future__ import annotations

import html
import logging
import time
from typing import Any, Optional

from model_reviews.css.utils import load_css
from model_reviews.login_logic import build_login_url, get_user

timing_logger = logging.getLogger("uvicorn.error")

SITE_NAME = "Model Reviews"
NAV_LINKS: tuple[tuple[str, str, str], ...] = (
    ("models", "Models", "/app/"),
    ("human-feedback", "Human feedback", "/human-feedback-display/"),
)
PATH_TO_NAV_KEY = {
    "/app": "models",
    "/model-display": "models",
    "/human-feedback-display": "human-feedback",
}

FORCE_LIGHT_MODE_SCRIPT = """
<script>
(function() {
  const applyLight = () => {
    [document.documentElement, document.body].forEach((el) => {
      if (!el) return;
      el.classList.remove("dark");
      el.style.colorScheme = "light";
    });
    try { localStorage.setItem("theme", "light"); } catch (err) {}
  };
  applyLight();
  new MutationObserver(applyLight).observe(document.documentElement, {
    attributes: true,
    attributeFilter: ["class"],
  });
})();
</script>
""".strip()


def _log_timing(event_name: str, start: float, **fields: object) -> None:
    elapsed_ms = (time.perf_counter() - start) * 1000.0
    field_text = " ".join(f"{key}={value}" for key, value in fields.items())
    timing_logger.info("header.timing event=%s ms=%.2f %s", event_name, elapsed_ms, field_text)


def with_light_mode_head(head: Optional[str]) -> str:
    if head and head.strip():
        return f"{head}\n{FORCE_LIGHT_MODE_SCRIPT}"
    return FORCE_LIGHT_MODE_SCRIPT


def _nav_key_for_path(path: str) -> str:
    normalized = "/" + (path or "").strip("/")
    return PATH_TO_NAV_KEY.get(normalized, "")


def _account_html(user: Optional[dict], path: str) -> str:
    if not user:
        login_url = html.escape(build_login_url("google", path or "/app/"), quote=True)
        return f'<a class="hdr-signin" href="{login_url}">Sign in</a>'
    name = html.escape(user.get("name") or user.get("email") or "Signed in")
    initial = html.escape((user.get("name") or user.get("email") or "?")[0].upper())
    photo = (user.get("picture") or "").strip()
    avatar = (
        f'<img class="hdr-avatar" src="{html.escape(photo, quote=True)}" alt="{name}" referrerpolicy="no-referrer" />'
        if photo
        else f'<span class="hdr-avatar hdr-avatar--initial">{initial}</span>'
    )
    return (
        f'<span class="hdr-account">{avatar}<span class="hdr-account-name">{name}</span>'
        '<a class="hdr-signout" href="/logout">Sign out</a></span>'
    )


def header_html(user: Optional[dict], path: str) -> str:
    active_key = _nav_key_for_path(path)
    links = []
    for key, label, href in NAV_LINKS:
        active_class = " is-active" if key == active_key else ""
        aria_current = ' aria-current="page"' if key == active_key else ""
        links.append(
            f'<a class="hdr-link{active_class}" href="{href}"{aria_current}>{html.escape(label)}</a>'
        )
    return f"""<style>
{load_css("header.css")}
</style>
<header class="hdr">
  <a class="hdr-logo" href="/app/">{html.escape(SITE_NAME)}</a>
  <nav class="hdr-nav" aria-label="Main navigation">{"".join(links)}</nav>
  <div class="hdr-account-slot">{_account_html(user, path)}</div>
</header>
"""


def render_header(path: str = "/", request: Any = None) -> str:
    start = time.perf_counter()
    user = get_user(request)
    value = header_html(user, path or "/")
    _log_timing("render_header.total", start, path=path or "/", has_user=bool(user))
    return value
