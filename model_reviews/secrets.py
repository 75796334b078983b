from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from google.cloud import secretmanager

logger = logging.getLogger(__name__)

_REPO_ROOT = Path(__file__).resolve().parents[1]
_SECRETS_DIR = _REPO_ROOT / "secrets"


def env_file_path(env: str) -> Path:
    return _SECRETS_DIR / f"env.{env}"


def setup_secrets(env: str) -> dict[str, Path]:
    """
    Materialize env-delivered secrets (ENV_FILE, SERVICE_ACCOUNT_KEY) as files under secrets/.
    Returns the env var names mapped to the files that were written or already present.
    """
    _SECRETS_DIR.mkdir(parents=True, exist_ok=True)
    candidates: dict[str, Path] = {
        "ENV_FILE": env_file_path(env),
        "SERVICE_ACCOUNT_KEY": _SECRETS_DIR / f"model-reviews-{env}-sa.json",
    }

    written: dict[str, Path] = {}
    for env_var, file_path in candidates.items():
        value = os.environ.get(env_var)
        if not value:
            continue
        if file_path.exists():
            logger.info("Secret file %s already exists, skipping", file_path)
        else:
            file_path.write_text(value)
        written[env_var] = file_path
        if env_var == "SERVICE_ACCOUNT_KEY":
            os.environ["GOOGLE_APPLICATION_CREDENTIALS"] = str(file_path)
    return written


@lru_cache(maxsize=1)
def _sm_client() -> secretmanager.SecretManagerServiceClient:
    return secretmanager.SecretManagerServiceClient()


@lru_cache(maxsize=256)
def _sm_get(resource: str) -> str:
    """Retrieve a secret value from Google Cloud Secret Manager."""
    resp = _sm_client().access_secret_version(name=resource)
    return resp.payload.data.decode("utf-8")


def get_secret(name: str, default: Optional[str] = None) -> str:
    """Return NAME from the environment, else the Secret Manager version named by NAME_RESOURCE, else ``default``."""
    value = os.getenv(name)
    if value is not None:
        return value
    resource = os.getenv(f"{name}_RESOURCE")
    if resource:
        logger.info("Reading %s from Secret Manager", name)
        return _sm_get(resource)
    if default is not None:
        return default
    raise RuntimeError(f"{name} is not configured; set {name} or {name}_RESOURCE")
