import argparse
import logging
import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from model_reviews.secrets import env_file_path, setup_secrets

script_directory = Path(__file__).resolve().parent

if __name__ == "__main__":
    ap = argparse.ArgumentParser(description="Run the model reviews web app.")
    ap.add_argument("--port", type=int, default=8086)
    ap.add_argument("--env", type=str, default="dev")
    ap.add_argument("--log-level", type=str, default="info")

    args = ap.parse_args()
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # If secrets are delivered via environment variables (Cloud Run), materialize them.
    if os.getenv("ENV_FILE") or os.getenv("SERVICE_ACCOUNT_KEY"):
        setup_secrets(args.env)

    env_path = env_file_path(args.env)
    if env_path.exists():
        load_dotenv(env_path, override=True)
    else:
        raise FileNotFoundError(f"Could not find an environment file for '{args.env}' at {env_path}.")

    # Last, because app.py reads secrets at import time
    from app import app

    uvicorn.run(app, host="0.0.0.0", port=args.port, log_level=args.log_level.lower())
