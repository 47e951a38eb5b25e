#!/usr/bin/env python3
"""
Entrypoint to run the homework bot with `python -m homework_bot` or `homework-bot`.
Reads `.env` from the working directory and supports HOST/PORT/RELOAD/WORKERS/LOG_LEVEL overrides.
"""
import os
from pathlib import Path

from dotenv import load_dotenv
import uvicorn


def main() -> None:
    load_dotenv(dotenv_path=Path.cwd() / ".env")

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8080"))
    reload_enabled = os.getenv("RELOAD", "false").lower() in ("1", "true", "yes", "on")
    # uvicorn expects lower case: debug/info/warning/error/critical/trace
    log_level = (os.getenv("LOG_LEVEL", "info") or "info").lower()
    workers = int(os.getenv("WORKERS", "1") or "1")

    # reload only works with an import string and a single worker
    if reload_enabled:
        workers = 1
        reload_dirs = [str(Path(__file__).parent)]
    else:
        reload_dirs = None

    uvicorn.run(
        "homework_bot.main:app",
        host=host,
        port=port,
        reload=reload_enabled,
        log_level=log_level,
        workers=workers,
        reload_dirs=reload_dirs,
    )


if __name__ == "__main__":
    main()
