from __future__ import annotations

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from prometheus_client import make_asgi_app

from homework_bot.core.config import settings
from homework_bot.core.http_client import create_gitlab_http_client
from homework_bot.services.gitlab import GitLabClient


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    http_client = create_gitlab_http_client()
    app.state.http_client = http_client
    app.state.gitlab = GitLabClient(
        settings.GITLAB_TOKEN,
        settings.GITLAB_TEMPLATE_NAMESPACE,
        settings.GITLAB_HOMEWORK_NAMESPACE,
        http_client,
    )
    logger.info(
        "homework bot started: base_url=%s template_namespace=%s homework_namespace=%s",
        settings.GITLAB_BASE_URL,
        settings.GITLAB_TEMPLATE_NAMESPACE,
        settings.GITLAB_HOMEWORK_NAMESPACE,
    )
    try:
        yield
    finally:
        await http_client.aclose()


app = FastAPI(title="GitLab Homework Bot", version="0.1.0", lifespan=lifespan)

app.mount("/metrics", make_asgi_app())

# Logging
root_level = getattr(logging, (settings.LOG_LEVEL or "INFO").upper(), logging.INFO)
logging.basicConfig(
    level=root_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
gitlab_level = getattr(logging, (settings.GITLAB_LOG_LEVEL or "WARNING").upper(), logging.WARNING)
logging.getLogger("homework_bot.services.gitlab").setLevel(gitlab_level)

# Routers
from homework_bot.routers import homework as homework_router  # noqa: E402

app.include_router(homework_router.router)


# Meta
@app.get("/api/health", tags=["meta"])
async def api_health():
    return {
        "ok": True,
        "base_url": settings.GITLAB_BASE_URL,
        "template_namespace": settings.GITLAB_TEMPLATE_NAMESPACE,
        "homework_namespace": settings.GITLAB_HOMEWORK_NAMESPACE,
    }
