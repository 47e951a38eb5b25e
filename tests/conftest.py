import os
from typing import Callable

import httpx
import pytest

# Settings() is built at import time and needs the required values.
os.environ.setdefault("GITLAB_TOKEN", "gitlabToken")
os.environ.setdefault("GITLAB_TEMPLATE_NAMESPACE", "templateNamespace")
os.environ.setdefault("GITLAB_HOMEWORK_NAMESPACE", "homeworkNamespace")
os.environ.setdefault("FORK_POLL_INTERVAL_S", "0")

from homework_bot.services.gitlab import GitLabClient  # noqa: E402

BASE_URL = "https://gitlab.example.com/api/v4"


@pytest.fixture
def make_gitlab() -> Callable[..., GitLabClient]:
    """Build a GitLabClient whose requests are answered by `handler`."""

    def _make(handler: Callable[[httpx.Request], httpx.Response], **kwargs) -> GitLabClient:
        http = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
        kwargs.setdefault("poll_interval", 0)
        return GitLabClient("gitlabToken", "templateNamespace", "homeworkNamespace", http, **kwargs)

    return _make
