from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional, Type, TypeVar
from urllib.parse import quote, urlparse

import asyncio
import httpx
from fastapi import HTTPException
import logging
from pydantic import BaseModel, ValidationError
from time import perf_counter

from homework_bot.core.config import settings
from homework_bot.core.http_client import create_gitlab_http_client
from homework_bot.messages import gitlab_issue_template
from homework_bot.metrics import FORK_IMPORT_POLLS, FORK_IMPORT_WAIT, FORK_TOTAL
from homework_bot.schemas import (
    IMPORT_FINISHED,
    Branch,
    ImportStatus,
    Issue,
    IssueTemplateValues,
    Project,
    ProjectId,
    User,
)

# GitLab access level granted to students on their homework fork
MAINTAINER_ACCESS_LEVEL = 30

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class GitLabError(HTTPException):
    """Non-success answer (or no answer) from the GitLab API."""


class ForkImportTimeout(GitLabError):
    """The import of a fork did not finish within the polling budget."""

    def __init__(self, project_id: ProjectId, attempts: int):
        super().__init__(
            status_code=504,
            detail=f"Import of project {project_id} did not finish after {attempts} attempts",
        )
        self.project_id = project_id
        self.attempts = attempts


def _path_id(value: Any) -> str:
    # namespaces and branches may contain '/', GitLab wants them encoded
    return quote(str(value), safe="")


def _format_date(value: date) -> str:
    return value.strftime("%Y-%m-%d")


class GitLabClient:
    """Minimal GitLab REST v4 client for the homework workflow."""

    def __init__(
        self,
        token: str,
        template_namespace: str,
        homework_namespace: str,
        http: Optional[httpx.AsyncClient] = None,
        *,
        poll_attempts: Optional[int] = None,
        poll_interval: Optional[float] = None,
    ):
        self.template_namespace = template_namespace
        self.homework_namespace = homework_namespace
        self._headers = {
            "PRIVATE-TOKEN": token,
            "Content-Type": "application/json",
        }
        self._owns_http = http is None
        self.http = http if http is not None else create_gitlab_http_client()

        attempts = settings.FORK_POLL_ATTEMPTS if poll_attempts is None else poll_attempts
        # at least one retry, a single poll is not a wait
        self.poll_attempts = max(2, int(attempts))
        interval = settings.FORK_POLL_INTERVAL_S if poll_interval is None else poll_interval
        self.poll_interval = max(0.0, float(interval))

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()

    # ---------- low-level ----------
    @staticmethod
    def _raise_for_status(r: httpx.Response) -> None:
        if r.status_code >= 400:
            try:
                detail = r.json()
            except Exception:
                detail = r.text
            raise GitLabError(status_code=r.status_code, detail=detail)

    @staticmethod
    def _parse(model: Type[M], data: Any, url: str) -> M:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise GitLabError(502, f"Unexpected response structure from {url}") from e

    @classmethod
    def _parse_list(cls, model: Type[M], data: Any, url: str) -> List[M]:
        if not isinstance(data, list):
            raise GitLabError(502, f"Unexpected response structure from {url}")
        return [cls._parse(model, item, url) for item in data]

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("HTTP %s %s", method, url)
        kwargs.setdefault("timeout", settings.REQUEST_TIMEOUT_S)
        try:
            r = await self.http.request(method, url, headers=self._headers, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning("HTTP %s %s -> timeout", method, url)
            raise GitLabError(504, "GitLab API timed out") from e
        # GitLab answers with its absolute external_url on redirects
        if 300 <= r.status_code < 400:
            loc = r.headers.get("location")
            if not loc:
                return r
            parsed = urlparse(loc)
            if parsed.netloc and not settings.GITLAB_REWRITE_REDIRECTS:
                return r
            # the location path already carries the /api/v4 prefix
            rel = parsed.path or "/"
            if parsed.query:
                rel = f"{rel}?{parsed.query}"
                kwargs.pop("params", None)
            target = self.http.base_url.copy_with(raw_path=quote(rel, safe="/?&=%:+,;@").encode("ascii"))
            logger.debug("HTTP redirect -> %s", target)
            return await self.http.request(method, target, headers=self._headers, **kwargs)
        if r.status_code >= 400:
            body = r.text
            logger.warning("HTTP %s %s -> %s; body: %s", method, url, r.status_code, body[:1000])
        else:
            logger.debug("HTTP %s %s -> %s", method, url, r.status_code)
        return r

    async def _paginated_get(self, url: str, params: Dict[str, Any] | None = None) -> List[Any]:
        params = dict(params or {})
        params["per_page"] = max(1, min(int(settings.GITLAB_PER_PAGE or 100), 100))
        page = 1
        acc: List[Any] = []
        while True:
            p = dict(params)
            p["page"] = page
            r = await self._request("GET", url, params=p)
            self._raise_for_status(r)
            chunk = r.json()
            if not isinstance(chunk, list):
                raise GitLabError(502, f"Unexpected response structure from {url}")
            acc.extend(chunk)
            next_page = r.headers.get("X-Next-Page")
            if not next_page or next_page == "0":
                break
            page = int(next_page)
        return acc

    # ---------- projects ----------
    async def find_homework_project(self, name_fragment: str) -> Optional[Project]:
        """Search the template namespace and return the project named exactly `name_fragment`."""
        url = f"/groups/{_path_id(self.template_namespace)}/projects"
        r = await self._request("GET", url, params={"search": name_fragment})
        self._raise_for_status(r)
        for project in self._parse_list(Project, r.json(), url):
            if project.name == name_fragment:
                return project
        logger.info("no template project named %r in %s", name_fragment, self.template_namespace)
        return None

    async def fork_project(self, project_id: ProjectId, new_name: str) -> Project:
        """Fork into the homework namespace and return once the fork is usable.

        Waits for the import to finish and removes all branch protections
        before returning; failures of either step propagate.
        """
        url = f"/projects/{_path_id(project_id)}/fork"
        body = {
            "namespace_id": self.homework_namespace,
            "name": new_name,
            "path": new_name,
        }
        r = await self._request("POST", url, json=body)
        self._raise_for_status(r)
        fork = self._parse(Project, r.json(), url)
        logger.info("forked project %s as %s (id=%s)", project_id, fork.name, fork.id)

        result_label = "error"
        try:
            await self.wait_for_fork_finish(fork.id)
            await self.unprotect_all_branches(fork)
            result_label = "finished"
        except ForkImportTimeout:
            result_label = "timeout"
            raise
        finally:
            FORK_TOTAL.labels(result=result_label).inc()
        return fork

    async def wait_for_fork_finish(self, project_id: ProjectId) -> None:
        url = f"/projects/{_path_id(project_id)}/import"
        start = perf_counter()
        for attempt in range(1, self.poll_attempts + 1):
            r = await self._request("GET", url)
            self._raise_for_status(r)
            FORK_IMPORT_POLLS.inc()
            status = self._parse(ImportStatus, r.json(), url).import_status
            if status == IMPORT_FINISHED:
                FORK_IMPORT_WAIT.observe(perf_counter() - start)
                logger.info("import of project %s finished after %s attempt(s)", project_id, attempt)
                return
            logger.debug(
                "import of project %s is %r (attempt %s/%s)",
                project_id, status, attempt, self.poll_attempts,
            )
            if attempt < self.poll_attempts:
                await asyncio.sleep(self.poll_interval)
        FORK_IMPORT_WAIT.observe(perf_counter() - start)
        logger.warning("import of project %s still not finished, giving up", project_id)
        raise ForkImportTimeout(project_id, self.poll_attempts)

    async def delete_project(self, project_id: ProjectId) -> None:
        r = await self._request("DELETE", f"/projects/{_path_id(project_id)}")
        self._raise_for_status(r)
        logger.info("deleted project %s", project_id)

    async def add_maintainer_to_project(self, project_id: ProjectId, user_id: Any, expires_at: date) -> None:
        body = {
            "id": project_id,
            "user_id": user_id,
            "access_level": MAINTAINER_ACCESS_LEVEL,
            "expires_at": _format_date(expires_at),
        }
        r = await self._request("POST", f"/projects/{_path_id(project_id)}/members", json=body)
        self._raise_for_status(r)

    # ---------- branches ----------
    async def get_branches(self, project: Project) -> List[Branch]:
        url = f"/projects/{_path_id(project.id)}/repository/branches"
        items = await self._paginated_get(url)
        return self._parse_list(Branch, items, url)

    async def unprotect_branch(self, project: Project, branch: Branch) -> None:
        url = f"/projects/{_path_id(project.id)}/protected_branches/{_path_id(branch.name)}"
        r = await self._request("DELETE", url)
        if r.status_code == 404:
            logger.info("branch %r of project %s is not protected", branch.name, project.id)
            return
        self._raise_for_status(r)

    async def unprotect_all_branches(self, project: Project) -> None:
        # one at a time, the first failure stops the rest
        for branch in await self.get_branches(project):
            await self.unprotect_branch(project, branch)

    # ---------- users & issues ----------
    async def find_user_by_username(self, username: str) -> Optional[User]:
        query = username[:1].upper() + username[1:]
        r = await self._request("GET", "/users", params={"username": query})
        self._raise_for_status(r)
        users = self._parse_list(User, r.json(), "/users")

        exact = [u for u in users if u.username == username]
        if len(exact) == 1:
            return exact[0]
        folded = [u for u in users if u.username.casefold() == username.casefold()]
        if len(folded) == 1:
            return folded[0]
        if folded:
            logger.warning("username %r is ambiguous (%s matches)", username, len(folded))
        return None

    async def create_homework_issue(
        self,
        project_id: ProjectId,
        assignee_user_id: Any,
        due_date: date,
        template_values: IssueTemplateValues,
    ) -> Issue:
        url = f"/projects/{_path_id(project_id)}/issues"
        body = {
            "title": template_values.title,
            "description": gitlab_issue_template(template_values),
            "assignee_ids": [assignee_user_id],
            "due_date": _format_date(due_date),
        }
        r = await self._request("POST", url, json=body)
        self._raise_for_status(r)
        return self._parse(Issue, r.json(), url)
