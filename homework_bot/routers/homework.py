from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response

from homework_bot.deps import get_gitlab_client
from homework_bot.schemas import AssignHomeworkRequest, AssignHomeworkResponse
from homework_bot.services.gitlab import GitLabClient
from homework_bot.services.homework import assign_homework

router = APIRouter(prefix="/api/homework", tags=["homework"])
logger = logging.getLogger(__name__)


@router.post("", status_code=201)
async def homework_assign(
    payload: AssignHomeworkRequest,
    gl: GitLabClient = Depends(get_gitlab_client),
) -> AssignHomeworkResponse:
    logger.info(
        "assign homework: template=%s username=%s due=%s",
        payload.template_name, payload.username, payload.due_date,
    )
    try:
        return await assign_homework(gl, payload)
    except Exception:
        logger.exception("assign homework: failed template=%s username=%s", payload.template_name, payload.username)
        raise


@router.delete("/projects/{project_id:path}", status_code=204)
async def homework_delete(project_id: str, gl: GitLabClient = Depends(get_gitlab_client)) -> Response:
    """Remove a homework fork, e.g. after an aborted assignment."""
    logger.info("delete homework project: project_id=%s", project_id)
    await gl.delete_project(project_id)
    return Response(status_code=204)
