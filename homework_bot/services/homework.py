from __future__ import annotations

import logging

from fastapi import HTTPException

from homework_bot.schemas import (
    AssignHomeworkRequest,
    AssignHomeworkResponse,
    IssueTemplateValues,
)
from homework_bot.services.gitlab import ForkImportTimeout, GitLabClient, GitLabError

logger = logging.getLogger(__name__)


async def assign_homework(gitlab: GitLabClient, payload: AssignHomeworkRequest) -> AssignHomeworkResponse:
    """Hand a homework out to one applicant.

    Forks the template into the homework namespace, makes the applicant a
    maintainer until the due date and files the tracking issue. A fork whose
    import never finishes is deleted again before the timeout is re-raised.
    """
    template = await gitlab.find_homework_project(payload.template_name)
    if template is None:
        raise HTTPException(404, f"Template project '{payload.template_name}' not found")

    user = await gitlab.find_user_by_username(payload.username)
    if user is None:
        raise HTTPException(404, f"GitLab user '{payload.username}' not found")

    new_name = payload.new_name or f"{template.name}-{user.username}"
    logger.info("assign_homework: forking %s as %s for %s", template.name, new_name, user.username)
    try:
        fork = await gitlab.fork_project(template.id, new_name)
    except ForkImportTimeout as e:
        logger.warning("assign_homework: import of fork %s timed out, deleting it", e.project_id)
        try:
            await gitlab.delete_project(e.project_id)
        except GitLabError:
            logger.warning("assign_homework: could not delete fork %s", e.project_id, exc_info=True)
        raise

    await gitlab.add_maintainer_to_project(fork.id, user.id, payload.due_date)
    issue = await gitlab.create_homework_issue(
        fork.id,
        user.id,
        payload.due_date,
        IssueTemplateValues(
            title=payload.title or template.name,
            applicant_name=payload.applicant_name,
        ),
    )
    logger.info("assign_homework: done project=%s issue=%s", fork.web_url, issue.web_url)
    return AssignHomeworkResponse(project=fork, issue=issue)
