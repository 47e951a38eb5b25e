from __future__ import annotations

from homework_bot.schemas import IssueTemplateValues


def gitlab_issue_template(values: IssueTemplateValues) -> str:
    """Render the description of the tracking issue filed in a homework fork."""

    return (
        f"Hi {values.applicant_name},\n"
        "\n"
        f"welcome to your homework **{values.title}**.\n"
        "\n"
        "- This repository is a fork of the task template and belongs to you until the due date.\n"
        "- All branches are unprotected, push as often as you like.\n"
        "- When you are done, comment on this issue and close it.\n"
        "\n"
        "Good luck!"
    )
