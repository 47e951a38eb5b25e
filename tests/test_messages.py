from homework_bot.messages import gitlab_issue_template
from homework_bot.schemas import IssueTemplateValues


def test_issue_template_mentions_applicant_and_title():
    text = gitlab_issue_template(IssueTemplateValues(title="Linked lists", applicant_name="Jane Doe"))

    assert text.startswith("Hi Jane Doe,")
    assert "**Linked lists**" in text


def test_issue_template_is_pure():
    values = IssueTemplateValues(title="t", applicant_name="n")

    assert gitlab_issue_template(values) == gitlab_issue_template(values)
