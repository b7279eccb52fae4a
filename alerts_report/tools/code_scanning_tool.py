"""
Code Scanning Tool
Lists a repository's code scanning alerts and flattens them into a table
"""

from typing import Any, Dict, List

from github import Github

from ..utils.records import Table, get_field, new_table
from ..utils.tool_registry import Tool

ALERT_HEADER = [
    "toolName",
    "toolVersion",
    "alertNumber",
    "htmlUrl",
    "state",
    "rule",
    "severity",
    "location",
    "start-line",
    "end-line",
    "createdAt",
    "updatedAt",
    "fixedAt",
    "dismissedAt",
    "dismissedBy",
]


def alert_severity(rule: Dict[str, Any]) -> str:
    """Prefer the rule's security severity level over its generic severity"""
    security_severity = get_field(rule, "security_severity_level")
    if security_severity:
        return security_severity
    return get_field(rule, "severity")


def alert_to_row(alert: Dict[str, Any]) -> List[str]:
    """Flatten one alert payload into a report row"""
    rule = alert.get("rule") or {}
    return [
        get_field(alert, "tool.name"),
        get_field(alert, "tool.version"),
        get_field(alert, "number"),
        get_field(alert, "html_url"),
        get_field(alert, "state"),
        get_field(rule, "id"),
        alert_severity(rule),
        get_field(alert, "most_recent_instance.location.path"),
        get_field(alert, "most_recent_instance.location.start_line"),
        get_field(alert, "most_recent_instance.location.end_line"),
        get_field(alert, "created_at"),
        get_field(alert, "updated_at"),
        get_field(alert, "fixed_at"),
        get_field(alert, "dismissed_at"),
        get_field(alert, "dismissed_by.login"),
    ]


class CodeScanningTool(Tool):
    """Tool for reading code scanning alerts through the GitHub REST API"""

    def __init__(self, github: Github):
        super().__init__(
            name="code_scanning_tool",
            description="List code scanning alerts for a repository as a table",
        )
        self.github = github

    def execute(self, **kwargs) -> Any:
        """Execute the code scanning tool"""
        return self.get_code_scanning_report(kwargs["owner"], kwargs["repo"])

    def get_code_scanning_report(self, owner: str, repo: str) -> Table:
        """
        Fetch every code scanning alert of a repository

        Args:
            owner: Repository owner login
            repo: Repository name

        Returns:
            Table with ALERT_HEADER followed by one row per alert
        """
        repository = self.github.get_repo(f"{owner}/{repo}")

        # the paginated list walks every page before we build rows
        alerts = list(repository.get_codescan_alerts())

        table = new_table(ALERT_HEADER)
        for alert in alerts:
            table.append(alert_to_row(alert.raw_data))

        return table
